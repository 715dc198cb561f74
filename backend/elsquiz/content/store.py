"""Content Store

Loads the units index and per-unit documents from `UNITS_DIR`. Documents may
be JSON or YAML; both go through `yaml.safe_load`. Loaded units are cached
for the lifetime of the store.
"""
from pathlib import Path
from typing import Iterable

import yaml
from pydantic import ValidationError

from elsquiz.core.config import settings
from elsquiz.core.errors import AppError, Ok, Result, content_unavailable
from elsquiz.core.logging import content_logger
from elsquiz.models import GrammarInfo, Unit, UnitInfo

log = content_logger()


def _same_id(a: int | str, b: int | str) -> bool:
    return str(a) == str(b)


class ContentStore:
    """Read-only access to lesson units on disk."""

    __slots__ = ("_units_dir", "_index_file", "_index", "_cache")

    def __init__(self, units_dir: str | Path | None = None, index_file: str | None = None):
        self._units_dir = Path(units_dir or settings.UNITS_DIR)
        self._index_file = index_file or settings.UNITS_INDEX_FILE
        self._index: list[UnitInfo] | None = None
        self._cache: dict[str, Unit] = {}

    def _read(self, path: Path):
        with path.open(encoding="utf-8") as f:
            return yaml.safe_load(f)

    def list_units(self) -> list[UnitInfo]:
        """Index entries in document order; empty when the index can't be read."""
        if self._index is not None:
            return self._index

        path = self._units_dir / self._index_file
        try:
            data = self._read(path) or {}
            units = [UnitInfo.model_validate(entry) for entry in data.get("availableUnits", [])]
        except (OSError, yaml.YAMLError, ValidationError, AttributeError) as e:
            log.error("units_index_unreadable", path=str(path), error=str(e), error_type=type(e).__name__)
            return []

        self._index = units
        log.info("units_index_loaded", path=str(path), units=len(units))
        return units

    def find_unit(self, unit_id: int | str) -> UnitInfo | None:
        return next((u for u in self.list_units() if _same_id(u.id, unit_id)), None)

    def fetch_unit(self, unit_id: int | str) -> Result[Unit, AppError]:
        """Load one available unit, merging grammar info from the index."""
        cached = self._cache.get(str(unit_id))
        if cached is not None:
            return Ok(cached)

        info = self.find_unit(unit_id)
        if info is None or not info.is_available or not info.file:
            log.warning("unit_not_available", unit_id=unit_id)
            return content_unavailable(unit_id)

        path = self._units_dir / info.file
        try:
            data = self._read(path)
            if not isinstance(data, dict):
                raise ValueError("unit document is not a mapping")
            data.setdefault("id", info.id)
            data.setdefault("title", info.title)
            if info.grammar_structure:
                data["grammarStructure"] = info.grammar_structure
                data["grammarExamples"] = info.grammar_examples or []
            unit = Unit.model_validate(data)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as e:
            log.error("unit_unreadable", unit_id=unit_id, path=str(path), error=str(e))
            return content_unavailable(unit_id, f"failed to load {info.file}", cause=e)

        self._cache[str(unit_id)] = unit
        log.info("unit_loaded", unit_id=unit_id, words=len(unit.words), has_grammar=bool(unit.grammar_structure))
        return Ok(unit)

    def get_unit_grammar_info(self, unit_id: int | str) -> GrammarInfo | None:
        info = self.find_unit(unit_id)
        if info is None:
            return None
        return GrammarInfo(structure=info.grammar_structure, examples=info.grammar_examples or [])

    def load_multiple_units(self, unit_ids: Iterable[int | str]) -> list[Unit]:
        """Units that loaded, in request order. Failures are skipped."""
        units = []
        for unit_id in unit_ids:
            result = self.fetch_unit(unit_id)
            if result.is_ok():
                units.append(result.unwrap())
        return units

    def available_units(self) -> list[UnitInfo]:
        return [u for u in self.list_units() if u.is_available]

    def clear_cache(self) -> None:
        self._index = None
        self._cache.clear()
