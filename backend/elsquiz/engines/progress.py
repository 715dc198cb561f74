"""Progress Tracking Engine

Latest-attempt record per (unit, exercise kind) in a local key-value store,
plus derived per-unit summaries and the remembered learner name.
"""
import json
from datetime import datetime, timezone
from functools import lru_cache

from pydantic import ValidationError

from elsquiz.core.config import settings
from elsquiz.core.errors import AppError, Ok, Result, out_of_range
from elsquiz.core.logging import progress_logger
from elsquiz.core.storage import KeyValueStore, SqlKeyValueStore
from elsquiz.models import (
    CANONICAL_KINDS,
    ExerciseAttemptRecord,
    ExerciseKind,
    ExerciseStatus,
    UnitProgressSummary,
)

log = progress_logger()

LEARNER_NAME_KEY = "elsName"
LEARNER_SURNAME_KEY = "elsSurname"


def progress_key(unit_id: int | str, kind: ExerciseKind | str) -> str:
    kind_value = kind.value if isinstance(kind, ExerciseKind) else kind
    return f"unit_{unit_id}_exercise_{kind_value}"


@lru_cache(maxsize=1)
def default_store() -> SqlKeyValueStore:
    """Process-wide progress store at PROGRESS_DATABASE_URL, opened on first use."""
    log.info("progress_store_opened", url=settings.PROGRESS_DATABASE_URL)
    return SqlKeyValueStore(settings.PROGRESS_DATABASE_URL)


def exercise_status(record: ExerciseAttemptRecord) -> ExerciseStatus:
    """Button state for an exercise: completed, partial (attempted) or pending."""
    if record.completed:
        return ExerciseStatus.COMPLETED
    if record.attempted:
        return ExerciseStatus.PARTIAL
    return ExerciseStatus.PENDING


class ProgressTracker:
    """Read and write exercise attempt records.

    Writes are last-write-wins: each save reflects only its own inputs, so a
    later lower score replaces an earlier completed one.
    """

    __slots__ = ("_store", "_pass_threshold")

    def __init__(self, store: KeyValueStore | None = None, pass_threshold: int | None = None):
        self._store = store if store is not None else default_store()
        self._pass_threshold = settings.PASS_THRESHOLD if pass_threshold is None else pass_threshold

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def get(self, unit_id: int | str, kind: ExerciseKind | str) -> ExerciseAttemptRecord:
        """Stored record, or a zero record when absent or unreadable."""
        kind_value = kind.value if isinstance(kind, ExerciseKind) else kind
        empty = ExerciseAttemptRecord(unit_id=unit_id, exercise_kind=kind_value)
        key = progress_key(unit_id, kind_value)

        result = self._store.get(key)
        if result.is_err():
            log.warning("progress_read_failed", key=key, error=result.unwrap_err().message)
            return empty

        raw = result.unwrap()
        if raw is None:
            return empty
        try:
            return ExerciseAttemptRecord.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            log.warning("progress_record_corrupt", key=key, error=str(e))
            return empty

    def save(
        self,
        unit_id: int | str,
        kind: ExerciseKind | str,
        score: int,
        completed: bool = False,
    ) -> Result[ExerciseAttemptRecord, AppError]:
        """Overwrite the record for (unit, kind).

        `completed` ends up true when the explicit flag is set or the score
        reaches the pass threshold.
        """
        if not 0 <= score <= 100:
            return out_of_range("score", score, 0, 100, origin="progress")

        kind_value = kind.value if isinstance(kind, ExerciseKind) else kind
        record = ExerciseAttemptRecord(
            score=score,
            completed=completed or score >= self._pass_threshold,
            completed_at=datetime.now(timezone.utc),
            unit_id=unit_id,
            exercise_kind=kind_value,
        )
        key = progress_key(unit_id, kind_value)
        payload = record.model_dump_json(by_alias=True)

        result = self._store.set(key, payload)
        if result.is_err():
            log.warning("progress_not_saved", key=key, score=score, error=result.unwrap_err().message)
            return result  # type: ignore[return-value]

        log.info("progress_saved", key=key, score=score, completed=record.completed)
        return Ok(record)

    def summarize(self, unit_id: int | str) -> UnitProgressSummary:
        """Aggregate the five canonical kinds of a unit.

        Only attempted kinds (score > 0) count toward the average and the
        completed count.
        """
        records = [self.get(unit_id, kind) for kind in CANONICAL_KINDS]
        attempted = [r for r in records if r.attempted]
        completed_count = sum(1 for r in attempted if r.completed)

        average = round(sum(r.score for r in attempted) / len(attempted)) if attempted else 0
        return UnitProgressSummary(
            average_score=average,
            completion_rate=round(completed_count / len(CANONICAL_KINDS) * 100),
            completed_count=completed_count,
            total_exercises=len(CANONICAL_KINDS),
        )

    def statuses(self, unit_id: int | str) -> dict[str, ExerciseStatus]:
        return {kind.value: exercise_status(self.get(unit_id, kind)) for kind in CANONICAL_KINDS}

    # -------------------------------------------------------------------------
    # Learner memory
    # -------------------------------------------------------------------------

    def remember_learner(self, name: str, surname: str) -> None:
        """Keep name and surname for the next visit. Failures are only logged."""
        for key, value in ((LEARNER_NAME_KEY, name), (LEARNER_SURNAME_KEY, surname)):
            result = self._store.set(key, value)
            if result.is_err():
                log.warning("learner_not_remembered", key=key, error=result.unwrap_err().message)

    def recall_learner(self) -> tuple[str | None, str | None]:
        name = self._store.get(LEARNER_NAME_KEY).unwrap_or(None)
        surname = self._store.get(LEARNER_SURNAME_KEY).unwrap_or(None)
        return name, surname
