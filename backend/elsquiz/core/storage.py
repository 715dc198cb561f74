"""Key-Value Storage Backends

The progress store only needs string keys mapping to string values. Two
backends share the same Result-returning interface:

- MemoryKeyValueStore: in-process dict, used by tests and embedded shells
- SqlKeyValueStore: durable SQLite (or any SQLAlchemy URL) table, the default
"""
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from elsquiz.core.database import init_db, make_engine, make_session_factory, session_scope
from elsquiz.core.errors import AppError, Ok, Result, storage_unavailable
from elsquiz.core.logging import progress_logger
from elsquiz.models.storage import StoredValue

log = progress_logger()


class KeyValueStore(Protocol):
    def get(self, key: str) -> Result[str | None, AppError]: ...

    def set(self, key: str, value: str) -> Result[None, AppError]: ...

    def delete(self, key: str) -> Result[None, AppError]: ...


class MemoryKeyValueStore:
    """Dict-backed store. Never fails."""

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, str] | None = None):
        self._data: dict[str, str] = data if data is not None else {}

    def get(self, key: str) -> Result[str | None, AppError]:
        return Ok(self._data.get(key))

    def set(self, key: str, value: str) -> Result[None, AppError]:
        self._data[key] = value
        return Ok(None)

    def delete(self, key: str) -> Result[None, AppError]:
        self._data.pop(key, None)
        return Ok(None)

    def keys(self) -> list[str]:
        return list(self._data)


class SqlKeyValueStore:
    """SQLAlchemy-backed store; every SQLAlchemyError maps to storage_unavailable."""

    __slots__ = ("_engine", "_factory")

    def __init__(self, url: str | None = None, engine: Engine | None = None):
        self._engine = engine or make_engine(url)
        self._factory = make_session_factory(self._engine)
        init_db(self._engine)

    def get(self, key: str) -> Result[str | None, AppError]:
        try:
            with session_scope(self._factory) as session:
                row = session.execute(
                    select(StoredValue).where(StoredValue.key == key)
                ).scalar_one_or_none()
                return Ok(row.value if row else None)
        except SQLAlchemyError as e:
            log.warning("storage_read_failed", key=key, error=str(e))
            return storage_unavailable(str(e), key=key, cause=e)

    def set(self, key: str, value: str) -> Result[None, AppError]:
        try:
            with session_scope(self._factory) as session:
                row = session.get(StoredValue, key)
                if row:
                    row.value = value
                else:
                    session.add(StoredValue(key=key, value=value))
            return Ok(None)
        except SQLAlchemyError as e:
            log.warning("storage_write_failed", key=key, error=str(e))
            return storage_unavailable(str(e), key=key, cause=e)

    def delete(self, key: str) -> Result[None, AppError]:
        try:
            with session_scope(self._factory) as session:
                row = session.get(StoredValue, key)
                if row:
                    session.delete(row)
            return Ok(None)
        except SQLAlchemyError as e:
            log.warning("storage_delete_failed", key=key, error=str(e))
            return storage_unavailable(str(e), key=key, cause=e)

    def dispose(self) -> None:
        self._engine.dispose()
