"""Database Module

Synchronous SQLAlchemy engine/session helpers backing the local progress
store. Writes happen once per finished quiz, so a plain sync engine is enough.
"""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from elsquiz.core.config import settings

Base = declarative_base()


def make_engine(url: str | None = None, echo: bool = False) -> Engine:
    """Create an engine for the progress database.

    SQLite connections are opened with check_same_thread disabled because the
    reporter may run on a helper thread while the UI thread writes progress.
    """
    url = url or settings.PROGRESS_DATABASE_URL
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update({"pool_pre_ping": True})
    return create_engine(url, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


def init_db(engine: Engine) -> None:
    """Create tables if they don't exist."""
    # Register models on Base.metadata
    from elsquiz.models import storage  # noqa: F401

    Base.metadata.create_all(engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Transactional scope: commit on success, rollback on error."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
