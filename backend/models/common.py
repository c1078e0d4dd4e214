"""Engine, sessions and the base model shared by the connection tables"""

import functools
import logging
from contextlib import contextmanager
from typing import Generator

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import event
from sqlmodel import create_engine, Session

logger = logging.getLogger("soundalchemy.db")

# seconds a writer waits on a locked SQLite file before OperationalError
SQLITE_LOCK_TIMEOUT = 5


@functools.cache
def get_engine():  # pragma: no cover
    from settings import DATABASE_URL

    if not DATABASE_URL.startswith("sqlite"):
        return create_engine(DATABASE_URL, pool_pre_ping=True)

    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False, "timeout": SQLITE_LOCK_TIMEOUT},
    )

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _):
        # WAL lets the change-feed pollers read while a request writes
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def get_session() -> Generator[Session, None, None]:  # pragma: no cover
    """Request-scoped session, the routes commit through the services"""
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_db() -> Generator[Session, None, None]:  # pragma: no cover
    """Session for scripts, the reconcile sweep and the feed pollers"""
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
    except Exception as e:
        logger.exception(f"Rolling back the database session: {e}")
        session.rollback()
        raise
    finally:
        session.close()


def parse_bool(value: str | bool) -> bool:
    """Env flags: "true"/"1" (any case) are on, everything else is off"""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)
