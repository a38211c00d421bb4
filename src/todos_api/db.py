from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    false,
    func,
    text,
)
from sqlalchemy.engine import Connection, Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from sqlalchemy.types import TypeDecorator

from .schemas import TITLE_MAX_LENGTH

logger = logging.getLogger(__name__)

metadata = MetaData()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timestamp column that always stores UTC and always returns aware datetimes.

    SQLite keeps no offset, so aware values are converted to UTC before they
    are written and naive values (including CURRENT_TIMESTAMP) are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return _as_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect: Any) -> Optional[datetime]:
        return _as_utc(value)


todos = Table(
    "todos",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(TITLE_MAX_LENGTH), nullable=False),
    Column("due", UTCDateTime()),
    Column("position", Integer, server_default=text("0")),
    Column("completed", Boolean, server_default=false()),
    Column("created", UTCDateTime(), server_default=func.now()),
    Column("updated", UTCDateTime(), server_default=func.now()),
)


# PUBLIC_INTERFACE
def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for ``database_url`` that opens a new DBAPI connection on
    every ``connect()`` and closes it on release (no pooling).

    For file-based SQLite URLs the parent directory is created if missing.
    """
    url = make_url(database_url)
    connect_args: Dict[str, Any] = {}
    if url.get_backend_name() == "sqlite":
        # Worker threads share the engine
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            os.makedirs(os.path.dirname(url.database) or ".", exist_ok=True)

    return create_engine(url, echo=echo, poolclass=NullPool, connect_args=connect_args)


# PUBLIC_INTERFACE
def init_db(engine: Engine) -> None:
    """Create the todos table if it does not exist."""
    metadata.create_all(engine, checkfirst=True)


# PUBLIC_INTERFACE
@contextmanager
def connect(engine: Engine) -> Generator[Connection, None, None]:
    """
    Open one connection for the duration of the block, commit on success and
    release it on every exit path. Database errors are logged and re-raised.
    """
    try:
        with engine.connect() as conn:
            yield conn
            conn.commit()
    except SQLAlchemyError:
        logger.exception("Error executing query")
        raise
