from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, List, Optional

import sqlalchemy as sa
from sqlalchemy.engine import Engine, Row

from .db import build_engine, connect, init_db, todos
from .models import TodoEntity
from .schemas import INT_COLUMN_MAX, TODO_FIELDS, FieldError, parse_todo
from .settings import get_settings
from .utils import sanitize_fields

logger = logging.getLogger(__name__)


def _valid_id(todo_id: int) -> bool:
    """Ids outside the INTEGER column range can never match a row."""
    return 0 < todo_id <= INT_COLUMN_MAX


@dataclass(frozen=True)
class ListQuery:
    """
    Query parameters for listing todos.
    """
    completed: Optional[bool] = None
    order: str = "asc"  # allowed: asc, desc


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TodoResult:
    """
    Outcome of a create or update.

    Exactly one of these holds: ``item`` is set (success), ``validation`` is
    non-empty, or ``not_found`` is True.
    """
    item: Optional[TodoEntity] = None
    validation: List[FieldError] = field(default_factory=list)
    not_found: bool = False

    @property
    def success(self) -> bool:
        return self.item is not None


# PUBLIC_INTERFACE
class TodoRepository:
    """
    SQL repository for the todos table.

    Every call opens its own connection and runs a single parameterized
    statement; update is a lookup followed by a separate write.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        init_db(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def _row_to_entity(self, row: Row) -> TodoEntity:
        m = row._mapping
        return {
            "id": int(m["id"]),
            "title": str(m["title"]),
            "due": m["due"],
            "position": int(m["position"]),
            "completed": bool(m["completed"]),
            "created": m["created"],
            "updated": m["updated"],
        }

    def create(self, data: Any) -> TodoResult:
        """Validate ``data`` strictly and insert it. Returns the persisted row."""
        model, errors = parse_todo(data, strict=True)
        if model is None:
            return TodoResult(validation=errors)

        values = sanitize_fields(model.model_dump(include=set(TODO_FIELDS)))
        stmt = sa.insert(todos).values(**values).returning(*todos.c)
        with connect(self._engine) as conn:
            row = conn.execute(stmt).one()
        logger.debug("Created todo %s", row.id)
        return TodoResult(item=self._row_to_entity(row))

    def list(self, query: Optional[ListQuery] = None) -> List[TodoEntity]:
        """
        Return all todos, optionally filtered by completion, ordered by position
        (ties broken by id).
        """
        q = query or ListQuery()
        stmt = sa.select(todos)
        if q.completed is not None:
            stmt = stmt.where(todos.c.completed == q.completed)

        position = todos.c.position.desc() if q.order == "desc" else todos.c.position.asc()
        stmt = stmt.order_by(position, todos.c.id.asc())

        with connect(self._engine) as conn:
            rows = conn.execute(stmt).all()
        return [self._row_to_entity(r) for r in rows]

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return the todo with ``todo_id``, or None if not found."""
        if not _valid_id(todo_id):
            return None
        stmt = sa.select(todos).where(todos.c.id == todo_id)
        with connect(self._engine) as conn:
            row = conn.execute(stmt).first()
        return self._row_to_entity(row) if row else None

    def update(self, todo_id: int, data: Any, partial: bool = True) -> TodoResult:
        """
        Update an existing todo.

        With ``partial`` only the fields present in ``data`` change; otherwise
        ``data`` is validated as a complete todo and replaces every field,
        omitted ones falling back to their defaults. ``updated`` is refreshed
        either way. A missing id wins over validation errors.
        """
        if self.get(todo_id) is None:
            return TodoResult(not_found=True)

        model, errors = parse_todo(data, strict=not partial)
        if model is None:
            return TodoResult(validation=errors)

        changes = model.model_dump(include=set(TODO_FIELDS), exclude_unset=partial)
        values = sanitize_fields(changes)
        values["updated"] = sa.func.now()
        stmt = (
            sa.update(todos)
            .where(todos.c.id == todo_id)
            .values(**values)
            .returning(*todos.c)
        )
        with connect(self._engine) as conn:
            row = conn.execute(stmt).first()

        if row is None:
            # Deleted between the lookup and the write
            return TodoResult(not_found=True)
        logger.debug("Updated todo %s (%s)", todo_id, ", ".join(sorted(changes)) or "no fields")
        return TodoResult(item=self._row_to_entity(row))

    def delete(self, todo_id: int) -> bool:
        """Delete a todo by id. Return True if exactly one row was removed."""
        if not _valid_id(todo_id):
            return False
        stmt = sa.delete(todos).where(todos.c.id == todo_id)
        with connect(self._engine) as conn:
            removed = conn.execute(stmt).rowcount
        logger.debug("Delete todo %s removed %s row(s)", todo_id, removed)
        return removed == 1


@lru_cache(maxsize=None)
def _repository_for(database_url: str, echo: bool) -> TodoRepository:
    return TodoRepository(build_engine(database_url, echo=echo))


# PUBLIC_INTERFACE
def get_repository() -> TodoRepository:
    """
    Return the repository for the configured DATABASE_URL. The table is
    created the first time a given URL is used.
    """
    settings = get_settings()
    return _repository_for(settings.database_url, settings.sql_echo)
