from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A persisted todo row as returned by the repository.

    Fields:
    - id: Unique integer identifier, assigned by the database
    - title: Escaped title (1..128 chars)
    - due: Optional due timestamp
    - position: Non-negative sort position
    - completed: Boolean completion flag
    - created: Insert timestamp, set by the database
    - updated: Last write timestamp, refreshed on every update
    """

    id: int
    title: str
    due: Optional[datetime]
    position: int
    completed: bool
    created: datetime
    updated: datetime
