from __future__ import annotations

import calendar
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from .utils import sanitize_text

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 1
TITLE_MAX_LENGTH = 128

# Range of the INTEGER columns (position, id)
INT_COLUMN_MAX = 2**31 - 1

# Field order used when reporting errors and building statements
TODO_FIELDS: Tuple[str, ...] = ("title", "due", "position", "completed")

_FIELD_MESSAGES: Dict[str, str] = {
    "title": (
        f"Title must be a string of {TITLE_MIN_LENGTH} to {TITLE_MAX_LENGTH} characters, "
        "counted after HTML special characters are escaped"
    ),
    "due": "Due must be a valid ISO 8601 date",
    "position": f"Position must be an integer between 0 and {INT_COLUMN_MAX}",
    "completed": "Completed must be a boolean",
}

# Reduced precision (YYYY, YYYY-MM) and ordinal (YYYY-DDD, YYYYDDD) dates
_REDUCED_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")
_ORDINAL_DATE = re.compile(r"^(\d{4})-?(\d{3})$")


def _parse_partial_date(s: str) -> Optional[datetime]:
    """
    Parse the ISO 8601 date forms ``fromisoformat`` does not understand.
    Reduced precision dates map to the first day of the period.
    """
    m = _REDUCED_DATE.match(s)
    if m:
        return datetime(int(m.group(1)), int(m.group(2) or 1), 1)

    m = _ORDINAL_DATE.match(s)
    if m:
        year, day = int(m.group(1)), int(m.group(2))
        if not 1 <= day <= (366 if calendar.isleap(year) else 365):
            raise ValueError(f"day {day} is out of range for {year}")
        return datetime(year, 1, 1) + timedelta(days=day - 1)

    return None


def _parse_due(value: Any) -> Optional[datetime]:
    """
    Normalize an incoming due value into a datetime.
    - None clears the due date.
    - Strings are parsed as ISO 8601; a bare date becomes midnight, and
      YYYY or YYYY-MM become the first day of that year or month.
    - Anything else is rejected.
    """
    if value is None:
        return None

    if not isinstance(value, str):
        raise ValueError("due must be an ISO 8601 string")

    s = value.strip()
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    try:
        # Week dates are only understood by date.fromisoformat
        d = date.fromisoformat(s)
        return datetime(d.year, d.month, d.day, 0, 0, 0)
    except ValueError:
        pass

    invalid = (
        "Invalid due format. Use an ISO 8601 date or datetime string "
        "(e.g., '2025-01-31' or '2025-01-31T13:45:00Z')."
    )
    try:
        parsed = _parse_partial_date(s)
    except ValueError as e:
        # month 13, day 400, ...
        raise ValueError(invalid) from e
    if parsed is None:
        raise ValueError(invalid)
    return parsed


# PUBLIC_INTERFACE
class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str = Field(..., description="Name of the offending field")
    message: str = Field(..., description="Human-readable explanation")


class ValidationErrorOut(BaseModel):
    """Body of a 400 response."""

    detail: List[FieldError]


# PUBLIC_INTERFACE
class TodoFields(BaseModel):
    """
    Candidate todo fields for a partial update.

    Every field is optional; only the ones present in the input are validated,
    and ``model_fields_set`` records which ones were supplied. A present
    ``null`` is accepted only for ``due``, where it clears the date.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "position": 2,
                "completed": True,
            }
        },
    )

    title: StrictStr = Field(default=None, description="Short title for the todo item")
    due: Optional[datetime] = Field(
        default=None,
        description="Due date/time of the todo item as an ISO 8601 string; null clears it",
    )
    position: StrictInt = Field(default=None, ge=0, le=INT_COLUMN_MAX, description="Sort position (0..2**31-1)")
    completed: StrictBool = Field(default=None, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Require the escaped title to fit the column; the value itself is kept as sent.
        """
        if not (TITLE_MIN_LENGTH <= len(sanitize_text(v)) <= TITLE_MAX_LENGTH):
            raise ValueError(
                f"title length must be between {TITLE_MIN_LENGTH} and {TITLE_MAX_LENGTH} "
                "characters after HTML escaping"
            )
        return v

    @field_validator("due", mode="before")
    @classmethod
    def parse_due(cls, v: Any) -> Optional[datetime]:
        return _parse_due(v)


# PUBLIC_INTERFACE
class TodoCreate(TodoFields):
    """
    Candidate todo fields for create and full replace.

    Title is required; the remaining fields fall back to their column defaults.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "due": "2025-02-01T12:00:00Z",
                "position": 0,
                "completed": False,
            }
        },
    )

    title: StrictStr = Field(..., description="Short title for the todo item")
    position: StrictInt = Field(default=0, ge=0, le=INT_COLUMN_MAX, description="Sort position (0..2**31-1)")
    completed: StrictBool = Field(default=False, description="Completion status flag")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "due": None,
                "position": 0,
                "completed": False,
                "created": "2025-01-25T10:15:30.123456+00:00",
                "updated": "2025-01-25T10:15:30.123456+00:00",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item (HTML-escaped)")
    due: Optional[datetime] = Field(default=None, description="Due date/time of the todo item")
    position: int = Field(..., description="Sort position")
    completed: bool = Field(..., description="Completion status flag")
    created: datetime = Field(..., description="Creation timestamp")
    updated: datetime = Field(..., description="Last update timestamp")


def field_errors(exc: ValidationError) -> List[FieldError]:
    """
    Fold pydantic errors into one FieldError per field, in TODO_FIELDS order.
    Errors without a location are reported against ``body``.
    """
    by_field: Dict[str, FieldError] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        name = str(loc[0]) if loc else "body"
        if name not in by_field:
            by_field[name] = FieldError(field=name, message=_FIELD_MESSAGES.get(name, err["msg"]))

    def rank(error: FieldError) -> int:
        return TODO_FIELDS.index(error.field) if error.field in TODO_FIELDS else len(TODO_FIELDS)

    return sorted(by_field.values(), key=rank)


# PUBLIC_INTERFACE
def parse_todo(candidate: Any, strict: bool = False) -> Tuple[Optional[TodoFields], List[FieldError]]:
    """
    Validate a candidate payload and return ``(model, [])`` on success or
    ``(None, errors)`` on failure.

    In strict mode the title is required and omitted fields take their defaults.
    """
    model_cls: Type[TodoFields] = TodoCreate if strict else TodoFields
    try:
        return model_cls.model_validate(candidate), []
    except ValidationError as exc:
        errors = field_errors(exc)
        logger.info("Rejected todo payload: %s", ", ".join(e.field for e in errors))
        return None, errors


# PUBLIC_INTERFACE
def validate_todo(candidate: Any, strict: bool = False) -> List[FieldError]:
    """Return the ordered list of field errors for ``candidate``; empty when valid."""
    _, errors = parse_todo(candidate, strict=strict)
    return errors
