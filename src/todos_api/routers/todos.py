from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from ..repositories import ListQuery, TodoRepository, TodoResult, get_repository
from ..schemas import TodoOut, ValidationErrorOut

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_NOT_FOUND = "Todo not found"

_COMPLETED_FILTERS = {"true": True, "false": False}


def _get_repo(repo: TodoRepository = Depends(get_repository)) -> TodoRepository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _item_or_raise(result: TodoResult) -> TodoOut:
    """Translate a repository result into a response model or an HTTP error."""
    if result.not_found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=[e.model_dump() for e in result.validation],
        )
    return TodoOut(**result.item)  # type: ignore[arg-type]


_VALIDATION_RESPONSE = {
    "model": ValidationErrorOut,
    "description": "Validation error; detail lists every offending field",
}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description=(
        "List all todos ordered by position.\n\n"
        "Query parameters:\n"
        "- order: asc (default) or desc\n"
        "- completed: 'true' or 'false' to filter by completion status"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    order: str = Query("asc", description="Sort direction on position: 'asc' or 'desc'"),
    completed: Optional[str] = Query(None, description="Filter by completion status: 'true' or 'false'"),
    repo: TodoRepository = Depends(_get_repo),
) -> List[TodoOut]:
    """
    List todos, optionally filtered by completion status.
    """
    ord_norm = order.strip().lower()
    if ord_norm not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="order must be 'asc' or 'desc'")

    # Any other value for completed means no filter
    flag = _COMPLETED_FILTERS.get((completed or "").strip().lower())

    items = repo.list(ListQuery(completed=flag, order=ord_norm))
    return [TodoOut(**it) for it in items]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: _VALIDATION_RESPONSE,
    },
)
def create_todo(
    payload: Dict[str, Any] = Body(...),
    repo: TodoRepository = Depends(_get_repo),
) -> TodoOut:
    """
    Create a new Todo. Title is required; position defaults to 0 and completed to false.
    """
    return _item_or_raise(repo.create(payload))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int, repo: TodoRepository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = repo.get(todo_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return TodoOut(**item)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Replace Todo",
    description=(
        "Replace an existing Todo item. The body is validated as a complete todo; any "
        "fields omitted are reset to their defaults (position 0, completed false, no due date)."
    ),
    responses={
        201: {"description": "Todo replaced"},
        400: _VALIDATION_RESPONSE,
        404: {"description": "Todo not found"},
    },
)
def put_todo(
    todo_id: int,
    payload: Dict[str, Any] = Body(...),
    repo: TodoRepository = Depends(_get_repo),
) -> TodoOut:
    """
    Full update (replace) of a Todo item.
    """
    return _item_or_raise(repo.update(todo_id, payload, partial=False))


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Update Todo",
    description="Partially update fields of a Todo item. Only the fields present in the body change.",
    responses={
        201: {"description": "Todo updated"},
        400: _VALIDATION_RESPONSE,
        404: {"description": "Todo not found"},
    },
)
def patch_todo(
    todo_id: int,
    payload: Dict[str, Any] = Body(...),
    repo: TodoRepository = Depends(_get_repo),
) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    return _item_or_raise(repo.update(todo_id, payload, partial=True))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, repo: TodoRepository = Depends(_get_repo)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    ok = repo.delete(todo_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND)
    return None
