from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool

from .. import handlers
from ..auth import get_claims
from ..handlers import TodoRequest, TodoResponse
from ..repositories import ItemStore, get_item_store
from ..schemas import MessageOut, TodoEnvelope, TodoListEnvelope

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_error_responses: Dict[int | str, Dict[str, Any]] = {
    400: {"model": MessageOut, "description": "Invalid input"},
    401: {"model": MessageOut, "description": "No verified subject on the request"},
    500: {"model": MessageOut, "description": "Store unavailable"},
}
_not_found: Dict[int | str, Dict[str, Any]] = {
    404: {"model": MessageOut, "description": "No such todo for this caller"},
}


def _get_store(store: ItemStore = Depends(get_item_store)) -> ItemStore:
    """
    Dependency wrapper for the store to keep signatures clean.
    """
    return store


def _to_http(result: TodoResponse) -> Response:
    return Response(
        content=result.render_body(),
        status_code=result.status_code,
        headers=dict(result.headers),
        media_type="application/json",
    )


async def _dispatch(operation: Callable[..., TodoResponse], request: TodoRequest, store: ItemStore) -> Response:
    # Handlers block on the store; keep them off the event loop.
    result = await run_in_threadpool(operation, request, store)
    return _to_http(result)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a todo owned by the caller. Body: title (required), description (optional).",
    responses=_error_responses,
)
async def create_todo(
    request: Request,
    claims: Dict[str, Any] = Depends(get_claims),
    store: ItemStore = Depends(_get_store),
) -> Response:
    payload = TodoRequest(claims=claims, body=await request.body())
    return await _dispatch(handlers.create_todo, payload, store)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListEnvelope,
    summary="List Todos",
    description="List every todo of the caller. No ordering is guaranteed.",
    responses={k: v for k, v in _error_responses.items() if k != 400},
)
async def list_todos(
    claims: Dict[str, Any] = Depends(get_claims),
    store: ItemStore = Depends(_get_store),
) -> Response:
    return await _dispatch(handlers.list_todos, TodoRequest(claims=claims), store)


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoEnvelope,
    summary="Update Todo",
    description="Partially update title, description and/or status of one of the caller's todos.",
    responses={**_error_responses, **_not_found},
)
async def update_todo(
    todo_id: str,
    request: Request,
    claims: Dict[str, Any] = Depends(get_claims),
    store: ItemStore = Depends(_get_store),
) -> Response:
    payload = TodoRequest(claims=claims, path_parameters={"id": todo_id}, body=await request.body())
    return await _dispatch(handlers.update_todo, payload, store)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Delete one of the caller's todos.",
    responses={**_error_responses, **_not_found},
)
async def delete_todo(
    todo_id: str,
    claims: Dict[str, Any] = Depends(get_claims),
    store: ItemStore = Depends(_get_store),
) -> Response:
    payload = TodoRequest(claims=claims, path_parameters={"id": todo_id})
    return await _dispatch(handlers.delete_todo, payload, store)


# PUBLIC_INTERFACE
@router.options("", include_in_schema=False)
@router.options("/{todo_id}", include_in_schema=False)
async def preflight() -> Response:
    """
    CORS pre-flight. Answers 200 with an empty JSON object.
    """
    return _to_http(handlers.preflight())
