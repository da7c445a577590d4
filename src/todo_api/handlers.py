"""
Transport-independent request handlers for the todo API.

Each operation takes a ``TodoRequest`` (verified claims, path parameters and
the raw body) plus an ``ItemStore`` and returns a ``TodoResponse``. Validation
always happens before the store is touched, and every mutation is exactly one
store call keyed by (owner, todo id).
"""
from __future__ import annotations

import functools
import json
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

from pydantic import ValidationError

from .errors import FaultRecord, InvalidInput, NotFound, StoreUnavailable, TodoError, Unauthenticated
from .expressions import build_update_statement
from .models import TodoEntity, TodoStatus
from .repositories import ItemStore, MalformedKeyError, StoreError
from .schemas import TodoCreate, TodoPatch, first_error_message

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token",
}
JSON_HEADERS = {"Content-Type": "application/json", **CORS_HEADERS}

BODY_NOT_OBJECT = "Request body must be a JSON object."
ID_REQUIRED = "To-Do ID is required."
INVALID_ID = "Invalid To-Do ID or data format."
NO_VALID_FIELDS = "No valid fields provided for update."

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_todo_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(moment: datetime) -> str:
    # Fixed width so timestamps also sort lexicographically.
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TodoRequest:
    """
    A request as seen by the handlers.

    ``claims`` come from an identity layer that has already verified the
    caller; nothing here inspects credentials. ``body`` is left raw (str,
    bytes, an already decoded mapping, or None) and only decoded once the
    caller is known.
    """

    claims: Mapping[str, Any] = field(default_factory=dict)
    path_parameters: Mapping[str, Any] = field(default_factory=dict)
    body: Any = None

    @property
    def owner(self) -> Optional[str]:
        sub = (self.claims or {}).get("sub")
        if sub is None:
            return None
        sub = str(sub).strip()
        return sub or None

    @property
    def todo_id(self) -> Optional[str]:
        value = (self.path_parameters or {}).get("id")
        if value is None:
            return None
        value = str(value)
        return value if value.strip() else None

    def json_body(self) -> Dict[str, Any]:
        """
        Decode the body into a JSON object. A missing or blank body is an
        empty object.

        Raises:
            InvalidInput: if the body is not valid JSON or not an object.
        """
        raw = self.body
        if raw is None:
            return {}
        if isinstance(raw, Mapping):
            return dict(raw)
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidInput(BODY_NOT_OBJECT) from exc
        if not isinstance(raw, str):
            raise InvalidInput(BODY_NOT_OBJECT)
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            # RecursionError: nesting too deep for the decoder.
            raise InvalidInput(BODY_NOT_OBJECT) from exc
        if not isinstance(parsed, dict):
            raise InvalidInput(BODY_NOT_OBJECT)
        return parsed


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class TodoResponse:
    """Status, headers and JSON body produced by a handler."""

    status_code: int
    body: Any
    headers: Mapping[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))

    @classmethod
    def from_error(cls, exc: TodoError) -> "TodoResponse":
        return cls(exc.status_code, {"message": exc.message})

    def render_body(self) -> str:
        return json.dumps(self.body, default=_json_default)

    def to_lambda(self) -> Dict[str, Any]:
        """API Gateway proxy integration result."""
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.render_body(),
        }


def _operation(name: str, success_status: int) -> Callable:
    """
    Run a handler body and turn its result, or the TodoError it raised, into
    a TodoResponse.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., TodoResponse]:
        @functools.wraps(func)
        def wrapper(request: TodoRequest, store: ItemStore, *args: Any, **kwargs: Any) -> TodoResponse:
            try:
                body = func(request, store, *args, **kwargs)
            except TodoError as exc:
                if not isinstance(exc, StoreUnavailable):
                    logger.info(
                        "%s rejected: %s",
                        name,
                        exc.message,
                        extra={"operation": name, "owner": request.owner, "status_code": exc.status_code},
                    )
                return TodoResponse.from_error(exc)
            return TodoResponse(success_status, body)

        return wrapper

    return decorator


@contextmanager
def _store_call(operation: str, request: TodoRequest, failure_message: str) -> Iterator[None]:
    try:
        yield
    except MalformedKeyError as exc:
        raise InvalidInput(INVALID_ID) from exc
    except StoreError as exc:
        fault = FaultRecord.from_exception(operation, exc, owner=request.owner, todo_id=request.todo_id)
        logger.error("store call failed: %s", fault.detail, extra=fault.as_log_extra(), exc_info=True)
        raise StoreUnavailable(failure_message) from exc


def _require_owner(request: TodoRequest) -> str:
    owner = request.owner
    if owner is None:
        raise Unauthenticated()
    return owner


def _require_todo_id(request: TodoRequest) -> str:
    todo_id = request.todo_id
    if todo_id is None:
        raise InvalidInput(ID_REQUIRED)
    return todo_id


# PUBLIC_INTERFACE
def preflight(request: Optional[TodoRequest] = None) -> TodoResponse:
    """Answer a CORS pre-flight request. Needs no identity."""
    return TodoResponse(200, {})


# PUBLIC_INTERFACE
@_operation("create", 201)
def create_todo(
    request: TodoRequest,
    store: ItemStore,
    clock: Optional[Clock] = None,
    id_factory: IdFactory = new_todo_id,
) -> Dict[str, Any]:
    """
    Create a todo owned by the caller.

    The id and timestamps are generated here; status always starts as
    'pending'. The write is unconditional because the id is fresh.
    """
    owner = _require_owner(request)
    body = request.json_body()
    try:
        payload = TodoCreate.model_validate(body)
    except ValidationError as exc:
        raise InvalidInput(first_error_message(TodoCreate, exc)) from exc

    now = format_timestamp((clock or utcnow)())
    item: TodoEntity = {
        "userId": owner,
        "todoId": id_factory(),
        "title": payload.title,
        "description": payload.description or "",
        "status": TodoStatus.PENDING.value,
        "createdAt": now,
        "updatedAt": now,
    }
    with _store_call("create", request, "Failed to create To-Do item. Please try again later."):
        store.put(item)

    logger.info("todo created", extra={"operation": "create", "owner": owner, "todo_id": item["todoId"]})
    return {"message": "To-Do item created successfully.", "todo": item}


# PUBLIC_INTERFACE
@_operation("list", 200)
def list_todos(request: TodoRequest, store: ItemStore) -> Dict[str, Any]:
    """Return all todos of the caller. The order is whatever the store yields."""
    owner = _require_owner(request)
    with _store_call("list", request, "Failed to retrieve To-Do items. Please try again later."):
        todos = store.query_by_owner(owner)
    return {"todos": todos}


# PUBLIC_INTERFACE
@_operation("update", 200)
def update_todo(request: TodoRequest, store: ItemStore, clock: Optional[Clock] = None) -> Dict[str, Any]:
    """
    Partially update one of the caller's todos.

    Steps:
    1. owner and id must be present, checked before anything else;
    2. every provided field is validated (title, description, status);
    3. a body with no recognized field is rejected;
    4. updatedAt is always set;
    5. one conditional update keyed by (owner, id) that never creates an item.

    An id that does not exist and an id owned by someone else both give 404.
    """
    owner = _require_owner(request)
    todo_id = _require_todo_id(request)
    body = request.json_body()
    try:
        patch = TodoPatch.model_validate(body)
    except ValidationError as exc:
        raise InvalidInput(first_error_message(TodoPatch, exc)) from exc

    changes = patch.changes()
    if not changes:
        raise InvalidInput(NO_VALID_FIELDS)

    statement = build_update_statement(changes, format_timestamp((clock or utcnow)()))
    with _store_call("update", request, "Failed to update To-Do item. Please try again later."):
        updated = store.update(owner, todo_id, statement)

    if updated is None:
        raise NotFound("To-Do item not found or unauthorized to update.")

    logger.info(
        "todo updated",
        extra={"operation": "update", "owner": owner, "todo_id": todo_id},
    )
    return {"message": "To-Do item updated successfully.", "todo": updated}


# PUBLIC_INTERFACE
@_operation("delete", 200)
def delete_todo(request: TodoRequest, store: ItemStore) -> Dict[str, Any]:
    """Delete one of the caller's todos; the returned old item confirms it existed."""
    owner = _require_owner(request)
    todo_id = _require_todo_id(request)
    with _store_call("delete", request, "Failed to delete To-Do item. Please try again later."):
        deleted = store.delete(owner, todo_id)

    if deleted is None:
        raise NotFound("To-Do item not found or unauthorized to delete.")

    logger.info("todo deleted", extra={"operation": "delete", "owner": owner, "todo_id": todo_id})
    return {"message": "To-Do item deleted successfully."}
