"""
Error types of the todo handlers.

Two families live here and never mix:

- ``TodoError`` and its subclasses are the public errors. They carry an HTTP
  status and a message that is safe to show to the caller.
- ``FaultRecord`` is the internal description of a store failure. It is only
  ever logged.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


class TodoError(Exception):
    """Base class for errors that map to a client-facing response."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(TodoError):
    status_code = 401
    default_message = "Unauthorized: User ID not found in token."


class InvalidInput(TodoError):
    status_code = 400
    default_message = "Invalid request."


class NotFound(TodoError):
    status_code = 404
    default_message = "To-Do item not found."


class StoreUnavailable(TodoError):
    status_code = 500
    default_message = "Failed to process To-Do request. Please try again later."


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class FaultRecord:
    """
    Internal record of a failed store call.

    Built at the call site when the store raises, logged with the traceback,
    and then dropped. Only the generic StoreUnavailable message reaches the
    caller.
    """

    operation: str
    owner: Optional[str]
    todo_id: Optional[str]
    error_code: str
    detail: str

    @classmethod
    def from_exception(
        cls,
        operation: str,
        exc: BaseException,
        owner: Optional[str] = None,
        todo_id: Optional[str] = None,
    ) -> "FaultRecord":
        cause = exc.__cause__ or exc
        return cls(
            operation=operation,
            owner=owner,
            todo_id=todo_id,
            error_code=getattr(exc, "error_code", None) or type(cause).__name__,
            detail=str(cause),
        )

    def as_log_extra(self) -> Dict[str, Any]:
        """Fields for the ``extra`` argument of a logging call."""
        return {
            "operation": self.operation,
            "owner": self.owner,
            "todo_id": self.todo_id,
            "error_code": self.error_code,
        }
