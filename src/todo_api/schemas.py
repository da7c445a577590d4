from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import TodoStatus

_STATUS_VALUES = {s.value for s in TodoStatus}


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.

    Unknown keys are ignored. The owner, id, status and timestamps are never
    taken from the client.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        },
    )

    field_messages: ClassVar[Dict[str, str]] = {
        "title": "Title is required and must be a non-empty string.",
        "description": "Description must be a string.",
    }

    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        """
        Require a string that is not blank, and strip it.
        """
        if not isinstance(v, str) or not v.strip():
            raise ValueError(cls.field_messages["title"])
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> Optional[str]:
        if v is not None and not isinstance(v, str):
            raise ValueError(cls.field_messages["description"])
        return v


# PUBLIC_INTERFACE
class TodoPatch(BaseModel):
    """
    Schema for a partial update of a Todo item.

    A field counts as provided when its key is present in the body, even with
    a null value, so an explicit null is validated (and rejected) rather than
    skipped. Only provided fields end up in ``changes()``.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "status": "completed",
            }
        },
    )

    field_messages: ClassVar[Dict[str, str]] = {
        "title": "Title must be a non-empty string.",
        "description": "Description must be a string.",
        "status": "Status must be 'pending' or 'completed'.",
    }

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Detailed description; may be empty")
    status: Optional[TodoStatus] = Field(default=None, description="'pending' or 'completed'")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError(cls.field_messages["title"])
        return v.strip()

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError(cls.field_messages["description"])
        return v

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> str:
        if not isinstance(v, str) or v not in _STATUS_VALUES:
            raise ValueError(cls.field_messages["status"])
        return v

    def changes(self) -> Dict[str, Any]:
        """
        Provided fields and their validated values, in declaration order.
        """
        out: Dict[str, Any] = {}
        for name in type(self).model_fields:
            if name not in self.model_fields_set:
                continue
            value = getattr(self, name)
            out[name] = value.value if isinstance(value, TodoStatus) else value
        return out


# PUBLIC_INTERFACE
def first_error_message(schema: type, exc: ValidationError) -> str:
    """
    Map the first validation error of ``schema`` to its public message.

    Errors are reported in field declaration order, so the first one names
    the first offending field.
    """
    messages: Dict[str, str] = getattr(schema, "field_messages", {})
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc and loc[0] in messages:
            return messages[str(loc[0])]
    return "Request body must be a JSON object."


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "5f0c3c1e-8d7b-4c55-9a55-2b1f1f0f0e11",
                "todoId": "0b5a4e64-7cf1-4c7e-b1f0-0d1c2b3a4f5e",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": "pending",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-25T10:15:30.123456Z",
            }
        }
    )

    userId: str = Field(..., description="Subject identifier of the owner")
    todoId: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(default="", description="Detailed description")
    status: TodoStatus = Field(..., description="'pending' or 'completed'")
    createdAt: str = Field(..., description="Creation timestamp (ISO-8601, UTC)")
    updatedAt: str = Field(..., description="Last update timestamp (ISO-8601, UTC)")


class MessageOut(BaseModel):
    """Body of error responses and of the delete confirmation."""

    message: str = Field(..., description="Human readable outcome")


class TodoEnvelope(MessageOut):
    """Body returned by create and update."""

    todo: TodoOut


class TodoListEnvelope(BaseModel):
    """Body returned by list."""

    todos: List[TodoOut] = Field(..., description="All todo items of the caller, unordered")
