from __future__ import annotations

from enum import Enum
from typing import TypedDict


class TodoStatus(str, Enum):
    """The two legal values of a todo's status."""

    PENDING = "pending"
    COMPLETED = "completed"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A todo item as stored in the table and returned to clients.

    Fields:
    - userId: subject identifier of the owner (partition key)
    - todoId: UUID4 string generated at creation (sort key)
    - title: trimmed, non-empty title
    - description: free text, '' when not given
    - status: 'pending' or 'completed'
    - createdAt: ISO-8601 UTC creation timestamp
    - updatedAt: ISO-8601 UTC timestamp of the last successful write
    """

    userId: str
    todoId: str
    title: str
    description: str
    status: str
    createdAt: str
    updatedAt: str
