"""
Build the parameterized update statement for a todo patch.

The statement is fixed in shape: one ``#name = :name`` assignment per changed
attribute, in a stable order, plus ``updatedAt``. Client values only ever
appear in ``attribute_values``, never in the expression text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

# Attributes a patch may touch, in the order they appear in the statement.
UPDATABLE_ATTRIBUTES = ("title", "description", "status")

# The update must address an existing item only; without this DynamoDB upserts.
EXISTS_CONDITION = "attribute_exists(#todoId)"


@dataclass(frozen=True)
class UpdateStatement:
    """A ready-to-send partial update for one todo item."""

    changes: Dict[str, Any]
    update_expression: str
    attribute_names: Dict[str, str] = field(default_factory=dict)
    attribute_values: Dict[str, Any] = field(default_factory=dict)
    condition_expression: str = EXISTS_CONDITION


# PUBLIC_INTERFACE
def build_update_statement(changes: Mapping[str, Any], updated_at: str) -> UpdateStatement:
    """
    Turn validated field changes into an UpdateStatement.

    Args:
        changes: validated values keyed by attribute name (see TodoPatch.changes).
        updated_at: timestamp always written to ``updatedAt``.

    Raises:
        ValueError: if ``changes`` is empty or names an attribute that cannot
            be updated.
    """
    unknown = set(changes) - set(UPDATABLE_ATTRIBUTES)
    if unknown:
        raise ValueError(f"attributes cannot be updated: {sorted(unknown)}")
    if not changes:
        raise ValueError("an update needs at least one changed attribute")

    assignments = []
    names: Dict[str, str] = {"#todoId": "todoId"}
    values: Dict[str, Any] = {}
    ordered: Dict[str, Any] = {}

    for attr in (*UPDATABLE_ATTRIBUTES, "updatedAt"):
        if attr == "updatedAt":
            value = updated_at
        elif attr in changes:
            value = changes[attr]
        else:
            continue
        assignments.append(f"#{attr} = :{attr}")
        names[f"#{attr}"] = attr
        values[f":{attr}"] = value
        ordered[attr] = value

    return UpdateStatement(
        changes=ordered,
        update_expression="SET " + ", ".join(assignments),
        attribute_names=names,
        attribute_values=values,
    )
