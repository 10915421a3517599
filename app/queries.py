"""Assembly of parameterized ``UPDATE`` statements from sparse patches."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .errors import EmptyUpdateError
from .models import UserUpdatePatch

USERS_TABLE = "users"
ID_PARAMETER = "user_id"

# (patch attribute, column, placeholder) in the order assignments are rendered.
_SETTABLE_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("email", "email", "email"),
    ("email_visibility", "emailVisibility", "email_visibility"),
    ("name", "name", "name"),
)


@dataclass(frozen=True)
class Assignment:
    column: str
    placeholder: str
    value: object

    def render(self) -> str:
        return f"{self.column} = :{self.placeholder}"


@dataclass(frozen=True)
class UpdateStatement:
    """A rendered statement together with its named parameters."""

    sql: str
    params: Dict[str, object]
    assignments: Tuple[Assignment, ...]


def collect_assignments(patch: UserUpdatePatch) -> List[Assignment]:
    """Return one assignment per field present in ``patch``."""

    assignments: List[Assignment] = []
    for attribute, column, placeholder in _SETTABLE_FIELDS:
        value = getattr(patch, attribute)
        if value is None:
            continue
        assignments.append(Assignment(column=column, placeholder=placeholder, value=value))
    return assignments


def build_user_update(user_id: str, patch: UserUpdatePatch) -> UpdateStatement:
    """Build the ``UPDATE`` statement that applies ``patch`` to one user.

    Values are only ever passed as named parameters; the SQL text is made
    of fixed column names and placeholders. Raises :class:`EmptyUpdateError`
    when the patch does not set any field.
    """

    if not user_id:
        raise ValueError("User id must not be empty")

    if patch.is_empty():
        raise EmptyUpdateError()

    assignments = collect_assignments(patch)

    params: Dict[str, object] = {ID_PARAMETER: user_id}
    for assignment in assignments:
        params[assignment.placeholder] = assignment.value

    set_clause = ", ".join(assignment.render() for assignment in assignments)
    sql = f"UPDATE {USERS_TABLE} SET {set_clause} WHERE id = :{ID_PARAMETER}"
    return UpdateStatement(sql=sql, params=params, assignments=tuple(assignments))


__all__ = ["Assignment", "UpdateStatement", "build_user_update", "collect_assignments"]
