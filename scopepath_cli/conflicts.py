"""Detect scopes whose last segment collides with a type declared in the file."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Tuple

if TYPE_CHECKING:
    from .models import ScriptRecord


def check_conflict(suggested_scope_name: str, type_names: Iterable[str]) -> Tuple[bool, str]:
    """Compare the last segment of *suggested_scope_name* with *type_names*.

    Returns:
        ``(has_conflict, message)``; the message is empty when there is
        no conflict.
    """
    if not suggested_scope_name:
        return False, ""

    last_segment = suggested_scope_name.split(".")[-1]
    for type_name in type_names:
        if type_name == last_segment:
            return True, (
                f"Conflict: scope '{suggested_scope_name}' ends with '{last_segment}' "
                f"which matches type '{type_name}' in this file."
            )
    return False, ""


def update_conflict_check(record: ScriptRecord) -> None:
    """Recompute the conflict fields of *record* from its current suggestion."""
    record.has_type_name_conflict, record.conflict_message = check_conflict(
        record.suggested_scope_name, record.type_names
    )
