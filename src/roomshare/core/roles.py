"""Room and global roles.

Roles arrive from the backend either as enum-like values or as raw strings of
varying case depending on the API version. Everything is parsed into the
enums below on receipt; downstream code never compares raw strings.
"""

import enum
from typing import Any, Optional


class RoomRole(str, enum.Enum):
    """A member's privilege level within one room."""

    MEMBER = "member"
    ADMIN = "admin"
    CREATOR = "creator"


class GlobalRole(str, enum.Enum):
    """A user's account-wide role, independent of any room."""

    USER = "user"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


_ROOM_ROLE_RANK = {
    RoomRole.MEMBER: 1,
    RoomRole.ADMIN: 2,
    RoomRole.CREATOR: 3,
}

MANAGER_ROLES = frozenset({RoomRole.ADMIN, RoomRole.CREATOR})


def _parse(enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, enum.Enum):
        value = value.value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


def parse_room_role(value: Any) -> Optional[RoomRole]:
    """Parse any incoming room role representation.

    Args:
        value: A RoomRole, another enum carrying a role string, or a raw
            string such as "creator" or "Admin".

    Returns:
        The canonical RoomRole, or None if the value is not a known role.
    """
    return _parse(RoomRole, value)


def parse_global_role(value: Any) -> Optional[GlobalRole]:
    """Parse any incoming global role representation.

    Returns:
        The canonical GlobalRole, or None if the value is not a known role.
    """
    return _parse(GlobalRole, value)


def role_rank(role: Any) -> int:
    """Return the privilege rank of a room role; 0 for unknown roles."""
    parsed = parse_room_role(role)
    if parsed is None:
        return 0
    return _ROOM_ROLE_RANK[parsed]


def has_at_least(role: Any, threshold: Any) -> bool:
    """Check whether ``role`` is at or above ``threshold`` in the room order.

    The order is member < admin < creator. Unknown or missing roles rank
    below every threshold, and an unknown threshold is never met.
    """
    threshold_rank = role_rank(threshold)
    if threshold_rank == 0:
        return False
    return role_rank(role) >= threshold_rank
