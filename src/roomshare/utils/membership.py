"""Room membership rules: join eligibility, remove and leave preconditions."""

import enum
import logging
from typing import Iterable, List, Optional

from roomshare.core.exceptions import (
    LifecyclePreconditionError,
    PermissionDeniedError,
    ValidationError,
)
from roomshare.core.permissions import RoomPermissions, coerce_id
from roomshare.core.roles import GlobalRole, parse_room_role
from roomshare.schemas.room import RoomMember
from roomshare.schemas.user import ActingUser
from roomshare.utils.invite_codes import normalize_code

logger = logging.getLogger(__name__)

ONLY_REGULAR_USERS_MESSAGE = "Only regular users can join rooms using invites"
EMPTY_CODE_MESSAGE = "Please enter an invite code"


class JoinPolicy(str, enum.Enum):
    """Who may join a room with an invite code."""

    REGULAR_USERS_ONLY = "regular_users_only"
    ANY_USER = "any_user"


class JoinEntryPoint(str, enum.Enum):
    INVITE_LINK = "invite_link"
    CODE_FORM = "code_form"


def parse_join_policy(value: str) -> JoinPolicy:
    try:
        return JoinPolicy(value.strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown invite join policy: {value!r}") from exc


def check_join_eligibility(
    acting_user: Optional[ActingUser],
    code: Optional[str],
    policy: JoinPolicy,
    entry_point: JoinEntryPoint,
) -> str:
    """Validate a join attempt before the backend is called.

    The same policy applies to every entry point.

    Args:
        acting_user: The identity trying to join.
        code: The invite code as entered.
        policy: Configured join eligibility policy.
        entry_point: Which UI flow the attempt came from.

    Returns:
        The normalized invite code.

    Raises:
        PermissionDeniedError: If the caller is not authenticated.
        LifecyclePreconditionError: If the code is empty or the caller's
            global role is not eligible under the policy.
    """
    if acting_user is None or coerce_id(acting_user.id) is None:
        raise PermissionDeniedError("join rooms", "You must be logged in to join a room")
    normalized = normalize_code(code)
    if not normalized:
        raise LifecyclePreconditionError(EMPTY_CODE_MESSAGE)
    if policy == JoinPolicy.REGULAR_USERS_ONLY and acting_user.role != GlobalRole.USER:
        logger.warning(
            "Rejected %s join by user %s with global role %s",
            entry_point.value,
            acting_user.id,
            acting_user.role,
        )
        raise LifecyclePreconditionError(ONLY_REGULAR_USERS_MESSAGE)
    return normalized


def ensure_can_remove(permissions: RoomPermissions, member: RoomMember) -> None:
    if not permissions.can_remove(member):
        raise PermissionDeniedError("remove this member")


def ensure_can_leave(permissions: RoomPermissions) -> RoomMember:
    """Check that the acting user may leave and return their member record.

    Raises:
        LifecyclePreconditionError: If the acting user is the creator or is
            not a member of the room.
    """
    if permissions.is_creator:
        raise LifecyclePreconditionError("The room creator cannot leave the room")
    member = permissions.acting_member
    if member is None:
        raise LifecyclePreconditionError("You are not a member of this room")
    if not permissions.can_leave(member):
        raise LifecyclePreconditionError("You cannot leave this room")
    return member


def find_member(members: Iterable[RoomMember], user_id: int) -> Optional[RoomMember]:
    for member in members:
        if coerce_id(member.user_id) == user_id:
            return member
    return None


def filter_members(
    members: Iterable[RoomMember],
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> List[RoomMember]:
    """Filter a member list by free-text search and room role.

    Args:
        members: Members to filter.
        search: Case-insensitive substring matched against the user's full
            name, username and email.
        role: "all", None, or a room role name.

    Raises:
        ValidationError: If ``role`` is not "all" or a known room role.
    """
    wanted_role = None
    if role and role.strip().lower() != "all":
        wanted_role = parse_room_role(role)
        if wanted_role is None:
            raise ValidationError(f"Unknown room role: {role!r}")
    term = (search or "").strip().lower()

    results = []
    for member in members:
        if wanted_role is not None and member.role != wanted_role:
            continue
        if term:
            user = member.user
            fields = [user.full_name, user.username, user.email] if user else []
            if not any(term in (field or "").lower() for field in fields):
                continue
        results.append(member)
    return results
