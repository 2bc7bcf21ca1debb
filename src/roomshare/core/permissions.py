"""Capability flags for rooms.

Every flag is a pure function of a room snapshot, its member list and the
acting user passed in by the caller. Missing identity or membership data
always yields False.
"""

from typing import Any, Iterable, List, Optional

from roomshare.core.roles import MANAGER_ROLES, GlobalRole, RoomRole
from roomshare.schemas.room import Capabilities, Room, RoomFile, RoomMember
from roomshare.schemas.user import ActingUser


ROOM_CREATOR_GLOBAL_ROLES = frozenset({GlobalRole.ADMIN, GlobalRole.SUPERADMIN})


def coerce_id(value: Any) -> Optional[int]:
    """Coerce an identifier that may arrive as str or int to int.

    Returns:
        The integer id, or None for missing, boolean or non-numeric values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def can_create_rooms(acting_user: Optional[ActingUser]) -> bool:
    """Only global admins and superadmins may create rooms."""
    if acting_user is None or coerce_id(acting_user.id) is None:
        return False
    return acting_user.role in ROOM_CREATOR_GLOBAL_ROLES


class RoomPermissions:
    """Evaluates what the acting user may do in one room snapshot."""

    def __init__(
        self,
        room: Optional[Room],
        members: Iterable[RoomMember],
        acting_user: Optional[ActingUser],
    ):
        """Initialize the evaluator.

        Member records that name a different room are dropped; they come from
        a stale or foreign listing and are not authoritative.

        Args:
            room: Room snapshot, or None while it is still loading.
            members: Member list of the room.
            acting_user: The caller, or None when unauthenticated.
        """
        self.room = room
        self.acting_user = acting_user
        self._acting_id = coerce_id(acting_user.id) if acting_user else None
        self._room_id = coerce_id(room.id) if room else None
        self._creator_id = coerce_id(room.creator_id) if room else None
        self.members: List[RoomMember] = [
            m for m in members if self._belongs_to_room(m.room_id)
        ]

    def _belongs_to_room(self, room_id: Any) -> bool:
        if room_id is None or self._room_id is None:
            return True
        return coerce_id(room_id) == self._room_id

    @property
    def _identified(self) -> bool:
        return self._acting_id is not None and self._creator_id is not None

    @property
    def acting_member(self) -> Optional[RoomMember]:
        if self._acting_id is None:
            return None
        for member in self.members:
            if coerce_id(member.user_id) == self._acting_id:
                return member
        return None

    @property
    def acting_room_role(self) -> Optional[RoomRole]:
        """Room role of the acting user; the creator is always CREATOR."""
        if self.is_creator:
            return RoomRole.CREATOR
        member = self.acting_member
        return member.role if member else None

    @property
    def is_creator(self) -> bool:
        return self._identified and self._acting_id == self._creator_id

    @property
    def can_manage(self) -> bool:
        if not self._identified:
            return False
        if self.is_creator:
            return True
        return any(
            coerce_id(m.user_id) == self._acting_id and m.role in MANAGER_ROLES
            for m in self.members
        )

    @property
    def can_update_settings(self) -> bool:
        return self.is_creator

    @property
    def can_delete_room(self) -> bool:
        return self.is_creator

    @property
    def can_manage_invite_codes(self) -> bool:
        return self.can_manage

    @property
    def can_invite_by_email(self) -> bool:
        return self.can_manage

    def can_remove(self, member: RoomMember) -> bool:
        """A manager may remove anyone in the room except themselves."""
        if not self.can_manage or not self._belongs_to_room(member.room_id):
            return False
        target_id = coerce_id(member.user_id)
        return target_id is not None and target_id != self._acting_id

    def can_leave(self, member: RoomMember) -> bool:
        """Only the member themselves may leave, and never the creator."""
        if not self._identified or not self._belongs_to_room(member.room_id):
            return False
        user_id = coerce_id(member.user_id)
        if user_id is None or user_id != self._acting_id:
            return False
        return member.role != RoomRole.CREATOR and user_id != self._creator_id

    def can_change_visibility(self, file: RoomFile) -> bool:
        """Room admins, the creator and the uploader may toggle visibility."""
        if not self._identified or not self._belongs_to_room(file.room_id):
            return False
        if self.acting_room_role in MANAGER_ROLES:
            return True
        return coerce_id(file.user_id) == self._acting_id

    def capabilities(self) -> Capabilities:
        return Capabilities(
            is_creator=self.is_creator,
            can_manage=self.can_manage,
            can_update_settings=self.can_update_settings,
            can_delete_room=self.can_delete_room,
            can_manage_invite_codes=self.can_manage_invite_codes,
            can_invite_by_email=self.can_invite_by_email,
        )
