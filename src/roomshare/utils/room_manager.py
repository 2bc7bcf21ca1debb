"""Room lifecycle management utilities.

Every mutating operation follows the same sequence: load the room snapshot,
derive capability flags for the acting user, refuse locally if the flag is
not set, forward the call to the backend, then reload canonical state. If
the backend call fails the reload step is skipped and the error propagates.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from roomshare.config import ROOM_MAX_MEMBERS_LIMIT, ROOM_NAME_MAX_LENGTH
from roomshare.core.exceptions import (
    PermissionDeniedError,
    ResourceNotFoundError,
    ValidationError,
)
from roomshare.core.permissions import RoomPermissions
from roomshare.schemas.room import (
    FileView,
    MemberView,
    RoomDetails,
    RoomFile,
    RoomView,
    UpdateRoomRequest,
)
from roomshare.schemas.user import ActingUser
from roomshare.utils import file_visibility, invite_codes, membership
from roomshare.utils.in_flight import InFlightGuard

logger = logging.getLogger(__name__)


class RoomManager:
    """Manages room views, invite codes, membership and file visibility."""

    def __init__(
        self,
        backend,
        acting_user: Optional[ActingUser],
        guard: InFlightGuard,
        join_policy: membership.JoinPolicy = membership.JoinPolicy.REGULAR_USERS_ONLY,
    ):
        """Initialize RoomManager.

        Args:
            backend: Rooms backend client bound to the caller's token.
            acting_user: The caller; None when unauthenticated.
            guard: Process-wide in-flight guard for mutating actions.
            join_policy: Eligibility policy for joining with invite codes.
        """
        self.backend = backend
        self.acting_user = acting_user
        self.guard = guard
        self.join_policy = join_policy

    @property
    def _acting_id(self) -> Optional[int]:
        return self.acting_user.id if self.acting_user else None

    # --- Reads ---

    async def load_room(self, room_id: int) -> Tuple[RoomDetails, RoomPermissions]:
        details = await self.backend.get_room_details(room_id)
        permissions = RoomPermissions(details.room, details.members, self.acting_user)
        return details, permissions

    def build_room_view(
        self,
        details: RoomDetails,
        permissions: RoomPermissions,
        now: Optional[datetime] = None,
    ) -> RoomView:
        """Assemble the room view; invite codes are only shown to managers."""
        codes = []
        if permissions.can_manage_invite_codes:
            codes = [
                invite_codes.build_invite_code_view(code, now)
                for code in details.invite_codes
            ]
        return RoomView(
            room=details.room,
            acting_room_role=permissions.acting_room_role,
            capabilities=permissions.capabilities(),
            members=self._member_views(permissions, permissions.members),
            invite_codes=codes,
        )

    @staticmethod
    def _member_views(permissions: RoomPermissions, members) -> List[MemberView]:
        return [
            MemberView(
                member=m,
                can_remove=permissions.can_remove(m),
                can_leave=permissions.can_leave(m),
            )
            for m in members
        ]

    async def get_room_view(self, room_id: int, now: Optional[datetime] = None) -> RoomView:
        details, permissions = await self.load_room(room_id)
        return self.build_room_view(details, permissions, now)

    async def list_members(
        self,
        room_id: int,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> List[MemberView]:
        _, permissions = await self.load_room(room_id)
        members = membership.filter_members(permissions.members, search, role)
        return self._member_views(permissions, members)

    async def list_files(self, room_id: int) -> List[FileView]:
        _, permissions = await self.load_room(room_id)
        files = await self.backend.get_room_files(room_id)
        return file_visibility.build_file_views(permissions, files)

    # --- Invite codes ---

    async def create_invite_code(
        self,
        room_id: int,
        max_uses: Optional[int] = None,
        expires_hours: Optional[int] = None,
    ) -> RoomView:
        payload = invite_codes.build_create_payload(max_uses, expires_hours)
        _, permissions = await self.load_room(room_id)
        if not permissions.can_manage_invite_codes:
            raise PermissionDeniedError("create invite codes")

        with self.guard.claim("create_invite_code", self._acting_id, room_id):
            code = await self.backend.create_room_invite_code(room_id, payload)
        logger.info(
            "User %s created invite code %s for room %s (limits=%s)",
            self._acting_id,
            code.id,
            room_id,
            payload,
        )
        return await self.get_room_view(room_id)

    async def delete_invite_code(self, room_id: int, code_id: int) -> RoomView:
        """Revoke an invite code. Legal from any state, including active."""
        details, permissions = await self.load_room(room_id)
        if not permissions.can_manage_invite_codes:
            raise PermissionDeniedError("delete invite codes")
        if not any(c.id == code_id for c in details.invite_codes):
            raise ResourceNotFoundError("Invite code not found for this room.")

        with self.guard.claim("delete_invite_code", self._acting_id, room_id, code_id):
            await self.backend.delete_invite_code(room_id, code_id)
        logger.info("User %s deleted invite code %s of room %s", self._acting_id, code_id, room_id)
        return await self.get_room_view(room_id)

    async def invite_by_email(
        self, room_id: int, invitee_email: str, message: Optional[str] = None
    ) -> RoomView:
        email = (invitee_email or "").strip()
        if not email:
            raise ValidationError("Invitee email is required")
        _, permissions = await self.load_room(room_id)
        if not permissions.can_invite_by_email:
            raise PermissionDeniedError("invite users to this room")

        with self.guard.claim("invite_by_email", self._acting_id, room_id, email.lower()):
            await self.backend.create_room_invite(room_id, email, message)
        logger.info("User %s invited %s to room %s", self._acting_id, email, room_id)
        return await self.get_room_view(room_id)

    # --- Membership ---

    async def join_room(
        self,
        code: Optional[str],
        entry_point: membership.JoinEntryPoint = membership.JoinEntryPoint.CODE_FORM,
    ) -> None:
        """Join a room using an invite code.

        The backend creates the membership and counts the code use; there is
        no room to reload here since the room id is not known until then.
        """
        normalized = membership.check_join_eligibility(
            self.acting_user, code, self.join_policy, entry_point
        )
        with self.guard.claim("join_room", self._acting_id, normalized.upper()):
            await self.backend.join_room(normalized)
        logger.info("User %s joined a room via %s", self._acting_id, entry_point.value)

    async def remove_member(self, room_id: int, user_id: int) -> RoomView:
        _, permissions = await self.load_room(room_id)
        member = membership.find_member(permissions.members, user_id)
        if member is None:
            raise ResourceNotFoundError("User is not a member of this room")
        membership.ensure_can_remove(permissions, member)

        with self.guard.claim("remove_member", self._acting_id, room_id, user_id):
            await self.backend.remove_member(room_id, user_id)
        logger.info("User %s removed user %s from room %s", self._acting_id, user_id, room_id)
        return await self.get_room_view(room_id)

    async def leave_room(self, room_id: int) -> None:
        """Leave a room. The caller loses read access, so nothing is reloaded.

        Raises:
            LifecyclePreconditionError: If the caller is the room creator or
                not a member.
        """
        _, permissions = await self.load_room(room_id)
        member = membership.ensure_can_leave(permissions)

        with self.guard.claim("leave_room", self._acting_id, room_id):
            await self.backend.remove_member(room_id, member.user_id)
        logger.info("User %s left room %s", self._acting_id, room_id)

    # --- Room settings ---

    async def update_room_settings(self, room_id: int, req: UpdateRoomRequest) -> RoomView:
        """Update room settings, sending only fields that changed.

        An empty diff returns the current view without calling the backend.
        """
        details, permissions = await self.load_room(room_id)
        if not permissions.can_update_settings:
            raise PermissionDeniedError(
                "update room settings", "Only the room creator can change room settings"
            )

        changes = _settings_diff(details, req)
        if not changes:
            return self.build_room_view(details, permissions)

        with self.guard.claim("update_room", self._acting_id, room_id):
            await self.backend.update_room(room_id, changes)
        logger.info("User %s updated room %s: %s", self._acting_id, room_id, sorted(changes))
        return await self.get_room_view(room_id)

    async def delete_room(self, room_id: int) -> None:
        _, permissions = await self.load_room(room_id)
        if not permissions.can_delete_room:
            raise PermissionDeniedError(
                "delete this room", "Only the room creator can delete the room"
            )

        with self.guard.claim("delete_room", self._acting_id, room_id):
            await self.backend.delete_room(room_id)
        logger.info("User %s deleted room %s", self._acting_id, room_id)

    # --- Files ---

    async def set_file_visibility(
        self, room_id: int, file_id: int, visibility: str
    ) -> List[FileView]:
        target = file_visibility.parse_target_visibility(visibility)
        _, permissions = await self.load_room(room_id)
        files = await self.backend.get_room_files(room_id)
        file = _find_file(files, file_id)
        file_visibility.ensure_can_change_visibility(permissions, file)

        with self.guard.claim("set_file_visibility", self._acting_id, room_id, file_id):
            await self.backend.toggle_file_visibility(room_id, file_id, target)
        logger.info(
            "User %s set file %s in room %s to %s",
            self._acting_id,
            file_id,
            room_id,
            target.value,
        )
        files = await self.backend.get_room_files(room_id)
        return file_visibility.build_file_views(permissions, files)


def _find_file(files: List[RoomFile], file_id: int) -> RoomFile:
    for f in files:
        if f.id == file_id:
            return f
    raise ResourceNotFoundError("File not found in this room")


def _settings_diff(details: RoomDetails, req: UpdateRoomRequest) -> dict:
    """Validate the requested settings and keep only changed fields.

    Raises:
        ValidationError: If the name or member cap is out of range.
    """
    room = details.room
    changes = {}
    if req.name is not None:
        name = req.name.strip()
        if not name:
            raise ValidationError("Room name is required")
        if len(name) > ROOM_NAME_MAX_LENGTH:
            raise ValidationError(
                f"Room name must be between 1 and {ROOM_NAME_MAX_LENGTH} characters"
            )
        if name != room.name:
            changes["name"] = name
    if req.description is not None and req.description != (room.description or ""):
        changes["description"] = req.description
    if req.is_private is not None and req.is_private != room.is_private:
        changes["is_private"] = req.is_private
    if req.max_members is not None:
        if req.max_members < 1 or req.max_members > ROOM_MAX_MEMBERS_LIMIT:
            raise ValidationError(
                f"Maximum members must be between 1 and {ROOM_MAX_MEMBERS_LIMIT}"
            )
        if req.max_members != room.max_members:
            changes["max_members"] = req.max_members
    return changes
