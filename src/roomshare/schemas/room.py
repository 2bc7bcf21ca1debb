"""Room schema definitions.

This module defines the room, membership, invite code and file models as
returned by the rooms backend, plus the request and view models exposed by
the portal API.
"""

import enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from roomshare.core.roles import RoomRole, parse_room_role
from roomshare.schemas.user import User


class FileVisibility(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class InviteCodeState(str, enum.Enum):
    """Derived lifecycle state of an invite code row."""

    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    EXPIRED = "expired"
    INACTIVE = "inactive"


def parse_visibility(value: Any) -> Optional[FileVisibility]:
    if isinstance(value, FileVisibility):
        return value
    if not isinstance(value, str):
        return None
    try:
        return FileVisibility(value.strip().lower())
    except ValueError:
        return None


# --- Backend models ---


class Room(BaseModel):
    id: int = Field(description="The unique identifier of the room.")
    name: str = Field(default="", description="Room name.")
    description: Optional[str] = None
    creator_id: Optional[int] = Field(
        default=None,
        description="The user_id of the room creator.",
    )
    is_private: bool = False
    max_members: int = Field(default=0, description="Membership cap.")
    current_members: int = Field(default=0, description="Current member count.")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    creator: Optional[User] = None


class RoomMember(BaseModel):
    id: Optional[int] = None
    user_id: Optional[int] = None
    room_id: Optional[int] = None
    role: Optional[RoomRole] = Field(
        default=None,
        description="Role in the room. Unknown values are stored as None.",
    )
    joined_at: Optional[str] = None
    user: Optional[User] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Optional[RoomRole]:
        return parse_room_role(value)


class RoomInviteCode(BaseModel):
    id: int
    room_id: Optional[int] = None
    code: str
    max_uses: Optional[int] = Field(
        default=None,
        description="Maximum number of joins; None means unlimited.",
    )
    current_uses: int = 0
    expires_at: Optional[str] = Field(
        default=None,
        description="ISO timestamp after which the code expires; None means never.",
    )
    is_active: bool = True
    created_at: Optional[str] = None


class RoomFile(BaseModel):
    """A room file. Only ``user_id`` and ``visibility`` drive permissions."""

    model_config = ConfigDict(extra="allow")

    id: int
    room_id: Optional[int] = None
    user_id: Optional[int] = Field(default=None, description="Uploader user_id.")
    visibility: Optional[FileVisibility] = FileVisibility.PRIVATE
    filename: Optional[str] = None
    original_filename: Optional[str] = None
    is_encrypted: bool = False

    @field_validator("visibility", mode="before")
    @classmethod
    def _normalize_visibility(cls, value: Any) -> Optional[FileVisibility]:
        return parse_visibility(value)


class RoomDetails(BaseModel):
    room: Room
    members: List[RoomMember] = Field(default_factory=list)
    invite_codes: List[RoomInviteCode] = Field(default_factory=list)


# --- Requests ---


class CreateInviteCodeRequest(BaseModel):
    max_uses: Optional[int] = Field(
        default=None,
        description="Maximum uses; 0 or omitted means unlimited.",
    )
    expires_hours: Optional[int] = Field(
        default=None,
        description="Hours until expiry; 0 or omitted means never.",
    )


class CreateRoomInviteRequest(BaseModel):
    invitee_email: str
    message: Optional[str] = None


class JoinRoomRequest(BaseModel):
    invite_code: str


class UpdateRoomRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = None
    max_members: Optional[int] = None


class UpdateFileVisibilityRequest(BaseModel):
    visibility: str


# --- Views ---


class Capabilities(BaseModel):
    """Capability flags of the acting user for one room snapshot."""

    model_config = ConfigDict(frozen=True)

    is_creator: bool = False
    can_manage: bool = False
    can_update_settings: bool = False
    can_delete_room: bool = False
    can_manage_invite_codes: bool = False
    can_invite_by_email: bool = False


class MemberView(BaseModel):
    member: RoomMember
    can_remove: bool = False
    can_leave: bool = False


class InviteCodeView(BaseModel):
    invite_code: RoomInviteCode
    state: InviteCodeState
    is_usable: bool
    usage: str


class RoomView(BaseModel):
    room: Room
    acting_room_role: Optional[RoomRole] = None
    capabilities: Capabilities
    members: List[MemberView] = Field(default_factory=list)
    invite_codes: List[InviteCodeView] = Field(default_factory=list)


class FileView(BaseModel):
    file: RoomFile
    can_change_visibility: bool = False


class ActionResult(BaseModel):
    success: bool = True
    message: str
    redirect: Optional[str] = None
