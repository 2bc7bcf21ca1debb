"""Shared test fixtures for the room access portal tests.

Provides model factories and an in-memory stand-in for the rooms backend
that records every call it receives.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from roomshare.core.exceptions import RoomNotFoundError
from roomshare.schemas.room import (
    Room,
    RoomDetails,
    RoomFile,
    RoomInviteCode,
    RoomMember,
)
from roomshare.schemas.user import ActingUser, User
from roomshare.utils.in_flight import InFlightGuard
from roomshare.utils.membership import JoinPolicy
from roomshare.utils.room_manager import RoomManager

ROOM_ID = 1
CREATOR_ID = 7
ADMIN_ID = 8
MEMBER_ID = 9
OUTSIDER_ID = 42


# =============================================================================
# Factories
# =============================================================================

def make_room(room_id: int = ROOM_ID, creator_id: Any = CREATOR_ID, **overrides) -> Room:
    data = {
        "id": room_id,
        "name": "Design Team",
        "description": "Shared drafts",
        "creator_id": creator_id,
        "is_private": True,
        "max_members": 10,
        "current_members": 3,
        "created_at": "2025-01-01T00:00:00Z",
    }
    data.update(overrides)
    return Room.model_validate(data)


def make_member(user_id: Any, role: Any = "member", room_id: Optional[int] = ROOM_ID, **user) -> RoomMember:
    return RoomMember.model_validate(
        {
            "id": 1000 + int(user_id),
            "user_id": user_id,
            "room_id": room_id,
            "role": role,
            "joined_at": "2025-01-02T00:00:00Z",
            "user": {
                "id": user_id,
                "username": user.get("username", f"user{user_id}"),
                "full_name": user.get("full_name", f"User {user_id}"),
                "email": user.get("email", f"user{user_id}@example.com"),
                "role": "user",
            },
        }
    )


def make_code(code_id: int = 1, **overrides) -> RoomInviteCode:
    data = {
        "id": code_id,
        "room_id": ROOM_ID,
        "code": f"CODE{code_id:04d}",
        "max_uses": None,
        "current_uses": 0,
        "expires_at": None,
        "is_active": True,
        "created_at": "2025-01-01T00:00:00Z",
    }
    data.update(overrides)
    return RoomInviteCode.model_validate(data)


def make_file(file_id: int, user_id: int, visibility: str = "private") -> RoomFile:
    return RoomFile.model_validate(
        {
            "id": file_id,
            "room_id": ROOM_ID,
            "user_id": user_id,
            "visibility": visibility,
            "filename": f"file{file_id}.pdf",
            "original_filename": f"file{file_id}.pdf",
            "file_size": 2048,
            "category": "document",
            "is_encrypted": file_id % 2 == 0,
        }
    )


def acting(user_id: Optional[int], role: str = "user") -> ActingUser:
    return ActingUser(id=user_id, role=role)


# =============================================================================
# Fake backend
# =============================================================================

class FakeBackend:
    """In-memory rooms backend recording every call.

    ``failures`` maps a method name to the exception it should raise.
    ``hold_mutations`` (an asyncio.Event) blocks mutating calls until set.
    """

    def __init__(self, details: RoomDetails, files: Optional[List[RoomFile]] = None):
        self.details = details
        self.files = files or []
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}
        self.hold_mutations: Optional[asyncio.Event] = None
        self._next_code_id = 100

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def _record(self, name: str, *args, mutating: bool = False) -> None:
        self.calls.append((name,) + args)
        if mutating and self.hold_mutations is not None:
            await self.hold_mutations.wait()
        if name in self.failures:
            raise self.failures[name]

    async def get_current_user(self) -> User:
        await self._record("get_current_user")
        return User(id=MEMBER_ID, username="user9", role="user")

    async def get_room_details(self, room_id: int) -> RoomDetails:
        await self._record("get_room_details", room_id)
        if room_id != self.details.room.id:
            raise RoomNotFoundError(room_id)
        return self.details.model_copy(deep=True)

    async def get_room_members(self, room_id: int) -> List[RoomMember]:
        await self._record("get_room_members", room_id)
        return [m.model_copy(deep=True) for m in self.details.members]

    async def create_room_invite_code(self, room_id: int, payload: dict) -> RoomInviteCode:
        await self._record("create_room_invite_code", room_id, payload, mutating=True)
        self._next_code_id += 1
        code = make_code(
            self._next_code_id,
            max_uses=payload.get("max_uses"),
            expires_at="2999-01-01T00:00:00Z" if payload.get("expires_hours") else None,
        )
        self.details.invite_codes.append(code)
        return code

    async def delete_invite_code(self, room_id: int, code_id: int) -> None:
        await self._record("delete_invite_code", room_id, code_id, mutating=True)
        self.details.invite_codes = [c for c in self.details.invite_codes if c.id != code_id]

    async def create_room_invite(self, room_id: int, invitee_email: str, message=None) -> dict:
        await self._record("create_room_invite", room_id, invitee_email, message, mutating=True)
        return {"message": "Invitation sent"}

    async def join_room(self, code: str) -> dict:
        await self._record("join_room", code, mutating=True)
        return {"message": "Joined"}

    async def remove_member(self, room_id: int, user_id: int) -> None:
        await self._record("remove_member", room_id, user_id, mutating=True)
        self.details.members = [m for m in self.details.members if m.user_id != user_id]
        self.details.room.current_members = len(self.details.members)

    async def update_room(self, room_id: int, fields: dict) -> Room:
        await self._record("update_room", room_id, fields, mutating=True)
        self.details.room = self.details.room.model_copy(update=fields)
        return self.details.room

    async def delete_room(self, room_id: int) -> None:
        await self._record("delete_room", room_id, mutating=True)

    async def get_room_files(self, room_id: int) -> List[RoomFile]:
        await self._record("get_room_files", room_id)
        return [f.model_copy(deep=True) for f in self.files]

    async def toggle_file_visibility(self, room_id: int, file_id: int, visibility) -> None:
        await self._record("toggle_file_visibility", room_id, file_id, visibility, mutating=True)
        self.files = [
            f.model_copy(update={"visibility": visibility}) if f.id == file_id else f
            for f in self.files
        ]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def room_details() -> RoomDetails:
    """Room 1 created by user 7, with an admin (8) and a member (9)."""
    return RoomDetails(
        room=make_room(),
        members=[
            make_member(CREATOR_ID, "creator", full_name="Carol Creator"),
            make_member(ADMIN_ID, "admin", full_name="Adam Admin"),
            make_member(MEMBER_ID, "member", full_name="Mia Member", email="mia@rooms.io"),
        ],
        invite_codes=[
            make_code(1),
            make_code(2, max_uses=1, current_uses=1),
            make_code(3, expires_at="2000-01-01T00:00:00Z"),
        ],
    )


@pytest.fixture
def room_files() -> List[RoomFile]:
    return [make_file(100, MEMBER_ID), make_file(101, ADMIN_ID, "public")]


@pytest.fixture
def backend(room_details, room_files) -> FakeBackend:
    return FakeBackend(room_details, room_files)


@pytest.fixture
def guard() -> InFlightGuard:
    return InFlightGuard()


@pytest.fixture
def manager_for(backend, guard):
    """Build a RoomManager acting as the given user id."""

    def _build(user_id: Optional[int], role: str = "user", policy: JoinPolicy = JoinPolicy.REGULAR_USERS_ONLY):
        return RoomManager(backend, acting(user_id, role), guard, policy)

    return _build
