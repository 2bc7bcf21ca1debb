"""Room management routes."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from roomshare.config import ROOMS_INDEX_PATH
from roomshare.core.dependencies import CurrentUserDep, RoomManagerDep
from roomshare.core.exceptions import (
    ActionInFlightError,
    BackendError,
    PermissionDeniedError,
    ResourceNotFoundError,
    RoomShareError,
)
from roomshare.core.permissions import can_create_rooms
from roomshare.schemas.room import (
    ActionResult,
    CreateInviteCodeRequest,
    CreateRoomInviteRequest,
    FileView,
    JoinRoomRequest,
    MemberView,
    RoomView,
    UpdateFileVisibilityRequest,
    UpdateRoomRequest,
)
from roomshare.utils.membership import JoinEntryPoint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rooms", tags=["Room"])

DASHBOARD_PATH = "/dashboard"


def _http_error(exc: RoomShareError) -> HTTPException:
    """Translate a portal error into an HTTPException."""
    if isinstance(exc, BackendError):
        status_code = exc.status_code
    elif isinstance(exc, PermissionDeniedError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ResourceNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ActionInFlightError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.warning("Refused room request (%s): %s", type(exc).__name__, exc)
    return HTTPException(status_code=status_code, detail=str(exc))


@router.get("/creation-eligibility", summary="Whether the caller may create rooms")
def get_creation_eligibility(current_user: CurrentUserDep) -> dict:
    return {"can_create_rooms": can_create_rooms(current_user)}


@router.post("/join", response_model=ActionResult, summary="Join a room with an invite code")
async def join_room(req: JoinRoomRequest, room_manager: RoomManagerDep) -> ActionResult:
    try:
        await room_manager.join_room(req.invite_code, JoinEntryPoint.CODE_FORM)
    except RoomShareError as exc:
        raise _http_error(exc)
    return ActionResult(message="Successfully joined the room!", redirect=DASHBOARD_PATH)


@router.post(
    "/join/{invite_code}",
    response_model=ActionResult,
    summary="Join a room from an invite link",
)
async def join_room_from_link(invite_code: str, room_manager: RoomManagerDep) -> ActionResult:
    """Join a room from a shared invite link.

    Args:
        invite_code: Invite code taken from the link.
        room_manager: Injected RoomManager instance.

    Returns:
        ActionResult pointing the UI at the dashboard.

    Raises:
        HTTPException: If the caller is not eligible or the backend rejects
            the code.
    """
    try:
        await room_manager.join_room(invite_code, JoinEntryPoint.INVITE_LINK)
    except RoomShareError as exc:
        raise _http_error(exc)
    return ActionResult(message="You have successfully joined the room.", redirect=DASHBOARD_PATH)


@router.get("/{room_id}", response_model=RoomView, summary="Room details with capabilities")
async def get_room(room_id: int, room_manager: RoomManagerDep) -> RoomView:
    try:
        return await room_manager.get_room_view(room_id)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.get("/{room_id}/members", response_model=List[MemberView], summary="List room members")
async def list_room_members(
    room_id: int,
    room_manager: RoomManagerDep,
    search: Optional[str] = None,
    role: Optional[str] = None,
) -> List[MemberView]:
    try:
        return await room_manager.list_members(room_id, search=search, role=role)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.get("/{room_id}/files", response_model=List[FileView], summary="List room files")
async def list_room_files(room_id: int, room_manager: RoomManagerDep) -> List[FileView]:
    try:
        return await room_manager.list_files(room_id)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.post(
    "/{room_id}/invite-codes",
    response_model=RoomView,
    summary="Create an invite code",
)
async def create_invite_code(
    room_id: int,
    req: CreateInviteCodeRequest,
    room_manager: RoomManagerDep,
) -> RoomView:
    """Create an invite code for a room.

    Permission requirements:
    - Room creator or room admin
    - Everyone else: no permission

    ``max_uses`` and ``expires_hours`` of 0 or omitted mean unlimited.

    Returns:
        The reloaded room view, including the new code.
    """
    try:
        return await room_manager.create_invite_code(
            room_id, max_uses=req.max_uses, expires_hours=req.expires_hours
        )
    except RoomShareError as exc:
        raise _http_error(exc)


@router.delete(
    "/{room_id}/invite-codes/{code_id}",
    response_model=RoomView,
    summary="Revoke an invite code",
)
async def delete_invite_code(
    room_id: int,
    code_id: int,
    room_manager: RoomManagerDep,
) -> RoomView:
    try:
        return await room_manager.delete_invite_code(room_id, code_id)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.post("/{room_id}/invites", response_model=RoomView, summary="Invite a user by email")
async def invite_user(
    room_id: int,
    req: CreateRoomInviteRequest,
    room_manager: RoomManagerDep,
) -> RoomView:
    try:
        return await room_manager.invite_by_email(room_id, req.invitee_email, req.message)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.delete(
    "/{room_id}/members/{user_id}",
    response_model=RoomView,
    summary="Remove a member",
)
async def remove_member(
    room_id: int,
    user_id: int,
    room_manager: RoomManagerDep,
) -> RoomView:
    """Remove a member from a room.

    Room admins and the creator can remove anyone except themselves. Members
    use the leave endpoint to remove themselves.
    """
    try:
        return await room_manager.remove_member(room_id, user_id)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.post("/{room_id}/leave", response_model=ActionResult, summary="Leave a room")
async def leave_room(room_id: int, room_manager: RoomManagerDep) -> ActionResult:
    """Leave a room (remove the caller's own membership).

    The room creator cannot leave their own room.
    """
    try:
        await room_manager.leave_room(room_id)
    except RoomShareError as exc:
        raise _http_error(exc)
    return ActionResult(message="Left room successfully", redirect=ROOMS_INDEX_PATH)


@router.patch("/{room_id}", response_model=RoomView, summary="Update room settings")
async def update_room(
    room_id: int,
    req: UpdateRoomRequest,
    room_manager: RoomManagerDep,
) -> RoomView:
    try:
        return await room_manager.update_room_settings(room_id, req)
    except RoomShareError as exc:
        raise _http_error(exc)


@router.delete("/{room_id}", response_model=ActionResult, summary="Delete a room")
async def delete_room(room_id: int, room_manager: RoomManagerDep) -> ActionResult:
    try:
        await room_manager.delete_room(room_id)
    except RoomShareError as exc:
        raise _http_error(exc)
    return ActionResult(message="Room deleted successfully", redirect=ROOMS_INDEX_PATH)


@router.patch(
    "/{room_id}/files/{file_id}/visibility",
    response_model=List[FileView],
    summary="Set file visibility",
)
async def set_file_visibility(
    room_id: int,
    file_id: int,
    req: UpdateFileVisibilityRequest,
    room_manager: RoomManagerDep,
) -> List[FileView]:
    try:
        return await room_manager.set_file_visibility(room_id, file_id, req.visibility)
    except RoomShareError as exc:
        raise _http_error(exc)
