"""Rooms backend client - forwards room operations to the REST backend."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from roomshare.config import (
    BACKEND_API_BASE_URL,
    BACKEND_CONNECT_TIMEOUT,
    BACKEND_READ_TIMEOUT,
)
from roomshare.core.exceptions import BackendError, RoomNotFoundError
from roomshare.schemas.room import (
    FileVisibility,
    Room,
    RoomDetails,
    RoomFile,
    RoomInviteCode,
    RoomMember,
)
from roomshare.schemas.user import User

logger = logging.getLogger(__name__)

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared HTTP client."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=BACKEND_CONNECT_TIMEOUT,
                read=BACKEND_READ_TIMEOUT,
                write=BACKEND_READ_TIMEOUT,
                pool=BACKEND_READ_TIMEOUT,
            )
        )
    return _http_client


async def close_http_client() -> None:
    """Close the shared HTTP client."""
    global _http_client
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
    _http_client = None


def _unwrap(data: Any, key: str) -> Any:
    """Return ``data[key]`` for wrapped payloads, else ``data`` itself."""
    if isinstance(data, dict) and key in data:
        return data[key]
    return data


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        message = data.get("message") or data.get("detail")
        if message:
            return message if isinstance(message, str) else str(message)
    return f"HTTP error! status: {response.status_code}"


class BackendClient:
    """Calls the rooms backend on behalf of one authenticated caller.

    Every method either returns the parsed payload or raises BackendError;
    failures are never retried here.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        auth_token: Optional[str] = None,
        base_url: str = BACKEND_API_BASE_URL,
    ):
        """Initialize BackendClient.

        Args:
            http_client: Shared httpx client.
            auth_token: Bearer token of the caller, passed through as is.
            base_url: Base URL of the rooms backend.
        """
        self._client = http_client
        self._auth_token = auth_token
        self._base_url = base_url.rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        url = f"{self._base_url}{path}"

        logger.debug("Backend %s %s", method, url)
        try:
            response = await self._client.request(
                method, url, json=json, params=params, headers=headers
            )
        except httpx.ConnectError as e:
            logger.error("Failed to connect to rooms backend: %s", e)
            raise BackendError(503, "Rooms backend unavailable") from e
        except httpx.TimeoutException as e:
            logger.error("Timeout calling rooms backend %s %s: %s", method, path, e)
            raise BackendError(504, "Rooms backend timeout") from e
        except httpx.HTTPError as e:
            logger.error("Error calling rooms backend %s %s: %s", method, path, e)
            raise BackendError(502, f"Error connecting to rooms backend: {e}") from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "Backend %s %s failed with %s: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise BackendError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    # --- Identity ---

    async def get_current_user(self) -> User:
        data = await self._request("GET", "/users/me")
        return User.model_validate(_unwrap(data, "user"))

    # --- Rooms ---

    async def get_room_details(self, room_id: int) -> RoomDetails:
        """Fetch a room snapshot together with its members and invite codes.

        Raises:
            RoomNotFoundError: If the backend reports 404 for the room.
            BackendError: For any other failure.
        """
        try:
            data = await self._request("GET", f"/rooms/{room_id}")
        except BackendError as e:
            if e.status_code == 404:
                raise RoomNotFoundError(room_id) from e
            raise
        if not isinstance(data, dict):
            logger.warning("Unexpected room %s payload: %r", room_id, data)
            raise BackendError(502, "Unexpected response from rooms backend")
        return RoomDetails(
            room=Room.model_validate(_unwrap(data, "room")),
            members=[RoomMember.model_validate(m) for m in data.get("members") or []],
            invite_codes=[
                RoomInviteCode.model_validate(c) for c in data.get("invite_codes") or []
            ],
        )

    async def get_room_members(self, room_id: int) -> List[RoomMember]:
        data = await self._request("GET", f"/rooms/{room_id}/members")
        return [RoomMember.model_validate(m) for m in _unwrap(data, "members") or []]

    async def update_room(self, room_id: int, fields: Dict[str, Any]) -> Room:
        data = await self._request("PUT", f"/rooms/{room_id}", json=fields)
        return Room.model_validate(_unwrap(data, "room"))

    async def delete_room(self, room_id: int) -> None:
        await self._request("DELETE", f"/rooms/{room_id}")

    # --- Invite codes and invitations ---

    async def create_room_invite_code(
        self, room_id: int, payload: Dict[str, int]
    ) -> RoomInviteCode:
        data = await self._request("POST", f"/rooms/{room_id}/invite-codes", json=payload)
        return RoomInviteCode.model_validate(_unwrap(data, "invite_code"))

    async def delete_invite_code(self, room_id: int, code_id: int) -> None:
        await self._request("DELETE", f"/rooms/{room_id}/invite-codes/{code_id}")

    async def create_room_invite(
        self, room_id: int, invitee_email: str, message: Optional[str] = None
    ) -> Any:
        payload = {"invitee_email": invitee_email}
        if message:
            payload["message"] = message
        return await self._request("POST", f"/rooms/{room_id}/invites", json=payload)

    # --- Membership ---

    async def join_room(self, code: str) -> Any:
        return await self._request("POST", "/rooms/join", json={"invite_code": code})

    async def remove_member(self, room_id: int, user_id: int) -> None:
        await self._request("DELETE", f"/rooms/{room_id}/members/{user_id}")

    # --- Files ---

    async def get_room_files(self, room_id: int) -> List[RoomFile]:
        data = await self._request("GET", f"/rooms/{room_id}/files")
        return [RoomFile.model_validate(f) for f in _unwrap(data, "files") or []]

    async def toggle_file_visibility(
        self, room_id: int, file_id: int, visibility: FileVisibility
    ) -> None:
        await self._request(
            "PUT",
            f"/rooms/{room_id}/files/{file_id}/visibility",
            json={"visibility": visibility.value},
        )
