"""Dependency injection module for FastAPI.

Request-scoped wiring: bearer token, backend client, acting user and the
room manager built from them.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from roomshare import config
from roomshare.core.exceptions import BackendError
from roomshare.schemas.user import ActingUser
from roomshare.services.backend_client import BackendClient, get_http_client
from roomshare.utils.in_flight import InFlightGuard
from roomshare.utils.membership import JoinPolicy, parse_join_policy
from roomshare.utils.room_manager import RoomManager

logger = logging.getLogger(__name__)

# HTTP Bearer token security; missing tokens are answered with 401 below
security = HTTPBearer(auto_error=False)

# Parsed at import so a mistyped INVITE_JOIN_POLICY stops the app from starting
JOIN_POLICY: JoinPolicy = parse_join_policy(config.INVITE_JOIN_POLICY)

# Singleton guard shared by all requests in this process
_in_flight_guard: InFlightGuard = InFlightGuard()


def get_in_flight_guard() -> InFlightGuard:
    """Get the process-wide InFlightGuard instance."""
    return _in_flight_guard


def get_auth_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Extract the caller's bearer token.

    Raises:
        HTTPException: If no bearer token was sent.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_backend_client(token: str = Depends(get_auth_token)) -> BackendClient:
    """Get a BackendClient bound to the caller's token.

    Args:
        token: Caller's bearer token, forwarded to the backend.

    Returns:
        BackendClient instance using the shared HTTP client.
    """
    return BackendClient(get_http_client(), auth_token=token)


async def get_current_user(
    backend: BackendClient = Depends(get_backend_client),
) -> ActingUser:
    """Resolve the acting user from the backend session.

    Raises:
        HTTPException: 401 if the backend rejects the token, otherwise the
            backend's status.
    """
    try:
        user = await backend.get_current_user()
    except BackendError as e:
        if e.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
            ) from e
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    return ActingUser.from_user(user)


def get_join_policy() -> JoinPolicy:
    """Get the configured invite join policy."""
    return JOIN_POLICY


def get_room_manager(
    backend: BackendClient = Depends(get_backend_client),
    current_user: ActingUser = Depends(get_current_user),
    guard: InFlightGuard = Depends(get_in_flight_guard),
    join_policy: JoinPolicy = Depends(get_join_policy),
) -> RoomManager:
    """Get a RoomManager for the current request."""
    return RoomManager(backend, current_user, guard, join_policy)


# Type aliases for dependency injection
CurrentUserDep = Annotated[ActingUser, Depends(get_current_user)]
RoomManagerDep = Annotated[RoomManager, Depends(get_room_manager)]
