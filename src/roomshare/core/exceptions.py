"""Custom exception classes for the room access portal.

Local refusals (permission, precondition, validation, in-flight) are raised
before any backend call; BackendError carries the backend status.
"""

from typing import Optional


class RoomShareError(Exception):
    """Base exception for all room access portal errors."""

    pass


class PermissionDeniedError(RoomShareError):
    """Raised when the acting user lacks the capability for an action.

    Computed locally from capability flags; the backend is never called.
    """

    def __init__(self, action: str, message: Optional[str] = None):
        """Initialize the exception.

        Args:
            action: Name of the denied action.
            message: User-facing message. Defaults to a generic one.
        """
        self.action = action
        super().__init__(message or f"You do not have permission to {action}")


class LifecyclePreconditionError(RoomShareError):
    """Raised when a lifecycle action is illegal in the current state.

    For example the room creator trying to leave, or an ineligible identity
    trying to join with an invite code.
    """

    pass


class ValidationError(RoomShareError):
    """Raised when input data validation fails."""

    pass


class ActionInFlightError(RoomShareError):
    """Raised when the same action on the same target is already running."""

    def __init__(self, key: tuple):
        """Initialize the exception.

        Args:
            key: The (action, target...) key already in flight.
        """
        self.key = key
        super().__init__(f"Action '{key[0]}' is already in progress")


class BackendError(RoomShareError):
    """Raised when a call to the rooms backend fails."""

    def __init__(self, status_code: int, message: str):
        """Initialize the exception.

        Args:
            status_code: HTTP status returned (or synthesized) for the call.
            message: Error message reported by the backend.
        """
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class RoomNotFoundError(BackendError):
    """Raised when a requested room cannot be found."""

    def __init__(self, room_id: int):
        """Initialize the exception.

        Args:
            room_id: The ID of the room that was not found.
        """
        self.room_id = room_id
        super().__init__(404, f"Room '{room_id}' not found")


class ResourceNotFoundError(RoomShareError):
    """Raised when an invite code, member or file is not part of a room."""

    pass
