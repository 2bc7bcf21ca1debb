"""Invite code lifecycle utilities.

Invite codes move Active -> Exhausted | Expired, and are hard-deleted by an
explicit revoke from any state. Exhaustion and expiry are derived at read
time from the row as last returned by the backend; nothing here is cached.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

import pytz

from roomshare.core.exceptions import ValidationError
from roomshare.schemas.room import InviteCodeState, InviteCodeView, RoomInviteCode

logger = logging.getLogger(__name__)

UNLIMITED_SYMBOL = "∞"


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO timestamp from the backend into an aware UTC datetime.

    Naive timestamps are taken to be UTC.

    Raises:
        ValidationError: If the value is not an ISO timestamp.
    """
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        return pytz.utc.localize(parsed)
    return parsed.astimezone(pytz.utc)


def normalize_code(code: Optional[str]) -> str:
    """Strip surrounding whitespace from a user-entered code."""
    return (code or "").strip()


def codes_match(left: str, right: str) -> bool:
    """Compare two codes case-insensitively."""
    return normalize_code(left).upper() == normalize_code(right).upper()


def build_create_payload(
    max_uses: Optional[int] = None, expires_hours: Optional[int] = None
) -> Dict[str, int]:
    """Build the body for an invite code creation call.

    ``0`` and ``None`` both mean unlimited uses / never expires and are left
    out of the payload.

    Args:
        max_uses: Maximum number of joins allowed.
        expires_hours: Hours until the code expires.

    Returns:
        Dictionary with only the bounded limits.

    Raises:
        ValidationError: If either limit is negative.
    """
    payload: Dict[str, int] = {}
    for name, value in (("max_uses", max_uses), ("expires_hours", expires_hours)):
        if value is None or value == 0:
            continue
        if value < 0:
            raise ValidationError(f"{name} cannot be negative")
        payload[name] = value
    return payload


def is_exhausted(code: RoomInviteCode) -> bool:
    return code.max_uses is not None and code.current_uses >= code.max_uses


def is_expired(code: RoomInviteCode, now: Optional[datetime] = None) -> bool:
    """Check whether the code's expiry time has passed.

    Unparseable expiry timestamps count as expired.
    """
    if code.expires_at is None:
        return False
    now = now or _utc_now()
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    try:
        return now > parse_timestamp(code.expires_at)
    except ValidationError:
        logger.warning(
            "Invite code %s has an unparseable expires_at %r", code.id, code.expires_at
        )
        return True


def is_effectively_usable(code: RoomInviteCode, now: Optional[datetime] = None) -> bool:
    """Whether the code currently grants entry.

    ``is_active`` alone is not enough because it only changes on reload, so
    remaining uses and expiry are evaluated as well.
    """
    return code.is_active and not is_exhausted(code) and not is_expired(code, now)


def invite_code_state(
    code: RoomInviteCode, now: Optional[datetime] = None
) -> InviteCodeState:
    if is_exhausted(code):
        return InviteCodeState.EXHAUSTED
    if is_expired(code, now):
        return InviteCodeState.EXPIRED
    if not code.is_active:
        return InviteCodeState.INACTIVE
    return InviteCodeState.ACTIVE


def remaining_uses(code: RoomInviteCode) -> Optional[int]:
    """Number of joins left, or None when unlimited."""
    if code.max_uses is None:
        return None
    return max(code.max_uses - code.current_uses, 0)


def format_usage(code: RoomInviteCode) -> str:
    """Render usage as e.g. ``3/5`` or ``2/∞``."""
    limit = UNLIMITED_SYMBOL if code.max_uses is None else str(code.max_uses)
    return f"{code.current_uses}/{limit}"


def build_invite_code_view(
    code: RoomInviteCode, now: Optional[datetime] = None
) -> InviteCodeView:
    now = now or _utc_now()
    return InviteCodeView(
        invite_code=code,
        state=invite_code_state(code, now),
        is_usable=is_effectively_usable(code, now),
        usage=format_usage(code),
    )
