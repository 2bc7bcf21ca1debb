"""Configuration module for the room access portal.

This module provides centralized configuration management, including API
server settings, the upstream rooms backend, room limits and the invite join
policy. All configuration values can be overridden via environment variables.
"""

import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3001"))

# Comma-separated origins allowed to call the portal from a browser
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,"
    "http://127.0.0.1:5173",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Rooms Backend Configuration ---

# Base URL of the REST backend that owns rooms, users and files
BACKEND_API_BASE_URL: str = os.getenv("BACKEND_API_BASE_URL", "http://localhost:8000")

# Timeouts (seconds) for calls to the backend
BACKEND_CONNECT_TIMEOUT: float = float(os.getenv("BACKEND_CONNECT_TIMEOUT", "5.0"))
BACKEND_READ_TIMEOUT: float = float(os.getenv("BACKEND_READ_TIMEOUT", "30.0"))

# --- Membership Configuration ---

# Who may join a room with an invite code. Applies to both the invite link
# and the "enter code" form.
#   regular_users_only: only identities with global role "user"
#   any_user: any authenticated identity
INVITE_JOIN_POLICY: str = os.getenv("INVITE_JOIN_POLICY", "regular_users_only")

# --- Room Settings Limits ---

ROOM_NAME_MAX_LENGTH: int = int(os.getenv("ROOM_NAME_MAX_LENGTH", "100"))
ROOM_MAX_MEMBERS_LIMIT: int = int(os.getenv("ROOM_MAX_MEMBERS_LIMIT", "1000"))

# Where the UI sends a user after leaving or deleting a room
ROOMS_INDEX_PATH: str = "/rooms"

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
