"""User schema definitions.

The backend owns users; this module only describes the fields the portal
reads from them.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from roomshare.core.roles import GlobalRole, parse_global_role


class User(BaseModel):
    id: int = Field(description="The unique identifier of the user.")
    username: str = Field(default="", description="Login name.")
    full_name: Optional[str] = Field(default=None, description="Display name.")
    email: Optional[str] = Field(default=None, description="Email address.")
    role: Optional[GlobalRole] = Field(
        default=None,
        description="Account-wide role: user, admin or superadmin.",
    )
    is_active: bool = Field(default=True)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Optional[GlobalRole]:
        return parse_global_role(value)


class ActingUser(BaseModel):
    """The identity on whose behalf an action is evaluated."""

    id: Optional[int] = None
    role: Optional[GlobalRole] = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Optional[GlobalRole]:
        return parse_global_role(value)

    @classmethod
    def from_user(cls, user: User) -> "ActingUser":
        return cls(id=user.id, role=user.role)
