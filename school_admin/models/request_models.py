"""
Request Models
==============

Pydantic request models for the authentication API, plus the fixed role set
shared by the credential store, the token issuer and the authorization gate.
"""

from typing import Dict, Optional
from enum import Enum
from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    """Fixed role set seeded at provisioning time."""

    SUPER_ADMIN = "SUPER_ADMIN"  # Bypasses every permission check
    ADMIN = "ADMIN"
    REGISTRAR = "REGISTRAR"
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


# Stable role identifiers, matching the seeded roles table.
ROLE_IDS: Dict[int, UserRole] = {
    1: UserRole.SUPER_ADMIN,
    2: UserRole.ADMIN,
    3: UserRole.REGISTRAR,
    4: UserRole.TEACHER,
    5: UserRole.STUDENT,
}


class LoginRequest(BaseModel):
    """Request model for username/password login."""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

    class Config:
        json_schema_extra = {
            "example": {"username": "alice", "password": "SecurePass123"}
        }


class RefreshTokenRequest(BaseModel):
    """Exchange a refresh token for a new access/refresh pair."""

    refresh_token: str = Field(..., min_length=1, description="Raw refresh token")

    class Config:
        json_schema_extra = {
            "example": {"refresh_token": "4f9c0e5b1d...c7a2"}
        }


class LogoutRequest(BaseModel):
    """End a session. A missing token still logs out successfully."""

    refresh_token: Optional[str] = Field(
        default=None, description="Raw refresh token to revoke"
    )


class RevokeAllRequest(BaseModel):
    """
    Security reset. When user_id is omitted the caller's own sessions
    are revoked.
    """

    user_id: Optional[int] = Field(
        default=None, gt=0, description="Identity whose sessions are revoked"
    )
