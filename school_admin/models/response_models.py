"""
Response Models
--------------
Pydantic models for API response validation.
Simple, focused schemas for returning data to clients.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict


# ============================================================================
# IDENTITY / SESSION RESPONSE MODELS
# ============================================================================
class IdentityView(BaseModel):
    """Public view of an identity - never carries the password hash."""

    id: int
    username: str
    email: str
    role: str
    permissions: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "id": 7,
                "username": "alice",
                "email": "alice@school.example.com",
                "role": "TEACHER",
                "permissions": ["VIEW_STUDENT"],
            }
        }


class AuthSessionResponse(BaseModel):
    """
    Returned by login and refresh.

    The refresh token is the only copy the server ever hands out;
    storage keeps just its hash.
    """

    access_token: str = Field(..., description="Signed JWT access token")
    token_type: str = Field(default="bearer", description="Token type (always 'bearer')")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    refresh_token: str = Field(..., description="Opaque single-use refresh token")
    user: IdentityView


class MessageResponse(BaseModel):
    message: str


# ============================================================================
# ROLE / PERMISSION RESPONSE MODELS
# ============================================================================
class PermissionItem(BaseModel):
    id: int
    name: str


class RolePermissionsItem(BaseModel):
    id: int
    name: str
    permissions: List[PermissionItem] = Field(default_factory=list)


class RolePermissionsResponse(BaseModel):
    """All roles with their grants, plus the full permission catalogue."""

    roles: List[RolePermissionsItem]
    all_permissions: List[PermissionItem]

    class Config:
        json_schema_extra = {
            "example": {
                "roles": [
                    {
                        "id": 3,
                        "name": "REGISTRAR",
                        "permissions": [
                            {"id": 1, "name": "CREATE_STUDENT"},
                            {"id": 2, "name": "VIEW_STUDENT"},
                        ],
                    }
                ],
                "all_permissions": [
                    {"id": 1, "name": "CREATE_STUDENT"},
                    {"id": 2, "name": "VIEW_STUDENT"},
                ],
            }
        }


class AuthConfigResponse(BaseModel):
    """Non-secret token configuration."""

    jwt_algorithm: str
    access_token_expire_minutes: int
    refresh_token_expire_days: int
    max_embedded_permissions: int
    token_type: str = "bearer"


# ============================================================================
# HEALTH RESPONSE MODELS
# ============================================================================
class DependencyHealth(BaseModel):
    """
    Dependency health response model.

    PostgreSQL is the only infrastructure dependency of the service.
    """

    postgresql: bool = Field(..., description="PostgreSQL database health status")
    status: str = Field(
        ..., description="Overall health status: 'healthy' or 'unhealthy'"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "postgresql": True,
                "status": "healthy",
                "timestamp": "2026-10-13T10:30:00Z",
            }
        }


class HealthStatus(BaseModel):
    """
    Health check response schema.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2026-10-13T10:30:00Z",
                "version": "1.0.0",
            }
        }
    )

    status: str = Field(..., description="Service health status")
    version: Optional[str] = Field(default=None, description="Application version")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Health check timestamp",
    )

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: str) -> str:
        if value not in ("healthy", "unhealthy"):
            raise ValueError("status must be 'healthy' or 'unhealthy'")
        return value
