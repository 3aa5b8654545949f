"""
API Models Package
---------------------
Pydantic models for the authentication API.

This package provides validated data models for:
- Login, refresh, logout and revoke-all requests
- Session, identity and role/permission responses
- Health check responses
"""

# Request models
from school_admin.models.request_models import (
    # Enums
    UserRole,
    ROLE_IDS,
    # Auth requests
    LoginRequest,
    RefreshTokenRequest,
    LogoutRequest,
    RevokeAllRequest,
)

# Response models
from school_admin.models.response_models import (
    # Session responses
    IdentityView,
    AuthSessionResponse,
    MessageResponse,
    AuthConfigResponse,
    # Role/permission responses
    PermissionItem,
    RolePermissionsItem,
    RolePermissionsResponse,
    # Health responses
    HealthStatus,
    DependencyHealth,
)

__all__ = [
    # Enums
    "UserRole",
    "ROLE_IDS",
    # Auth requests
    "LoginRequest",
    "RefreshTokenRequest",
    "LogoutRequest",
    "RevokeAllRequest",
    # Session responses
    "IdentityView",
    "AuthSessionResponse",
    "MessageResponse",
    "AuthConfigResponse",
    # Role/permission responses
    "PermissionItem",
    "RolePermissionsItem",
    "RolePermissionsResponse",
    # Health
    "HealthStatus",
    "DependencyHealth",
]
