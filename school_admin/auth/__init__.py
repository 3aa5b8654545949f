"""
Authentication Module
---------------------
Session lifecycle and authorization for the school administration API.

This module provides:
- Access token minting and verification (JWT, python-jose)
- Opaque refresh tokens, stored only as HMAC hashes
- Refresh rotation with single-use enforcement
- Single-session and all-sessions revocation
- Permission and role gates as FastAPI dependencies

Core Components:
- jwt_utils: token primitives and the permission embedding policy
- token_service: issuance, rotation and revocation
- auth_service: public operations returning result values
- authorization: pure allow/deny decisions
- dependencies: FastAPI dependencies for endpoint protection

Usage:
    from school_admin.auth.dependencies import PermissionChecker

    require_fees = PermissionChecker(["MANAGE_FEES"])

    @router.get("/fees")
    async def list_fees(claims: AccessTokenClaims = Depends(require_fees)):
        ...
"""

from school_admin.auth.models import AccessTokenClaims
from school_admin.auth.results import (
    AuthErrorCode,
    AuthFailure,
    IssuedSession,
)
from school_admin.auth.jwt_utils import (
    PermissionEmbeddingPolicy,
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    decode_access_token,
    generate_refresh_token_raw,
    hash_refresh_token,
    get_token_expiration_seconds,
)
from school_admin.auth.authorization import (
    AuthorizationMode,
    authenticate_bearer,
    authorize,
    authorize_by_role,
)
from school_admin.auth.token_service import TokenService
from school_admin.auth.auth_service import AuthService

__all__ = [
    # Models and results
    "AccessTokenClaims",
    "AuthErrorCode",
    "AuthFailure",
    "IssuedSession",
    # Token primitives
    "PermissionEmbeddingPolicy",
    "TokenExpiredError",
    "TokenInvalidError",
    "create_access_token",
    "decode_access_token",
    "generate_refresh_token_raw",
    "hash_refresh_token",
    "get_token_expiration_seconds",
    # Authorization
    "AuthorizationMode",
    "authenticate_bearer",
    "authorize",
    "authorize_by_role",
    # Services
    "TokenService",
    "AuthService",
]
