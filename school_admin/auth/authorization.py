"""
Authorization Gate
------------------
Pure decisions over access token claims. Nothing here touches storage;
FastAPI wiring lives in dependencies.py.
"""

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional, Union

from loguru import logger

from school_admin.core.config_manager import ApplicationSettings, settings
from school_admin.auth.jwt_utils import (
    TokenExpiredError,
    TokenInvalidError,
    decode_access_token,
)
from school_admin.auth.models import AccessTokenClaims
from school_admin.auth.results import (
    AuthenticationResult,
    AuthErrorCode,
    AuthFailure,
    AuthorizationResult,
)
from school_admin.models.request_models import ROLE_IDS, UserRole


class AuthorizationMode(str, Enum):
    ALL = "ALL"  # every required permission must be held
    ANY = "ANY"  # at least one required permission must be held


def extract_bearer_token(authorization_header: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header value."""
    if not authorization_header:
        return None
    scheme, _, token = authorization_header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate_bearer(
    token: Optional[str],
    now: Optional[datetime] = None,
    app_settings: ApplicationSettings = settings,
) -> AuthenticationResult:
    """
    Verify an access token and return its claims.

    A missing token, an expired token and an otherwise invalid token are
    three distinct failures.
    """
    if not token:
        return AuthFailure.of(AuthErrorCode.TOKEN_MISSING)

    try:
        return decode_access_token(token, now=now, app_settings=app_settings)
    except TokenExpiredError:
        return AuthFailure.of(AuthErrorCode.TOKEN_EXPIRED)
    except TokenInvalidError:
        return AuthFailure.of(AuthErrorCode.TOKEN_INVALID)


def normalize_role(role: Union[str, int, UserRole]) -> str:
    """
    Map a role name or numeric role id to its canonical name.

    Raises:
        ValueError: If the role is unknown
    """
    if isinstance(role, UserRole):
        return role.value
    if isinstance(role, int) and not isinstance(role, bool):
        if role not in ROLE_IDS:
            raise ValueError(f"Unknown role id {role}")
        return ROLE_IDS[role].value
    if isinstance(role, str):
        candidate = role.strip().upper()
        if candidate.isdigit():
            return normalize_role(int(candidate))
        if candidate in UserRole.__members__:
            return candidate
    raise ValueError(
        f"Invalid role '{role}'. Must be one of: {', '.join(UserRole.__members__)}"
    )


def authorize(
    claims: AccessTokenClaims,
    required_permissions: Iterable[str],
    mode: AuthorizationMode = AuthorizationMode.ALL,
) -> AuthorizationResult:
    """
    Check embedded permissions against a requirement.

    SUPER_ADMIN is always allowed. In ALL mode an empty requirement allows;
    in ANY mode it denies, since no permission can match.
    """
    required: List[str] = list(required_permissions)

    if claims.role == UserRole.SUPER_ADMIN.value:
        return claims

    held = set(claims.permissions)
    if mode == AuthorizationMode.ALL:
        allowed = all(permission in held for permission in required)
    else:
        allowed = any(permission in held for permission in required)

    if not allowed:
        logger.warning(
            f"Permission denied for user {claims.user_id} with role {claims.role}: "
            f"requires {mode.value} of {required}"
        )
        return AuthFailure.of(AuthErrorCode.INSUFFICIENT_PERMISSION, required=required)

    return claims


def authorize_by_role(
    claims: AccessTokenClaims,
    allowed_roles: Iterable[Union[str, int, UserRole]],
) -> AuthorizationResult:
    """
    Role membership test against an allow-list of names or ids.

    The caller's role is normalized the same way, so "admin" or "2" in a
    token matches ADMIN. A role that cannot be normalized is denied.
    """
    allowed = [normalize_role(role) for role in allowed_roles]

    try:
        caller_role = normalize_role(claims.role)
    except ValueError:
        caller_role = None

    if caller_role not in allowed:
        logger.warning(
            f"Access denied for user {claims.user_id} with role {claims.role}"
        )
        return AuthFailure.of(AuthErrorCode.INSUFFICIENT_ROLE, required=allowed)

    return claims
