"""
JWT Utilities
-------------
Token primitives: signed access tokens and opaque refresh tokens.

Security Best Practices:
- Use python-jose[cryptography] for cryptographic operations
- Always validate token expiration and signature
- Include token type in payload to prevent token confusion attacks
- Refresh tokens are random, never JWTs; only their HMAC is stored
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from loguru import logger

from school_admin.core.config_manager import ApplicationSettings, settings
from school_admin.auth.models import AccessTokenClaims

ACCESS_TOKEN_TYPE = "access"

# 64 random bytes, hex encoded (512 bits of entropy)
REFRESH_TOKEN_BYTES = 64


class TokenExpiredError(Exception):
    """Access token signature is valid but its exp has passed."""


class TokenInvalidError(Exception):
    """Access token is malformed, tampered with, or of the wrong type."""


@dataclass(frozen=True)
class PermissionEmbeddingPolicy:
    """
    Decides whether a permission list travels inside the access token.

    Lists longer than max_embedded_permissions are omitted ("omit" is the
    only supported on_exceed behaviour) and the token carries no
    permissions claim at all.
    """

    max_embedded_permissions: int = 32
    on_exceed: str = "omit"

    def __post_init__(self):
        if self.max_embedded_permissions <= 0:
            raise ValueError("max_embedded_permissions must be positive")
        if self.on_exceed != "omit":
            raise ValueError(f"Unsupported on_exceed behaviour '{self.on_exceed}'")

    def should_embed(self, permissions: List[str]) -> bool:
        return len(permissions) <= self.max_embedded_permissions

    @classmethod
    def from_settings(cls, app_settings: ApplicationSettings) -> "PermissionEmbeddingPolicy":
        return cls(max_embedded_permissions=app_settings.jwt_max_embedded_permissions)


def create_access_token(
    user_id: int,
    role: str,
    permissions: List[str],
    issued_at: Optional[datetime] = None,
    policy: Optional[PermissionEmbeddingPolicy] = None,
    app_settings: ApplicationSettings = settings,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        user_id: Identity id
        role: Role name
        permissions: Resolved permission names for the role
        issued_at: Issuance time (defaults to now, UTC)
        policy: Embedding policy (defaults to the configured ceiling)
        app_settings: Settings providing secret, algorithm and lifetime

    Returns:
        JWT access token string

    Raises:
        ValueError: If user_id or role is missing
        JWTError: If token creation fails
    """
    if not user_id:
        raise ValueError("user_id is required")
    if not role:
        raise ValueError("role is required")

    policy = policy or PermissionEmbeddingPolicy.from_settings(app_settings)
    issued_at = issued_at or datetime.now(timezone.utc)
    expire = issued_at + timedelta(minutes=app_settings.jwt_access_token_expire_minutes)

    payload = {
        "userId": user_id,
        "role": role,
        "exp": expire,
        "iat": issued_at,
        "type": ACCESS_TOKEN_TYPE,
    }

    permission_list = list(permissions or [])
    if policy.should_embed(permission_list):
        payload["permissions"] = permission_list
    else:
        logger.warning(
            f"Permissions omitted from access token for user {user_id}: "
            f"{len(permission_list)} exceeds ceiling of {policy.max_embedded_permissions}"
        )

    try:
        token: str = jwt.encode(
            payload, app_settings.jwt_secret_key, algorithm=app_settings.jwt_algorithm
        )
        logger.debug(f"Access token created for user {user_id} with role {role}")
        return token

    except JWTError as e:
        logger.error(f"Failed to create access token: {e}")
        raise JWTError(f"Token creation failed: {str(e)}")


def decode_access_token(
    token: str,
    now: Optional[datetime] = None,
    app_settings: ApplicationSettings = settings,
) -> AccessTokenClaims:
    """
    Verify and decode an access token. No I/O.

    When `now` is given, expiry is checked against it instead of the wall
    clock, so an injected clock governs both minting and verification.

    Raises:
        TokenExpiredError: Signature valid but token expired
        TokenInvalidError: Anything else (bad signature, malformed, wrong type)
    """
    if not token:
        raise TokenInvalidError("Token is empty")

    try:
        payload = jwt.decode(
            token,
            app_settings.jwt_secret_key,
            algorithms=[app_settings.jwt_algorithm],
            options={"verify_exp": now is None},
        )
    except ExpiredSignatureError as e:
        logger.info(f"Access token expired: {e}")
        raise TokenExpiredError(str(e))
    except JWTError as e:
        logger.warning(f"JWT decode failed: {e}")
        raise TokenInvalidError(str(e))

    try:
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise ValueError(f"Token type mismatch, got '{payload.get('type')}'")
        if "userId" not in payload:
            raise ValueError("Token missing userId")
        if not payload.get("role"):
            raise ValueError("Token missing role")
        if "exp" not in payload:
            raise ValueError("Token missing expiration")

        exp_datetime = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
        iat_datetime = (
            datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
            if "iat" in payload
            else None
        )
        permissions = payload.get("permissions")
        if permissions is not None and not isinstance(permissions, list):
            raise ValueError("permissions claim must be a list")

        claims = AccessTokenClaims(
            user_id=int(payload["userId"]),
            role=str(payload["role"]),
            permissions=[str(p) for p in permissions] if permissions else [],
            permissions_embedded=permissions is not None,
            exp=exp_datetime,
            iat=iat_datetime,
            type=payload["type"],
        )
    except (ValueError, TypeError) as e:
        logger.warning(f"Token payload validation failed: {e}")
        raise TokenInvalidError(f"Invalid token payload: {str(e)}")

    if now is not None and claims.exp <= now:
        logger.info(f"Access token expired for user {claims.user_id}")
        raise TokenExpiredError("Signature has expired.")

    return claims


def generate_refresh_token_raw() -> str:
    """Return a new high-entropy opaque refresh token."""
    return secrets.token_hex(REFRESH_TOKEN_BYTES)


def hash_refresh_token(raw_token: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of a raw refresh token. This is all storage sees."""
    return hmac.new(
        secret.encode("utf-8"), raw_token.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def get_token_expiration_seconds(app_settings: ApplicationSettings = settings) -> int:
    """
    Get the access token expiration time in seconds.
    """
    return app_settings.access_token_expire_seconds
