"""
Auth Result Types
-----------------
Closed set of failure outcomes returned (not raised) by the public auth
operations, and the success value shared by login and refresh.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from school_admin.auth.models import AccessTokenClaims
from school_admin.models.response_models import IdentityView


class AuthErrorCode(str, Enum):
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_OR_EXPIRED_TOKEN = "INVALID_OR_EXPIRED_TOKEN"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    INSUFFICIENT_PERMISSION = "INSUFFICIENT_PERMISSION"
    INSUFFICIENT_ROLE = "INSUFFICIENT_ROLE"
    STORAGE_FAILURE = "STORAGE_FAILURE"


DEFAULT_MESSAGES: Dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_CREDENTIALS: "Invalid username or password",
    AuthErrorCode.INVALID_OR_EXPIRED_TOKEN: "Invalid or expired refresh token",
    AuthErrorCode.TOKEN_MISSING: "Access denied. No token provided.",
    AuthErrorCode.TOKEN_EXPIRED: "Token expired. Please login again.",
    AuthErrorCode.TOKEN_INVALID: "Invalid token.",
    AuthErrorCode.INSUFFICIENT_PERMISSION: "Insufficient permissions.",
    AuthErrorCode.INSUFFICIENT_ROLE: "Access denied. Insufficient role privileges.",
    AuthErrorCode.STORAGE_FAILURE: "Internal server error",
}


@dataclass(frozen=True)
class AuthFailure:
    """
    A recovered domain failure.

    `required` lists the permissions or roles a denied caller lacked;
    `field` names the offending input where one applies.
    """

    code: AuthErrorCode
    message: str
    field: Optional[str] = None
    required: Optional[List[str]] = None

    @classmethod
    def of(
        cls,
        code: AuthErrorCode,
        field: Optional[str] = None,
        required: Optional[List[str]] = None,
    ) -> "AuthFailure":
        return cls(code=code, message=DEFAULT_MESSAGES[code], field=field, required=required)


@dataclass(frozen=True)
class IssuedSession:
    """Access/refresh pair handed to the client after login or rotation."""

    access_token: str
    refresh_token: str
    expires_in: int
    user: IdentityView
    token_type: str = "bearer"


LoginResult = Union[IssuedSession, AuthFailure]
RefreshResult = Union[IssuedSession, AuthFailure]
AuthenticationResult = Union[AccessTokenClaims, AuthFailure]
AuthorizationResult = Union[AccessTokenClaims, AuthFailure]
