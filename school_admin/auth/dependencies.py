"""
FastAPI Authentication Dependencies
-----------------------------------
FastAPI dependencies for JWT-based authentication, role gating and
permission gating.

Security Best Practices:
- Stateless authorization using JWT tokens
- Permission checks read embedded claims; no database query per request
- Missing, expired and invalid tokens produce distinct 401 messages
"""

from typing import Iterable, List, Optional, Union

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from loguru import logger

from school_admin.auth.authorization import (
    AuthorizationMode,
    authenticate_bearer,
    authorize,
    extract_bearer_token,
    authorize_by_role,
    normalize_role,
)
from school_admin.auth.auth_service import STORAGE_ERRORS, AuthService
from school_admin.auth.models import AccessTokenClaims
from school_admin.auth.results import AuthErrorCode, AuthFailure
from school_admin.core.service_container import ServiceContainer
from school_admin.models.request_models import UserRole

# Raw Authorization header; parsed by extract_bearer_token
authorization_header = APIKeyHeader(
    name="Authorization",
    auto_error=False,  # Don't auto-raise, a missing token has its own 401 message
    description="Bearer <access token>",
)

AUTH_ERROR_STATUS = {
    AuthErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INVALID_OR_EXPIRED_TOKEN: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.TOKEN_MISSING: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    AuthErrorCode.INSUFFICIENT_PERMISSION: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
    AuthErrorCode.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_exception_for(failure: AuthFailure) -> HTTPException:
    """Translate an AuthFailure into the HTTPException the API returns."""
    status_code = AUTH_ERROR_STATUS[failure.code]
    headers = (
        {"WWW-Authenticate": "Bearer"}
        if status_code == status.HTTP_401_UNAUTHORIZED
        else None
    )
    return HTTPException(status_code=status_code, detail=failure.message, headers=headers)


def get_services(request: Request) -> ServiceContainer:
    """Services built at startup and stored on app.state."""
    services: Optional[ServiceContainer] = getattr(request.app.state, "services", None)
    if services is None:
        logger.error("Service container not initialized on app.state")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not ready",
        )
    return services


def get_auth_service(services: ServiceContainer = Depends(get_services)) -> AuthService:
    return services.auth_service


async def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    services: ServiceContainer = Depends(get_services),
) -> AccessTokenClaims:
    """
    Extract and validate the JWT access token from the Authorization header.

    Performs cryptographic validation only; this is the core dependency for
    all authenticated endpoints.

    Raises:
        HTTPException 401: If token is missing, expired or invalid
    """
    # Non-Bearer schemes count as no token
    token = extract_bearer_token(authorization)
    result = authenticate_bearer(
        token, now=services.clock.now(), app_settings=services.settings
    )
    if isinstance(result, AuthFailure):
        logger.warning(f"Authentication failed: {result.code.value}")
        raise http_exception_for(result)

    logger.debug(f"Token validated for user {result.user_id} with role {result.role}")
    return result


class RoleChecker:
    """
    Dependency class for role-based authorization.

    Roles may be given as names or numeric ids (1 SUPER_ADMIN ... 5 STUDENT).

    Usage:
        require_admin = RoleChecker(["SUPER_ADMIN", "ADMIN"])
        @app.get("/admin-only", dependencies=[Depends(require_admin)])
    """

    def __init__(self, allowed_roles: Iterable[Union[str, int, UserRole]]):
        # normalize_role raises ValueError on unknown roles
        self.allowed_roles: List[str] = [normalize_role(role) for role in allowed_roles]
        if not self.allowed_roles:
            raise ValueError("At least one role is required")

    def __call__(
        self, claims: AccessTokenClaims = Depends(get_current_user)
    ) -> AccessTokenClaims:
        """
        Raises:
            HTTPException 403: If the caller's role is not allowed
        """
        result = authorize_by_role(claims, self.allowed_roles)
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)

        logger.debug(f"Access granted for user {claims.user_id} with role {claims.role}")
        return result


class PermissionChecker:
    """
    Dependency class for permission-based authorization.

    Reads the permissions embedded in the access token. When the token was
    minted without them (list above the embedding ceiling) and
    auth_resolve_omitted_permissions is enabled, the role's permissions are
    re-resolved from storage for this request.

    Usage:
        require_view_report = PermissionChecker(["VIEW_REPORT"], mode=AuthorizationMode.ANY)
    """

    def __init__(
        self,
        required_permissions: Iterable[str],
        mode: AuthorizationMode = AuthorizationMode.ALL,
    ):
        self.required_permissions = list(required_permissions)
        self.mode = mode

    async def __call__(
        self,
        claims: AccessTokenClaims = Depends(get_current_user),
        services: ServiceContainer = Depends(get_services),
    ) -> AccessTokenClaims:
        """
        Raises:
            HTTPException 403: If the caller lacks the required permissions
            HTTPException 500: If re-resolving permissions hits a storage fault
        """
        effective_claims = claims
        if (
            not claims.permissions_embedded
            and services.settings.auth_resolve_omitted_permissions
        ):
            try:
                permissions = await services.permissions_service.get_permissions_for_role(
                    claims.role
                )
            except STORAGE_ERRORS as e:
                logger.exception(f"Storage failure resolving permissions: {e}")
                raise http_exception_for(AuthFailure.of(AuthErrorCode.STORAGE_FAILURE))
            effective_claims = claims.model_copy(
                update={"permissions": permissions, "permissions_embedded": True}
            )

        result = authorize(effective_claims, self.required_permissions, self.mode)
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)
        return result


# Convenience checkers used by the auth endpoints

require_admin = RoleChecker([UserRole.SUPER_ADMIN, UserRole.ADMIN])
"""
Allow SUPER_ADMIN and ADMIN only.
Use for security resets such as revoking all sessions.
"""

require_view_report = PermissionChecker(["VIEW_REPORT"], mode=AuthorizationMode.ANY)
"""
Allow holders of VIEW_REPORT (and SUPER_ADMIN).
Use for administrative reporting reads.
"""
