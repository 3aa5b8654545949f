"""
Authentication Endpoints
------------------------
FastAPI endpoints for the session lifecycle: login, refresh rotation,
logout, revoke-all, plus role/permission listing and token introspection.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from school_admin.auth.auth_service import AuthService
from school_admin.auth.dependencies import (
    get_auth_service,
    get_current_user,
    get_services,
    http_exception_for,
    require_admin,
    require_view_report,
)
from school_admin.auth.models import AccessTokenClaims
from school_admin.auth.results import AuthFailure, IssuedSession
from school_admin.core.service_container import ServiceContainer
from school_admin.models.request_models import (
    LoginRequest,
    LogoutRequest,
    RefreshTokenRequest,
    RevokeAllRequest,
)
from school_admin.models.response_models import (
    AuthConfigResponse,
    AuthSessionResponse,
    MessageResponse,
    RolePermissionsResponse,
)

# ============================================================================
# ROUTER INITIALIZATION
# ============================================================================

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


def _session_response(issued: IssuedSession) -> AuthSessionResponse:
    return AuthSessionResponse(
        access_token=issued.access_token,
        token_type=issued.token_type,
        expires_in=issued.expires_in,
        refresh_token=issued.refresh_token,
        user=issued.user,
    )


# ============================================================================
# SESSION ENDPOINTS
# ============================================================================


@router.post(
    "/login",
    response_model=AuthSessionResponse,
    summary="Authenticate user and start a session",
    description="""
    Authenticate with username and password.
    Returns a short-lived access token, a single-use refresh token and the
    caller's identity with resolved permissions.
    """,
)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        HTTPException 401: If the username or password is wrong
        HTTPException 500: On storage or unexpected failure
    """
    logger.info(f"Login attempt for user: {request.username}")

    try:
        result = await auth_service.login(request.username, request.password)
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)

        logger.info(f"User {request.username} authenticated successfully")
        return _session_response(result)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Login error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


@router.post(
    "/refresh",
    response_model=AuthSessionResponse,
    summary="Rotate a refresh token",
    description="""
    Exchange a refresh token for a new access/refresh pair.
    The presented refresh token is revoked and can never be used again.
    """,
)
async def refresh(
    request: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        HTTPException 401: If the token is unknown, revoked or expired
        HTTPException 500: On storage or unexpected failure
    """
    logger.info("Token refresh requested")

    try:
        result = await auth_service.refresh(request.refresh_token)
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)
        return _session_response(result)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Token refresh error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="End the current session",
)
async def logout(
    request: Optional[LogoutRequest] = None,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Revoke the presented refresh token. Succeeds even when the token is
    missing, unknown or already revoked.
    """
    logger.info("Logout requested")

    try:
        failure = await auth_service.logout(request.refresh_token if request else None)
        if failure is not None:
            raise http_exception_for(failure)
        return MessageResponse(message="Logged out successfully")

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Logout error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


@router.post(
    "/revoke-all",
    response_model=MessageResponse,
    summary="Revoke every session of an identity",
    description="""
    Security reset. SUPER_ADMIN and ADMIN only.
    Revokes the sessions of `user_id`, or of the caller when omitted.
    """,
)
async def revoke_all(
    request: Optional[RevokeAllRequest] = None,
    claims: AccessTokenClaims = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
):
    target_user_id = (
        request.user_id if request and request.user_id is not None else claims.user_id
    )
    logger.info(f"User {claims.user_id} revoking all sessions of user {target_user_id}")

    try:
        result = await auth_service.revoke_all(target_user_id)
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)
        return MessageResponse(message="All sessions revoked")

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Revoke-all error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


# ============================================================================
# ROLE / PERMISSION ENDPOINTS
# ============================================================================


@router.get(
    "/role-permissions",
    response_model=RolePermissionsResponse,
    summary="List roles with their permissions",
)
async def role_permissions(
    claims: AccessTokenClaims = Depends(require_view_report),
    auth_service: AuthService = Depends(get_auth_service),
):
    logger.info(f"Role permissions requested by user {claims.user_id}")

    try:
        result = await auth_service.list_role_permissions()
        if isinstance(result, AuthFailure):
            raise http_exception_for(result)
        return RolePermissionsResponse(**result)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Role permissions error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )


# ============================================================================
# TOKEN INTROSPECTION ENDPOINTS
# ============================================================================


@router.get(
    "/token/validate",
    response_model=AccessTokenClaims,
    summary="Validate the current access token",
)
async def validate_token(claims: AccessTokenClaims = Depends(get_current_user)):
    """Return the decoded claims of the caller's access token."""
    logger.debug(f"Token validated for user {claims.user_id}")
    return claims


@router.get(
    "/config",
    response_model=AuthConfigResponse,
    summary="Get token configuration",
)
async def get_auth_config(services: ServiceContainer = Depends(get_services)):
    """Non-secret token settings for clients scheduling refreshes."""
    app_settings = services.settings
    return AuthConfigResponse(
        jwt_algorithm=app_settings.jwt_algorithm,
        access_token_expire_minutes=app_settings.jwt_access_token_expire_minutes,
        refresh_token_expire_days=app_settings.jwt_refresh_token_expire_days,
        max_embedded_permissions=app_settings.jwt_max_embedded_permissions,
    )
