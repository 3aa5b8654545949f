"""
Auth Service
------------
Public authentication operations. Every method returns a result value;
storage faults are logged and converted to STORAGE_FAILURE here so no
SQLAlchemy or socket exception escapes to callers.
"""

from typing import Any, Dict, Optional, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from school_admin.auth.results import (
    AuthErrorCode,
    AuthFailure,
    LoginResult,
    RefreshResult,
)
from school_admin.auth.token_service import TokenService
from school_admin.psql_db_services.permissions_service import PermissionsService
from school_admin.psql_db_services.users_service import UsersService
from school_admin.utils.password_hashing import PasswordHasher

STORAGE_ERRORS = (SQLAlchemyError, OSError)


class AuthService:
    """Login, refresh, logout, revoke-all and the role/permission listing."""

    _dummy_password_hash: Optional[str] = None

    def __init__(
        self,
        users_service: UsersService,
        permissions_service: PermissionsService,
        token_service: TokenService,
    ):
        self.users_service = users_service
        self.permissions_service = permissions_service
        self.token_service = token_service

    @classmethod
    def _timing_equalizer_hash(cls) -> str:
        # Verified against when the username is unknown, so both login
        # failure paths pay for one bcrypt check.
        if cls._dummy_password_hash is None:
            cls._dummy_password_hash = PasswordHasher.hash_password(
                "timing-equalizer-not-a-password"
            )
        return cls._dummy_password_hash

    async def login(self, username: str, password: str) -> LoginResult:
        """
        Verify credentials and issue a new session.

        Unknown username and wrong password return the same failure.
        """
        try:
            user = await self.users_service.get_user_by_username(username)

            if user is None:
                PasswordHasher.verify_password(password, self._timing_equalizer_hash())
                logger.warning(f"Login failed for username '{username}'")
                return AuthFailure.of(AuthErrorCode.INVALID_CREDENTIALS)

            if not PasswordHasher.verify_password(password, user["password_hash"]):
                logger.warning(f"Login failed for username '{username}'")
                return AuthFailure.of(AuthErrorCode.INVALID_CREDENTIALS)

            issued = await self.token_service.issue_session_tokens(user)
            logger.info(f"User {user['id']} logged in with role {user['role']}")
            return issued

        except STORAGE_ERRORS as e:
            logger.exception(f"Storage failure during login: {e}")
            return AuthFailure.of(AuthErrorCode.STORAGE_FAILURE)

    async def refresh(self, raw_refresh_token: str) -> RefreshResult:
        try:
            return await self.token_service.rotate(raw_refresh_token)
        except STORAGE_ERRORS as e:
            logger.exception(f"Storage failure during refresh: {e}")
            return AuthFailure.of(AuthErrorCode.STORAGE_FAILURE)

    async def logout(self, raw_refresh_token: Optional[str]) -> Optional[AuthFailure]:
        """
        Revoke the presented session.

        Returns None on success, including when there was nothing to revoke.
        """
        try:
            await self.token_service.revoke_session(raw_refresh_token)
            return None
        except STORAGE_ERRORS as e:
            logger.exception(f"Storage failure during logout: {e}")
            return AuthFailure.of(AuthErrorCode.STORAGE_FAILURE)

    async def revoke_all(self, user_id: int) -> Union[int, AuthFailure]:
        """
        Revoke every session of an identity.

        Returns:
            Number of sessions revoked (0 is success)
        """
        try:
            return await self.token_service.revoke_all_sessions(user_id)
        except STORAGE_ERRORS as e:
            logger.exception(
                f"Storage failure revoking sessions for user {user_id}: {e}"
            )
            return AuthFailure.of(AuthErrorCode.STORAGE_FAILURE)

    async def list_role_permissions(self) -> Union[Dict[str, Any], AuthFailure]:
        try:
            return await self.permissions_service.list_role_permissions()
        except STORAGE_ERRORS as e:
            logger.exception(f"Storage failure listing role permissions: {e}")
            return AuthFailure.of(AuthErrorCode.STORAGE_FAILURE)
