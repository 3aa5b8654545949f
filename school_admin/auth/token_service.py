"""
Token Service
-------------
Issues access/refresh pairs, rotates refresh tokens and revokes sessions.

Rotation relies on RefreshSessionsService.consume_active_session, a single
conditional UPDATE that flips revoked_at from NULL. Of two concurrent
rotations of the same token exactly one sees a row come back; the other
fails exactly like an unknown or expired token.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional

from loguru import logger

from school_admin.core.clock import Clock
from school_admin.core.config_manager import ApplicationSettings
from school_admin.auth.jwt_utils import (
    PermissionEmbeddingPolicy,
    create_access_token,
    generate_refresh_token_raw,
    hash_refresh_token,
)
from school_admin.auth.results import (
    AuthErrorCode,
    AuthFailure,
    IssuedSession,
    RefreshResult,
)
from school_admin.models.response_models import IdentityView
from school_admin.psql_db_services.permissions_service import PermissionsService
from school_admin.psql_db_services.refresh_sessions_service import (
    RefreshSessionsService,
)
from school_admin.psql_db_services.users_service import UsersService


class TokenService:
    """Token Issuer, Rotation Protocol and Revocation over the Session Store."""

    def __init__(
        self,
        users_service: UsersService,
        permissions_service: PermissionsService,
        sessions_service: RefreshSessionsService,
        settings: ApplicationSettings,
        clock: Clock,
        embedding_policy: Optional[PermissionEmbeddingPolicy] = None,
    ):
        self.users_service = users_service
        self.permissions_service = permissions_service
        self.sessions_service = sessions_service
        self.settings = settings
        self.clock = clock
        self.embedding_policy = embedding_policy or PermissionEmbeddingPolicy.from_settings(
            settings
        )

    def hash_token(self, raw_token: str) -> str:
        return hash_refresh_token(raw_token, self.settings.refresh_hash_secret)

    def mint_access_token(self, user_id: int, role: str, permissions: List[str]) -> str:
        """Pure: signs claims with the current clock time. No storage access."""
        return create_access_token(
            user_id=user_id,
            role=role,
            permissions=permissions,
            issued_at=self.clock.now(),
            policy=self.embedding_policy,
            app_settings=self.settings,
        )

    async def mint_refresh_token(self, user_id: int) -> str:
        """
        Generate a refresh token and persist its hash as a new active session.

        Returns:
            The raw token. It is not stored anywhere and cannot be recovered.
        """
        raw_token = generate_refresh_token_raw()
        now = self.clock.now()
        await self.sessions_service.create_session(
            user_id=user_id,
            token_hash=self.hash_token(raw_token),
            expires_at=now + timedelta(days=self.settings.jwt_refresh_token_expire_days),
            created_at=now,
        )
        return raw_token

    async def issue_session_tokens(self, user: Dict[str, Any]) -> IssuedSession:
        """
        Resolve current permissions for the user's role and mint a fresh pair.

        Args:
            user: Identity record with id, username, email and role
        """
        permissions = await self.permissions_service.get_permissions_for_role(
            user["role"]
        )
        access_token = self.mint_access_token(user["id"], user["role"], permissions)
        refresh_token = await self.mint_refresh_token(user["id"])

        return IssuedSession(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.settings.access_token_expire_seconds,
            user=IdentityView(
                id=user["id"],
                username=user["username"],
                email=user["email"],
                role=user["role"],
                permissions=permissions,
            ),
        )

    async def rotate(self, raw_refresh_token: str) -> RefreshResult:
        """
        Exchange a usable refresh token for a new pair, revoking the old one.

        Unknown, revoked and expired tokens all yield the same
        INVALID_OR_EXPIRED_TOKEN failure.
        """
        if not raw_refresh_token:
            return AuthFailure.of(AuthErrorCode.INVALID_OR_EXPIRED_TOKEN)

        consumed = await self.sessions_service.consume_active_session(
            self.hash_token(raw_refresh_token), self.clock.now()
        )
        if consumed is None:
            logger.warning("Refresh rejected: token not found, revoked or expired")
            return AuthFailure.of(AuthErrorCode.INVALID_OR_EXPIRED_TOKEN)

        user = await self.users_service.get_user_by_id(consumed["user_id"])
        if user is None:
            logger.warning(
                f"Refresh rejected: session {consumed['id']} owner no longer exists"
            )
            return AuthFailure.of(AuthErrorCode.INVALID_OR_EXPIRED_TOKEN)

        issued = await self.issue_session_tokens(user)
        logger.info(f"Refresh token rotated for user {user['id']}")
        return issued

    async def revoke_session(self, raw_refresh_token: Optional[str]) -> int:
        """Revoke one session. Unknown or already revoked tokens are a no-op."""
        if not raw_refresh_token:
            return 0
        revoked = await self.sessions_service.revoke_session_by_hash(
            self.hash_token(raw_refresh_token), self.clock.now()
        )
        if revoked:
            logger.info("Refresh session revoked")
        return revoked

    async def revoke_all_sessions(self, user_id: int) -> int:
        """Revoke every outstanding session of an identity atomically."""
        revoked = await self.sessions_service.revoke_all_for_user(
            user_id, self.clock.now()
        )
        logger.info(f"Revoked {revoked} sessions for user {user_id}")
        return revoked
