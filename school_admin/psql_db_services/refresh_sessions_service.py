"""
PostgreSQL Operations for Refresh Sessions
------------------------------------------
The refresh_tokens table holds one row per issued refresh token. Only the
HMAC of the raw token is stored. Rows are never deleted; revocation sets
revoked_at exactly once.

A session is usable iff revoked_at IS NULL AND expires_at > now.
"""

from typing import Optional, Dict, Any
from datetime import datetime

from sqlalchemy import text
from loguru import logger

from school_admin.core.database_connection import DatabaseManager
from school_admin.psql_db_services.base_service import BaseDatabaseService


class RefreshSessionsService(BaseDatabaseService):
    """
    Session Store for refresh tokens.

    Every write is a single-row (or single-statement) conditional update, so
    concurrent rotations of the same token are decided by the database: only
    one UPDATE can flip revoked_at from NULL.
    """

    SESSION_COLUMNS = "id, user_id, token_hash, created_at, expires_at, revoked_at"

    def __init__(self, database_manager: DatabaseManager):
        super().__init__(database_manager)

    async def create_session(
        self,
        user_id: int,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> Dict[str, Any]:
        """
        Persist a new active session.

        Args:
            user_id: Owning identity
            token_hash: HMAC-SHA256 hex digest of the raw refresh token
            expires_at: Absolute expiry
            created_at: Issuance time

        Returns:
            The inserted row

        Raises:
            ValueError: On invalid input
            sqlalchemy.exc.SQLAlchemyError: On database errors
        """
        self.validate_positive_integer(user_id, "user_id")
        self.validate_string_not_empty(token_hash, "token_hash")
        if expires_at <= created_at:
            raise ValueError("expires_at must be after created_at")

        try:
            async with self.get_session() as session:
                sql_query = f"""
                    INSERT INTO refresh_tokens (user_id, token_hash, created_at, expires_at)
                    VALUES (:user_id, :token_hash, :created_at, :expires_at)
                    RETURNING {self.SESSION_COLUMNS}
                """
                params = {
                    "user_id": user_id,
                    "token_hash": token_hash,
                    "created_at": created_at,
                    "expires_at": expires_at,
                }
                result = await session.execute(text(sql_query), params)
                created_session = result.mappings().one_or_none()

                if not created_session:
                    raise RuntimeError("Failed to create refresh session")

                self.log_operation("CREATE", f"user {user_id}", success=True)
                return dict(created_session)
        except Exception as e:
            logger.error(f"Error creating refresh session for user {user_id}: {e}")
            raise

    async def consume_active_session(
        self, token_hash: str, now: datetime
    ) -> Optional[Dict[str, Any]]:
        """
        Atomically revoke a usable session and return it.

        This is the compare-and-swap at the heart of rotation. Not found,
        already revoked and expired all return None and are not
        distinguished.

        Returns:
            {"id", "user_id"} of the consumed session, or None
        """
        if not token_hash:
            return None

        try:
            async with self.get_session() as session:
                sql_query = """
                    UPDATE refresh_tokens
                    SET revoked_at = :now
                    WHERE token_hash = :token_hash
                      AND revoked_at IS NULL
                      AND expires_at > :now
                    RETURNING id, user_id
                """
                result = await session.execute(
                    text(sql_query), {"token_hash": token_hash, "now": now}
                )
                consumed = result.mappings().one_or_none()
                return dict(consumed) if consumed else None
        except Exception as e:
            logger.error(f"Error consuming refresh session: {e}")
            raise

    async def revoke_session_by_hash(self, token_hash: str, now: datetime) -> int:
        """
        Revoke the session matching a token hash.

        Returns:
            Number of rows revoked (0 when unknown or already revoked)
        """
        if not token_hash:
            return 0

        try:
            async with self.get_session() as session:
                sql_query = """
                    UPDATE refresh_tokens
                    SET revoked_at = :now
                    WHERE token_hash = :token_hash
                      AND revoked_at IS NULL
                """
                result = await session.execute(
                    text(sql_query), {"token_hash": token_hash, "now": now}
                )
                revoked_count = getattr(result, "rowcount", 0)
                if revoked_count:
                    self.log_operation("REVOKE", "refresh session", success=True)
                return revoked_count
        except Exception as e:
            logger.error(f"Error revoking refresh session: {e}")
            raise

    async def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        """
        Revoke every outstanding session of an identity in one statement.

        Returns:
            Number of rows revoked
        """
        self.validate_positive_integer(user_id, "user_id")

        try:
            async with self.get_session() as session:
                sql_query = """
                    UPDATE refresh_tokens
                    SET revoked_at = :now
                    WHERE user_id = :user_id
                      AND revoked_at IS NULL
                """
                result = await session.execute(
                    text(sql_query), {"user_id": user_id, "now": now}
                )
                revoked_count = getattr(result, "rowcount", 0)
                self.log_operation(
                    "REVOKE_ALL",
                    f"user {user_id}",
                    success=True,
                    additional_context=f"{revoked_count} sessions revoked",
                )
                return revoked_count
        except Exception as e:
            logger.error(f"Error revoking sessions for user {user_id}: {e}")
            raise
