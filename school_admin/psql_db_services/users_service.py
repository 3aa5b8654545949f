"""
PostgreSQL Operations for the Credential Store
----------------------------------------------
Database service for identity records used by authentication:
- Lookup by username (login) and by id (refresh, revoke-all)
- Email ownership check (one email per identity)
- Idempotent upsert used by provisioning
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone

from sqlalchemy import text
from loguru import logger
from email_validator import validate_email, EmailNotValidError

from school_admin.core.database_connection import DatabaseManager
from school_admin.models.request_models import UserRole
from school_admin.psql_db_services.base_service import BaseDatabaseService


class UsersService(BaseDatabaseService):
    """
    Service for identity database operations.

    Identity rows carry the password hash, so results from this service must
    never be returned to clients directly; build an IdentityView instead.
    """

    VALID_USER_ROLES = [role.value for role in UserRole]

    USER_COLUMNS = "id, username, email, password_hash, role, created_at, updated_at"

    def __init__(self, database_manager: DatabaseManager):
        super().__init__(database_manager)

    # ========================================================================
    # VALIDATION HELPERS
    # ========================================================================

    async def check_email_taken(self, email: str, username: str) -> bool:
        """Check if email already belongs to an identity other than username"""
        try:
            async with self.get_session() as session:
                sql_query = """
                    SELECT 1 FROM users
                    WHERE email = :email AND username <> :username
                    LIMIT 1
                """
                result = await session.execute(
                    text(sql_query), {"email": email, "username": username}
                )
                return result.first() is not None
        except Exception as e:
            logger.error(f"Error checking email ownership: {e}")
            raise

    def validate_email_address(self, email_address: str) -> str:
        """
        Validate and normalize an email address.

        Returns:
            The normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        if not email_address:
            raise ValueError("Email address cannot be empty")

        try:
            validated = validate_email(email_address, check_deliverability=False)
            return validated.normalized
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email: {str(e)}")

    def validate_user_role(self, user_role: str) -> None:
        """
        Raises:
            ValueError: If role is not one of the seeded roles
        """
        self.validate_enum_value(user_role, self.VALID_USER_ROLES, "user role")

    # ========================================================================
    # READ OPERATIONS
    # ========================================================================

    async def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve an identity by username.

        An empty or blank username simply finds nothing.

        Returns:
            Dictionary containing the identity record (with password_hash)
            or None if not found

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On database errors
        """
        if not username or not username.strip():
            return None

        try:
            async with self.get_session() as session:
                sql_query = f"""
                    SELECT {self.USER_COLUMNS}
                    FROM users
                    WHERE username = :username
                """
                result = await session.execute(
                    text(sql_query), {"username": username}
                )
                user_record = result.mappings().one_or_none()
                return dict(user_record) if user_record else None
        except Exception as e:
            logger.error(f"Error fetching user by username {username}: {e}")
            raise

    async def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """
        Retrieve an identity by its numeric id.

        Raises:
            ValueError: If user_id is not a positive integer
            sqlalchemy.exc.SQLAlchemyError: On database errors
        """
        self.validate_positive_integer(user_id, "user_id")

        try:
            async with self.get_session() as session:
                sql_query = f"""
                    SELECT {self.USER_COLUMNS}
                    FROM users
                    WHERE id = :user_id
                """
                result = await session.execute(text(sql_query), {"user_id": user_id})
                user_record = result.mappings().one_or_none()
                return dict(user_record) if user_record else None
        except Exception as e:
            logger.error(f"Error fetching user {user_id}: {e}")
            raise

    # ========================================================================
    # WRITE OPERATIONS
    # ========================================================================

    async def upsert_user(
        self,
        username: str,
        email: str,
        password_hash: str,
        user_role: str,
        updated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Create an identity, or overwrite email, hash and role when the
        username already exists.

        Args:
            username: Unique username
            email: Email address (validated and normalized)
            password_hash: bcrypt hash, never the raw password
            user_role: One of the seeded role names
            updated_at: Timestamp for created_at/updated_at (defaults to now)

        Returns:
            The stored identity record

        Raises:
            ValueError: On invalid input
            sqlalchemy.exc.SQLAlchemyError: On database errors
        """
        self.validate_string_not_empty(username, "username")
        self.validate_string_not_empty(password_hash, "password_hash")
        self.validate_user_role(user_role)
        normalized_email = self.validate_email_address(email)

        if await self.check_email_taken(normalized_email, username):
            raise ValueError(f"Email {normalized_email} is already in use")

        now = updated_at or datetime.now(timezone.utc)

        try:
            async with self.get_session() as session:
                sql_query = f"""
                    INSERT INTO users (
                        username, email, password_hash, role, created_at, updated_at
                    )
                    VALUES (
                        :username, :email, :password_hash, :role, :now, :now
                    )
                    ON CONFLICT (username) DO UPDATE SET
                        email = EXCLUDED.email,
                        password_hash = EXCLUDED.password_hash,
                        role = EXCLUDED.role,
                        updated_at = EXCLUDED.updated_at
                    RETURNING {self.USER_COLUMNS}
                """
                params = {
                    "username": username,
                    "email": normalized_email,
                    "password_hash": password_hash,
                    "role": user_role,
                    "now": now,
                }
                result = await session.execute(text(sql_query), params)
                stored_user = result.mappings().one_or_none()

                if not stored_user:
                    raise RuntimeError("Failed to upsert user record")

                self.log_operation("UPSERT", username, success=True)
                return dict(stored_user)
        except Exception as e:
            logger.error(f"Error upserting user {username}: {e}")
            raise
