"""
Base Database Service
--------------------
Base class for all database services with session management,
error handling, and shared validation utilities.

This base class provides:
- SQLAlchemy session management
- Transaction handling with automatic rollback
- Consistent error handling and logging
- Query execution utilities
- Validation helpers
"""

from typing import Optional, List, Dict, Any, AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from school_admin.core.database_connection import DatabaseManager


class BaseDatabaseService:
    """
    Base class for all database service classes.

    Provides shared functionality for database operations including:
    - SQLAlchemy session management
    - Transaction handling with commit/rollback
    - Error handling and logging
    - Common validation utilities
    """

    def __init__(self, database_manager: DatabaseManager):
        """
        Initialize the database service with a database manager.

        Args:
            database_manager: The process-wide DatabaseManager created at startup.
        """
        if database_manager is None:
            raise ValueError("database_manager is required")
        self.database_manager = database_manager
        self._service_name = self.__class__.__name__

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy session with automatic commit/rollback.

        Yields:
            AsyncSession: SQLAlchemy session

        Example:
            async with self.get_session() as session:
                result = await session.execute(text("SELECT * FROM users"))
                users = result.mappings().all()
        """
        async with self.database_manager.get_session() as session:
            yield session

    async def execute_single_query(
        self,
        sql_query: str,
        query_parameters: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """
        Execute a single read query with automatic session management.

        Args:
            sql_query: SQL query string to execute
            query_parameters: Optional dictionary of query parameters

        Returns:
            List of result dictionaries (empty when nothing matched)

        Example:
            results = await self.execute_single_query(
                "SELECT * FROM users WHERE email = :email",
                {"email": email}
            )
        """
        try:
            async with self.get_session() as session:
                result = await session.execute(text(sql_query), query_parameters or {})
                rows = result.mappings().all()
                return [dict(row) for row in rows] if rows else []

        except Exception as error:
            logger.exception(
                f"{self._service_name}: Error executing query: {error}"
            )
            raise

    # ========================================================================
    # VALIDATION UTILITIES
    # ========================================================================

    def validate_positive_integer(
        self,
        integer_value: int,
        parameter_name: str = "value",
        allow_zero: bool = False,
    ) -> None:
        """
        Validate that an integer is positive (and optionally allow zero).

        Raises:
            ValueError: If integer is not positive
        """
        if not isinstance(integer_value, int) or isinstance(integer_value, bool):
            raise ValueError(f"{parameter_name} must be an integer")

        minimum_value = 0 if allow_zero else 1
        if integer_value < minimum_value:
            raise ValueError(
                f"{parameter_name} must be {'non-negative' if allow_zero else 'positive'}, "
                f"got {integer_value}"
            )

    def validate_string_not_empty(
        self, string_value: str, parameter_name: str = "string"
    ) -> None:
        """
        Validate that a string is not None or empty.

        Raises:
            ValueError: If string is None or empty
        """
        if not string_value or not isinstance(string_value, str):
            raise ValueError(f"{parameter_name} must be a non-empty string")
        if not string_value.strip():
            raise ValueError(f"{parameter_name} cannot be only whitespace")

    def validate_enum_value(
        self, enum_value: str, valid_values: List[str], parameter_name: str = "value"
    ) -> None:
        """
        Validate that a value is one of the allowed enum values.

        Raises:
            ValueError: If value is not in the list of valid values
        """
        if enum_value not in valid_values:
            raise ValueError(
                f"Invalid {parameter_name}: '{enum_value}'. "
                f"Must be one of: {', '.join(valid_values)}"
            )

    def log_operation(
        self,
        operation_type: str,
        entity_identifier: Any,
        success: bool = True,
        additional_context: Optional[str] = None,
    ) -> None:
        """
        Log database operations for monitoring and debugging.

        Args:
            operation_type: Type of operation (e.g., "CREATE", "REVOKE")
            entity_identifier: Identifier of the entity being operated on
            success: Whether the operation was successful
            additional_context: Optional additional context information
        """
        log_level = "info" if success else "error"
        status = "succeeded" if success else "failed"

        message = (
            f"{self._service_name}: {operation_type} operation {status} "
            f"for entity: {entity_identifier}"
        )

        if additional_context:
            message += f" - {additional_context}"

        getattr(logger, log_level)(message)
