"""
Database Services Package
-------------------------
PostgreSQL services behind the authentication core.

This package provides:
- Base service class with session and transaction management
- Credential Store (users)
- Permission Resolver (roles, permissions, grants)
- Session Store (hashed refresh tokens)
- Schema bootstrap and provisioning
"""

from school_admin.psql_db_services.base_service import BaseDatabaseService
from school_admin.psql_db_services.users_service import UsersService
from school_admin.psql_db_services.permissions_service import PermissionsService
from school_admin.psql_db_services.refresh_sessions_service import (
    RefreshSessionsService,
)
from school_admin.psql_db_services.seed_service import SeedService

__all__ = [
    "BaseDatabaseService",
    "UsersService",
    "PermissionsService",
    "RefreshSessionsService",
    "SeedService",
]
