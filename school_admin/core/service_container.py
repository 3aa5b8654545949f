"""
Service Container
-----------------
Builds every service once at startup around a single DatabaseManager and
keeps them together on app.state.services.
"""

from dataclasses import dataclass
from typing import Optional

from school_admin.core.clock import Clock, SystemClock
from school_admin.core.config_manager import ApplicationSettings
from school_admin.core.database_connection import DatabaseManager
from school_admin.auth.auth_service import AuthService
from school_admin.auth.jwt_utils import PermissionEmbeddingPolicy
from school_admin.auth.token_service import TokenService
from school_admin.psql_db_services.permissions_service import PermissionsService
from school_admin.psql_db_services.refresh_sessions_service import (
    RefreshSessionsService,
)
from school_admin.psql_db_services.users_service import UsersService


@dataclass
class ServiceContainer:
    settings: ApplicationSettings
    clock: Clock
    database_manager: Optional[DatabaseManager]
    users_service: UsersService
    permissions_service: PermissionsService
    sessions_service: RefreshSessionsService
    token_service: TokenService
    auth_service: AuthService

    @classmethod
    def build(
        cls,
        database_manager: Optional[DatabaseManager],
        settings: ApplicationSettings,
        clock: Optional[Clock] = None,
        users_service: Optional[UsersService] = None,
        permissions_service: Optional[PermissionsService] = None,
        sessions_service: Optional[RefreshSessionsService] = None,
    ) -> "ServiceContainer":
        """
        Wire the services. Storage services may be passed in directly
        (for example in-memory implementations), in which case
        database_manager may be None.
        """
        clock = clock or SystemClock()
        if users_service is None:
            users_service = UsersService(database_manager)
        if permissions_service is None:
            permissions_service = PermissionsService(database_manager)
        if sessions_service is None:
            sessions_service = RefreshSessionsService(database_manager)

        token_service = TokenService(
            users_service=users_service,
            permissions_service=permissions_service,
            sessions_service=sessions_service,
            settings=settings,
            clock=clock,
            embedding_policy=PermissionEmbeddingPolicy.from_settings(settings),
        )
        auth_service = AuthService(
            users_service=users_service,
            permissions_service=permissions_service,
            token_service=token_service,
        )

        return cls(
            settings=settings,
            clock=clock,
            database_manager=database_manager,
            users_service=users_service,
            permissions_service=permissions_service,
            sessions_service=sessions_service,
            token_service=token_service,
            auth_service=auth_service,
        )
