"""
Provisioning Service
--------------------
Creates the schema and seeds the fixed role/permission catalogue plus the
super admin identity. Safe to run repeatedly.
"""

from typing import Dict, List, Tuple

from sqlalchemy import text
from loguru import logger

from school_admin.core.config_manager import ApplicationSettings
from school_admin.core.database_connection import DatabaseManager
from school_admin.models.request_models import ROLE_IDS, UserRole
from school_admin.psql_db_services.base_service import BaseDatabaseService
from school_admin.psql_db_services.schema import SCHEMA_STATEMENTS
from school_admin.psql_db_services.users_service import UsersService
from school_admin.utils.password_hashing import PasswordHasher


PERMISSION_IDS: Dict[int, str] = {
    1: "CREATE_STUDENT",
    2: "VIEW_STUDENT",
    3: "CREATE_TEACHER",
    4: "MANAGE_FEES",
    5: "VIEW_REPORT",
}

# (role_id, permission_id)
ROLE_PERMISSION_GRANTS: List[Tuple[int, int]] = [
    (3, 1),  # REGISTRAR -> CREATE_STUDENT
    (3, 2),  # REGISTRAR -> VIEW_STUDENT
    (2, 3),  # ADMIN -> CREATE_TEACHER
    (2, 4),  # ADMIN -> MANAGE_FEES
    (2, 5),  # ADMIN -> VIEW_REPORT
] + [(1, permission_id) for permission_id in PERMISSION_IDS]  # SUPER_ADMIN -> all


class SeedService(BaseDatabaseService):
    """Idempotent schema bootstrap and catalogue seeding."""

    def __init__(
        self,
        database_manager: DatabaseManager,
        users_service: UsersService,
        settings: ApplicationSettings,
    ):
        super().__init__(database_manager)
        self.users_service = users_service
        self.settings = settings

    async def create_schema(self) -> None:
        async with self.get_session() as session:
            for statement in SCHEMA_STATEMENTS:
                await session.execute(text(statement))
        logger.info(f"Schema ensured ({len(SCHEMA_STATEMENTS)} statements)")

    async def seed_roles_and_permissions(self) -> None:
        """Upsert roles, permissions and grants in one transaction."""
        async with self.get_session() as session:
            for role_id, role in ROLE_IDS.items():
                await session.execute(
                    text(
                        """
                        INSERT INTO roles (id, name) VALUES (:id, :name)
                        ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name
                        """
                    ),
                    {"id": role_id, "name": role.value},
                )

            for permission_id, permission_name in PERMISSION_IDS.items():
                await session.execute(
                    text(
                        """
                        INSERT INTO permissions (id, name) VALUES (:id, :name)
                        ON CONFLICT (id) DO UPDATE SET name = EXCLUDED.name
                        """
                    ),
                    {"id": permission_id, "name": permission_name},
                )

            for role_id, permission_id in ROLE_PERMISSION_GRANTS:
                await session.execute(
                    text(
                        """
                        INSERT INTO role_permissions (role_id, permission_id)
                        VALUES (:role_id, :permission_id)
                        ON CONFLICT (role_id, permission_id) DO NOTHING
                        """
                    ),
                    {"role_id": role_id, "permission_id": permission_id},
                )

        logger.info(
            f"Seeded {len(ROLE_IDS)} roles, {len(PERMISSION_IDS)} permissions, "
            f"{len(ROLE_PERMISSION_GRANTS)} grants"
        )

    async def seed_super_admin(self) -> dict:
        """Upsert the super admin identity from settings."""
        password_hash = PasswordHasher.hash_password(self.settings.super_admin_password)
        user = await self.users_service.upsert_user(
            username=self.settings.super_admin_username,
            email=self.settings.super_admin_email,
            password_hash=password_hash,
            user_role=UserRole.SUPER_ADMIN.value,
        )
        logger.info(f"Super admin provisioned: {user['username']}")
        return user

    async def run(self) -> None:
        logger.info("Seeding started")
        await self.create_schema()
        await self.seed_roles_and_permissions()
        await self.seed_super_admin()
        logger.info("Seeding complete")
