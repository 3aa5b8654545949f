"""
PostgreSQL Operations for the Permission Resolver
-------------------------------------------------
Read-only access to roles, permissions and their grants:
- Permissions granted to one role (login and rotation path)
- De-duplicated permissions for several roles in one read (reporting)
- Full role/permission listing for administration
"""

from typing import Dict, Any, Iterable, List

from sqlalchemy import bindparam, text
from loguru import logger

from school_admin.core.database_connection import DatabaseManager
from school_admin.psql_db_services.base_service import BaseDatabaseService


class PermissionsService(BaseDatabaseService):
    """Resolves role names to permission names via role_permissions."""

    def __init__(self, database_manager: DatabaseManager):
        super().__init__(database_manager)

    async def get_permissions_for_role(self, role_name: str) -> List[str]:
        """
        Resolve the permission names granted to a role.

        An unknown or empty role name resolves to an empty list.

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On database errors
        """
        if not role_name:
            return []

        sql_query = """
            SELECT p.name
            FROM roles r
            JOIN role_permissions rp ON rp.role_id = r.id
            JOIN permissions p ON p.id = rp.permission_id
            WHERE r.name = :role_name
            ORDER BY p.name
        """
        rows = await self.execute_single_query(sql_query, {"role_name": role_name})
        return [row["name"] for row in rows]

    async def get_permissions_for_roles(self, role_names: Iterable[str]) -> List[str]:
        """
        Resolve the union of permissions granted to several roles.

        Returns:
            Sorted, de-duplicated permission names
        """
        unique_roles = sorted({name for name in role_names if name})
        if not unique_roles:
            return []

        try:
            async with self.get_session() as session:
                statement = text(
                    """
                    SELECT DISTINCT p.name
                    FROM roles r
                    JOIN role_permissions rp ON rp.role_id = r.id
                    JOIN permissions p ON p.id = rp.permission_id
                    WHERE r.name IN :role_names
                    ORDER BY p.name
                    """
                ).bindparams(bindparam("role_names", expanding=True))
                result = await session.execute(statement, {"role_names": unique_roles})
                rows = result.mappings().all()
                return [row["name"] for row in rows]
        except Exception as e:
            logger.error(f"Error resolving permissions for roles {unique_roles}: {e}")
            raise

    async def list_role_permissions(self) -> Dict[str, Any]:
        """
        List every role with its granted permissions, plus all permissions.

        Returns:
            {"roles": [{"id", "name", "permissions": [{"id", "name"}]}],
             "all_permissions": [{"id", "name"}]}
        """
        try:
            async with self.get_session() as session:
                roles_result = await session.execute(
                    text("SELECT id, name FROM roles ORDER BY id")
                )
                roles = [dict(row) for row in roles_result.mappings().all()]

                grants_result = await session.execute(
                    text(
                        """
                        SELECT rp.role_id, p.id, p.name
                        FROM role_permissions rp
                        JOIN permissions p ON p.id = rp.permission_id
                        ORDER BY rp.role_id, p.id
                        """
                    )
                )
                grants = grants_result.mappings().all()

                permissions_result = await session.execute(
                    text("SELECT id, name FROM permissions ORDER BY id")
                )
                all_permissions = [
                    dict(row) for row in permissions_result.mappings().all()
                ]
        except Exception as e:
            logger.error(f"Error listing role permissions: {e}")
            raise

        grants_by_role: Dict[int, List[Dict[str, Any]]] = {}
        for grant in grants:
            grants_by_role.setdefault(grant["role_id"], []).append(
                {"id": grant["id"], "name": grant["name"]}
            )

        return {
            "roles": [
                {
                    "id": role["id"],
                    "name": role["name"],
                    "permissions": grants_by_role.get(role["id"], []),
                }
                for role in roles
            ],
            "all_permissions": all_permissions,
        }
