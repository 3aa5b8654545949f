#!/usr/bin/env python3
"""
Database Seeder
---------------
Creates the auth tables if missing, seeds roles, permissions and grants,
and upserts the super admin from SUPER_ADMIN_USERNAME / SUPER_ADMIN_PASSWORD /
SUPER_ADMIN_EMAIL. Safe to run repeatedly.

Usage:
    python seed_database.py
"""

import asyncio
import os
import sys

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import school_admin.core.logger_setup  # noqa: F401
from loguru import logger

from school_admin.core.config_manager import settings
from school_admin.core.database_connection import DatabaseManager
from school_admin.psql_db_services.seed_service import SeedService
from school_admin.psql_db_services.users_service import UsersService


async def main() -> int:
    database_manager = DatabaseManager(settings)
    try:
        await database_manager.initialize()
        seed_service = SeedService(
            database_manager=database_manager,
            users_service=UsersService(database_manager),
            settings=settings,
        )
        await seed_service.run()
        return 0
    except Exception as e:
        logger.exception(f"Seeding failed: {e}")
        return 1
    finally:
        await database_manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
