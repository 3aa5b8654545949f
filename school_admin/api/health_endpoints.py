"""
Health Check Endpoints
---------------------
Health monitoring endpoints for the service and its database.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Request
from loguru import logger

from school_admin.models.response_models import HealthStatus, DependencyHealth
from school_admin.core.config_manager import settings
from school_admin.core.database_connection import DatabaseManager


router = APIRouter(prefix="/api/v1/health", tags=["Health"])


@router.get("/", response_model=HealthStatus)
async def health_check():
    """
    Basic health check endpoint.
    Returns service status and version information.
    """
    logger.debug("Health check requested")

    return HealthStatus(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
    )


@router.get("/dependencies", response_model=DependencyHealth, status_code=200)
async def check_dependencies(request: Request):
    """
    Check health of service dependencies (PostgreSQL).

    Always returns 200; an unreachable database is reported as
    status 'unhealthy' in the body.
    """
    logger.debug("Dependency health check requested")

    database_manager: Optional[DatabaseManager] = getattr(
        request.app.state, "database_manager", None
    )
    postgresql_healthy = await _check_database(database_manager)
    status = "healthy" if postgresql_healthy else "unhealthy"

    if not postgresql_healthy:
        logger.warning("Infrastructure health check detected issues: postgresql=False")
    else:
        logger.info("All infrastructure components healthy")

    return DependencyHealth(
        postgresql=postgresql_healthy,
        status=status,
        timestamp=datetime.now(timezone.utc),
    )


async def _check_database(database_manager: Optional[DatabaseManager]) -> bool:
    """
    Check PostgreSQL database connectivity.

    Returns:
        bool: True if database is accessible
    """
    if database_manager is None or not database_manager.is_initialized:
        logger.error("Database health check failed: database manager not initialized")
        return False
    try:
        return await database_manager.ping()
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
