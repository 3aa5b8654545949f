"""
Startup Diagnostics Module
-------------------------
Handles service connectivity verification and error reporting during application startup.
Provides clear, actionable error messages when infrastructure services are unavailable.
"""

from dataclasses import dataclass
from typing import Optional, Dict, List
from loguru import logger

from school_admin.core.config_manager import settings
from school_admin.core.database_connection import DatabaseManager


@dataclass
class ServiceStatus:
    """Track service connection status with detailed error information."""

    name: str
    status: str  # "connected", "failed", "skipped"
    error_message: Optional[str] = None
    suggestion: Optional[str] = None
    connection_details: Optional[Dict[str, str]] = None


def _database_details() -> Dict[str, str]:
    return {
        "host": settings.database_host,
        "port": str(settings.database_port),
        "database": settings.database_name,
    }


def display_startup_failure(failed_services: List[ServiceStatus]):
    """Display formatted startup failure message."""
    border = "═" * 80
    print("\n" + border)
    print("[FATAL ERROR] APPLICATION STARTUP FAILED")
    print(border)

    for service in failed_services:
        print(f"\n[FATAL ERROR] {service.name}: {service.status.upper()}")
        print(f"   Error: {service.error_message}")

        if service.connection_details:
            print("   Connection Details:")
            for key, value in service.connection_details.items():
                print(f"     • {key}: {value}")

        if service.suggestion:
            print(f"   >> Suggestion: {service.suggestion}")

    print("\n" + border)
    print("Please fix the issues above and restart the application.")
    print(border + "\n")


def display_service_info():
    """Display service connection information when all services are healthy."""
    border_line = "═" * 80
    header_line = "─" * 80

    print("\n" + border_line)
    print("SERVICE ENDPOINTS & CONNECTION INFORMATION")
    print(border_line)

    local_api_base = f"http://localhost:{settings.fastapi_port}"
    print("FASTAPI SERVICE")
    print(header_line)
    print(f"{'Service':<20} | {'URL':<57}")
    print(f"{header_line}")
    print(f"{'Main API':<20} | {local_api_base + '/':<57}")
    print(f"{'API Documentation':<20} | {local_api_base + '/api/docs':<57}")
    print(f"{'Auth Endpoints':<20} | {local_api_base + '/api/v1/auth':<57}")
    print(f"{'Health Check':<20} | {local_api_base + '/api/v1/health':<57}")
    print(header_line)

    print("\nPOSTGRESQL DATABASE")
    print(header_line)
    print(f"{'Parameter':<20} | {'Value':<57}")
    print(f"{header_line}")
    print(f"{'Host':<20} | {settings.database_host:<57}")
    print(f"{'Port':<20} | {str(settings.database_port):<57}")
    print(f"{'Database':<20} | {settings.database_name:<57}")
    print(
        f"{'Connection Pool':<20} | {f'{settings.database_pool_size} connections (+ {settings.database_max_overflow} overflow)':<57}"
    )
    print(header_line)

    print("\nTOKEN LIFETIMES")
    print(header_line)
    print(f"{'Access Token':<20} | {f'{settings.jwt_access_token_expire_minutes} minutes':<57}")
    print(f"{'Refresh Token':<20} | {f'{settings.jwt_refresh_token_expire_days} days':<57}")
    print(header_line)
    print(border_line + "\n")

    logger.info("Service endpoints and connection information displayed")


async def verify_database_connectivity(database_manager: DatabaseManager) -> ServiceStatus:
    """Verify database connectivity with detailed error reporting."""
    try:
        if not await database_manager.ping():
            return ServiceStatus(
                name="PostgreSQL",
                status="failed",
                error_message="Connection test query failed",
                suggestion="Check database permissions and query execution",
                connection_details=_database_details(),
            )
        return ServiceStatus(
            name="PostgreSQL",
            status="connected",
            connection_details=_database_details(),
        )
    except ConnectionRefusedError:
        return ServiceStatus(
            name="PostgreSQL",
            status="failed",
            error_message="Connection refused - PostgreSQL is not running or not accessible",
            suggestion=f"Start PostgreSQL server or check if it's running on {settings.database_host}:{settings.database_port}",
            connection_details=_database_details(),
        )
    except Exception as e:
        return ServiceStatus(
            name="PostgreSQL",
            status="failed",
            error_message=str(e),
            suggestion="Check database configuration in .env file and verify credentials",
            connection_details={
                "host": settings.database_host,
                "port": str(settings.database_port),
            },
        )
