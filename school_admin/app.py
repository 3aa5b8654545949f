"""
FastAPI Application Entry Point
-------------------------------
Main application initialization and configuration.
Registers routers, middleware, and lifecycle handlers.
"""

# Configure logging before anything else logs
import school_admin.core.logger_setup  # noqa: F401

import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from school_admin.core.clock import SystemClock
from school_admin.core.config_manager import settings
from school_admin.core.database_connection import DatabaseManager
from school_admin.core.service_container import ServiceContainer
from school_admin.core.startup_diagnostics import (
    display_startup_failure,
    display_service_info,
    verify_database_connectivity,
)
from school_admin.api import auth_endpoints, health_endpoints


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager with graceful error handling."""

    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Debug mode: {settings.debug}")

    # The only process-wide storage handle; passed explicitly to every service
    database_manager = DatabaseManager(settings)

    logger.info("Checking PostgreSQL connectivity...")
    await database_manager.initialize()
    postgres_status = await verify_database_connectivity(database_manager)

    if postgres_status.status == "connected":
        logger.info("[SUCCESS] PostgreSQL connected and ready")
    else:
        logger.error(f"[FAILED] PostgreSQL: {postgres_status.error_message}")
        display_startup_failure([postgres_status])
        logger.error("Application startup failed: PostgreSQL unavailable")
        os._exit(1)  # Exit immediately without traceback

    app.state.database_manager = database_manager
    app.state.services = ServiceContainer.build(
        database_manager=database_manager,
        settings=settings,
        clock=SystemClock(),
    )

    display_service_info()
    logger.info("[SUCCESS] Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    try:
        await database_manager.close()
        logger.info("Application shutdown complete")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="School administration backend: authentication, sessions and permission-based access control",
    lifespan=lifespan,
    debug=settings.debug,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    swagger_ui_parameters={"displayRequestDuration": True},
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_endpoints.router)
app.include_router(auth_endpoints.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with basic information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "docs": "/api/docs",
        "redoc": "/api/redoc",
        "openapi": "/api/openapi.json",
    }
