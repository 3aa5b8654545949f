"""
Uvicorn Startup Script
----------------------
FastAPI application startup script.
"""

import sys
import os

# Add project root to Python path
project_root = os.path.dirname(os.path.abspath(__file__))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import uvicorn
from school_admin.core.config_manager import settings


if __name__ == "__main__":
    # Bind to all interfaces; startup diagnostics print localhost URLs
    uvicorn.run(
        app="school_admin.app:app",  # the `app` variable in school_admin/app.py
        host=settings.fastapi_host,
        port=settings.fastapi_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
