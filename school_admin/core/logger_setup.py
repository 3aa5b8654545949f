"""
Logger Setup
-----------
Centralized logging configuration using loguru.
Provides structured logging with proper formatting and rotation.

Every record passes through scrub_sensitive_values before reaching a sink,
so raw refresh tokens, access tokens and passwords never land in a log.
"""

import re
import sys
from typing import Any, Dict

from loguru import logger
from school_admin.core.config_manager import settings

REDACTED = "[redacted]"

# key=value / key: value / "key": "value" pairs whose value must not be logged
_SENSITIVE_KEY_PATTERN = re.compile(
    r"(?i)(\b(?:refresh_token|access_token|token_hash|password|authorization)\b"
    r"[\"']?\s*[:=]\s*[\"']?)(?:bearer\s+)?[^\s\"',}]+"
)
_SENSITIVE_VALUE_PATTERNS = [
    # Signed JWTs (header.payload.signature, header starts with '{"')
    re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+"),
    # Raw refresh tokens: 64 random bytes, hex encoded
    re.compile(r"\b[0-9a-f]{128}\b"),
]


def scrub_sensitive_values(record: Dict[str, Any]) -> None:
    """loguru patcher: redact token and password values in the message."""
    message = _SENSITIVE_KEY_PATTERN.sub(rf"\1{REDACTED}", record["message"])
    for pattern in _SENSITIVE_VALUE_PATTERNS:
        message = pattern.sub(REDACTED, message)
    record["message"] = message


def configure_logger() -> None:
    """
    Configure loguru logger with appropriate settings.
    Removes default handler and adds custom formatted handler.
    """
    # Remove default handler
    logger.remove()
    logger.configure(patcher=scrub_sensitive_values)

    logger.add(
        sys.stdout,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=settings.log_level,
        colorize=True,
        backtrace=True,
        diagnose=settings.debug,
    )

    # File handler outside debug mode
    if not settings.debug:
        logger.add(
            "logs/school_admin_{time:YYYY-MM-DD}.log",
            rotation="500 MB",
            retention="10 days",
            level=settings.log_level,
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{name}:{function}:{line} | {message}"
            ),
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logger configured with level: {settings.log_level}")


# Configure logger on import
configure_logger()
