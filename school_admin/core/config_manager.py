"""
Configuration Manager
--------------------
Centralized configuration management using Pydantic Settings.
All application settings are loaded from environment variables with validation.

The token defaults below are intentionally insecure and exist for local
development only. Set JWT_SECRET_KEY (and ideally JWT_REFRESH_TOKEN_SECRET)
in every deployed environment.
"""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class ApplicationSettings(BaseSettings):
    """Main application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Application metadata
    app_name: str = Field(default="School Admin Backend", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # FastAPI server configuration
    fastapi_host: str = Field(default="0.0.0.0", description="FastAPI host")
    fastapi_port: int = Field(default=8000, description="FastAPI port")
    cors_allowed_origins: List[str] = Field(
        default=["http://localhost:5173"], description="Origins allowed by CORS"
    )

    # PostgreSQL database configuration
    database_host: str = Field(default="localhost", description="PostgreSQL host")
    database_port: int = Field(default=5432, description="PostgreSQL port")
    database_user: str = Field(default="myuser", description="PostgreSQL user")
    database_password: str = Field(
        default="mypassword", description="PostgreSQL password"
    )
    database_name: str = Field(default="school_admin", description="PostgreSQL database name")
    database_pool_size: int = Field(default=20, description="Connection pool size")
    database_max_overflow: int = Field(
        default=10, description="Max overflow connections"
    )

    # Token configuration
    jwt_secret_key: str = Field(
        default="your-secret-change-in-production",
        validation_alias=AliasChoices("jwt_secret_key", "jwt_secret"),
        description="Process-wide access token signing secret",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_access_token_expire_minutes: int = Field(
        default=15, description="Access token lifetime in minutes"
    )
    jwt_refresh_token_expire_days: int = Field(
        default=7, description="Refresh token lifetime in days"
    )
    jwt_refresh_token_secret: Optional[str] = Field(
        default=None,
        description="Dedicated HMAC key for refresh token hashing (falls back to jwt_secret_key)",
    )
    jwt_max_embedded_permissions: int = Field(
        default=32, description="Largest permission list embedded in an access token"
    )
    auth_resolve_omitted_permissions: bool = Field(
        default=False,
        description="Re-resolve permissions from storage when a token carries none",
    )

    # Provisioning (seed script only)
    super_admin_username: str = Field(default="superadmin", description="Seeded super admin username")
    super_admin_password: str = Field(
        default="SuperAdmin@123", description="Seeded super admin password (local only)"
    )
    super_admin_email: str = Field(
        default="superadmin@school.example.com", description="Seeded super admin email"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is acceptable."""
        valid_levels = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        """Only HMAC algorithms work with a single shared secret."""
        valid_algorithms = ["HS256", "HS384", "HS512"]
        v_upper = v.upper()
        if v_upper not in valid_algorithms:
            raise ValueError(f"JWT algorithm must be one of {valid_algorithms}")
        return v_upper

    @field_validator(
        "jwt_access_token_expire_minutes",
        "jwt_refresh_token_expire_days",
        "jwt_max_embedded_permissions",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Token lifetimes and the embedding ceiling must be positive."""
        if v <= 0:
            raise ValueError("Value must be a positive integer")
        return v

    @property
    def database_url(self) -> str:
        """Construct async PostgreSQL database URL."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def refresh_hash_secret(self) -> str:
        """Key used to HMAC refresh tokens before they are stored."""
        return self.jwt_refresh_token_secret or self.jwt_secret_key

    @property
    def access_token_expire_seconds(self) -> int:
        return self.jwt_access_token_expire_minutes * 60


# Global settings instance
settings = ApplicationSettings()
