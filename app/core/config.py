# python
# app/core/config.py
"""Configuration settings for the Issue Log API.

Uses Pydantic BaseSettings for environment variable management.
"""
import secrets
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Issue Log API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Security Settings =====
    jwt_secret: str | None = Field(default=None, description="Access token signing secret")
    jwt_refresh_secret: str | None = Field(
        default=None, description="Refresh token signing secret"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_expire_minutes: int = Field(
        default=24 * 60, description="Access token lifetime in minutes"
    )
    refresh_token_expire_days: int = Field(default=7, description="Refresh token lifetime in days")
    bcrypt_rounds: int = Field(default=12, description="bcrypt cost factor")

    # ===== Database Settings =====
    database_url: str = Field(
        default="sqlite+aiosqlite:///./issue_log.db", description="Database connection URL"
    )
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # ===== File Storage Settings =====
    upload_dir: str = Field(default="uploads", description="Directory for uploaded blobs")
    max_file_size: int = Field(default=10485760, description="Maximum file size in bytes (10MB)")
    max_files_per_upload: int = Field(default=5, description="Maximum files per upload request")
    stray_blob_grace_seconds: int = Field(
        default=3600, description="Minimum age before an unreferenced blob is swept"
    )
    reconcile_on_startup: bool = Field(
        default=True, description="Sweep orphaned records and blobs when the app starts"
    )

    # ===== Rate Limiting =====
    auth_rate_limit_attempts: int = Field(
        default=5, description="Register/login attempts per window"
    )
    auth_rate_limit_window: int = Field(default=900, description="Auth window in seconds")
    refresh_rate_limit_attempts: int = Field(
        default=10, description="Refresh-token attempts per window"
    )
    refresh_rate_limit_window: int = Field(default=900, description="Refresh window in seconds")

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.simple, description="Log format")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=3000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            if lv in ["test"]:
                return "testing"
        return v

    @field_validator("max_file_size")
    @classmethod
    def validate_file_size(cls, v):
        if v <= 0:
            raise ValueError("Maximum file size must be positive")
        if v > 100 * 1024 * 1024:
            raise ValueError("Maximum file size cannot exceed 100MB")
        return v

    @field_validator("max_files_per_upload")
    @classmethod
    def validate_max_files(cls, v):
        if not 1 <= v <= 20:
            raise ValueError("Maximum files per upload must be between 1 and 20")
        return v

    @model_validator(mode="after")
    def set_token_secrets(self):
        # Random secrets keep tokens valid only for the lifetime of the process.
        if self.is_production and not (self.jwt_secret and self.jwt_refresh_secret):
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET are required in production")
        if not self.jwt_secret:
            self.jwt_secret = secrets.token_urlsafe(32)
        if not self.jwt_refresh_secret:
            self.jwt_refresh_secret = secrets.token_urlsafe(32)
        return self


settings = Settings()


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment.value,
        "debug": settings.debug,
        "upload_dir": settings.upload_dir,
        "max_file_size": settings.max_file_size,
        "database_backend": settings.database_url.split(":", 1)[0],
    }


__all__ = [
    "settings",
    "Settings",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
]
