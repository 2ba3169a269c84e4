"""
Vitrine Media Configuration Management Module

This module provides configuration management for the upload service using
Pydantic Settings. It loads and validates the environment variables required
for:
- Application settings (name, environment, debug mode, logging)
- CORS allow-list for the storefront front-ends
- Cloudinary credentials and destination folder
- Upload limits for single-file and multi-file requests

All settings support environment variable overrides and .env file loading.
"""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


BYTES_PER_MB: int = 1024 * 1024


class Settings(BaseSettings):
    """
    Configuration settings for the Vitrine Media service.

    Configuration Categories:
    - Application: Core app settings like name, environment, debug mode
    - Logging: Level, output format and optional rotating file output
    - CORS: Allowed front-end origins
    - Cloudinary: Media host credentials and root folder
    - Upload: Size and count limits for both upload modes

    Example usage:
        ```python
        from vitrine_media.config import Settings

        settings = Settings()
        print(f"Publishing into: {settings.media_root_folder}")
        ```
    """

    # =========================================================================
    # Application Settings
    # =========================================================================

    app_name: str = Field(
        default="vitrine-media",
        description="Application name displayed in API documentation and logs",
    )

    app_env: str = Field(
        default="development",
        description="Application environment (development, staging, production, testing)",
    )

    debug: bool = Field(default=False, description="Enable hot-reload and verbose logging")

    host: str = Field(default="0.0.0.0", description="Host address for the API server to bind to")

    port: int = Field(default=5000, description="Port number for the API server", ge=1, le=65535)

    # =========================================================================
    # Logging
    # =========================================================================

    log_level: str = Field(
        default="info", description="Logging level (debug, info, warning, error, critical)"
    )

    json_logs: bool = Field(
        default=True, description="Emit structured JSON logs instead of plain text"
    )

    log_to_file: bool = Field(
        default=False, description="Also write logs to a rotating file under log_dir"
    )

    log_dir: str = Field(default="logs", description="Directory for rotating log files")

    # =========================================================================
    # CORS
    # =========================================================================

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=[
            "http://localhost:5173",
            "http://localhost:3000",
            "https://niki-boutique.vercel.app",
        ],
        description="List of allowed CORS origins for frontend access",
    )

    client_url: str | None = Field(
        default=None, description="Additional deployed front-end origin appended to CORS"
    )

    # =========================================================================
    # Cloudinary Configuration
    # =========================================================================

    cloudinary_cloud_name: str | None = Field(
        default=None, description="Cloudinary cloud name"
    )

    cloudinary_api_key: str | None = Field(default=None, description="Cloudinary API key")

    cloudinary_api_secret: str | None = Field(
        default=None, description="Cloudinary API secret"
    )

    cloudinary_secure: bool = Field(
        default=True, description="Return https delivery URLs for published assets"
    )

    cloudinary_timeout_seconds: int = Field(
        default=120, description="Timeout for a single upload call to Cloudinary", ge=1
    )

    media_root_folder: str = Field(
        default="nono-vitrine",
        description="Root folder under which product images and videos are published",
    )

    # =========================================================================
    # Upload Limits
    # =========================================================================

    single_upload_max_size_mb: int = Field(
        default=5, description="Maximum size of the file sent to the single-file endpoint", ge=1
    )

    multi_upload_max_size_mb: int = Field(
        default=50, description="Maximum size of each file sent to the multi-file endpoint", ge=1
    )

    max_images_per_request: int = Field(
        default=10, description="Maximum number of parts in the 'images' field", ge=1
    )

    max_videos_per_request: int = Field(
        default=5, description="Maximum number of parts in the 'videos' field", ge=1
    )

    max_files_per_request: int = Field(
        default=15, description="Maximum number of files across all fields of one request", ge=1
    )

    # =========================================================================
    # Model Configuration
    # =========================================================================

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log_level is a valid logging level."""
        valid_levels = {"debug", "info", "warning", "error", "critical"}
        normalized = v.lower()
        if normalized not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {', '.join(valid_levels)}")
        return normalized

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate that app_env is a valid environment name."""
        valid_envs = {"development", "staging", "production", "testing"}
        normalized = v.lower()
        if normalized not in valid_envs:
            raise ValueError(f"Invalid app_env '{v}'. Must be one of: {', '.join(valid_envs)}")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from a comma-separated string or a JSON list string."""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("media_root_folder")
    @classmethod
    def validate_media_root_folder(cls, v: str) -> str:
        """Strip surrounding slashes so folder paths join cleanly."""
        normalized = v.strip().strip("/")
        if not normalized:
            raise ValueError("media_root_folder must not be empty")
        return normalized

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def allowed_origins(self) -> list[str]:
        """CORS origins including the optional CLIENT_URL."""
        origins = list(self.cors_origins)
        if self.client_url and self.client_url not in origins:
            origins.append(self.client_url)
        return origins

    @property
    def is_cloudinary_configured(self) -> bool:
        """
        Check if Cloudinary credentials are fully configured.

        Returns True only when cloud name, API key and API secret are all
        provided. Without them no publish call can succeed.
        """
        return all(
            [self.cloudinary_cloud_name, self.cloudinary_api_key, self.cloudinary_api_secret]
        )

    @property
    def single_upload_max_size_bytes(self) -> int:
        """Single-file size limit in bytes."""
        return self.single_upload_max_size_mb * BYTES_PER_MB

    @property
    def multi_upload_max_size_bytes(self) -> int:
        """Per-file size limit in bytes for multi-file requests."""
        return self.multi_upload_max_size_mb * BYTES_PER_MB

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get the global Settings instance.

    The @lru_cache decorator ensures that the Settings object is created only
    once on first call, and subsequent calls return the cached instance without
    re-reading environment variables or .env files.

    Returns:
        Settings: The global configuration instance.
    """
    return Settings()
