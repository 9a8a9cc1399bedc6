"""
Configuration settings for the XIGRA+ print backend.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    HOST: str = Field(default="0.0.0.0", description="Listen address")
    PORT: int = Field(default=4000, description="Listen port")
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/xigra.db", description="SQLite database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )

    # Storage Layout
    UPLOAD_DIR: str = Field(
        default="./data/uploads", description="Directory for encrypted uploads"
    )
    SHOP_UPLOAD_DIR: str = Field(
        default="./data/shop_uploads",
        description="Directory for decrypted files, one subdirectory per shop",
    )
    QR_CACHE_DIR: str = Field(
        default="./data/qr_cache", description="Directory for cached QR images"
    )

    # Shop QR Configuration
    UPLOAD_BASE_URL: str = Field(
        default="https://xigra.in/upload?shop=",
        description="Canonical upload URL prefix; the shop id is appended",
    )
    QR_WIDTH: int = Field(default=700, description="QR image width in pixels")
    QR_MARGIN: int = Field(default=2, description="QR quiet zone in modules")

    # Crypto Configuration
    DECRYPTION_SECRET: str = Field(
        default="XIGRA_SECRET_KEY",
        description="Passphrase shared with the upload client",
    )

    # Retention Configuration
    FILE_TTL_SECONDS: int = Field(
        default=10 * 60, description="Files older than this are purged"
    )
    SWEEP_INTERVAL_SECONDS: int = Field(
        default=60, description="How often the expiry sweep runs"
    )

    # File Upload Configuration
    MAX_UPLOAD_SIZE: int = Field(
        default=50 * 1024 * 1024,  # 50 MB
        description="Maximum encrypted upload size in bytes",
    )

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    RATE_LIMIT_UPLOADS: str = Field(default="60/minute")
    RATE_LIMIT_REGISTER: str = Field(default="10/minute")

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")


# Global settings instance
settings = Settings()
