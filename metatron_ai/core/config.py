"""
Configuration Settings.

This module defines the gateway configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class DatabaseConfig(BaseModel):
    """Relational database configuration (settings, media records, SQL mode)."""

    url: str = Field(default="sqlite+aiosqlite:///./data/metatron.db", description="Async SQLAlchemy database URL")


class MongoConfig(BaseModel):
    """Document store configuration used by the document query mode."""

    url: Optional[str] = Field(default=None, description="MongoDB connection URL; document mode is off when unset")
    database: str = Field(default="metatron", description="MongoDB database name")


class MediaConfig(BaseModel):
    """Where generated and edited images are written."""

    directory: str = Field(default="./data/media", description="Directory holding generated media files")


class BraveSearchConfig(BaseModel):
    """Brave Search API configuration."""

    base_url: str = Field(
        default="https://api.search.brave.com/res/v1/web/search", description="Brave web search endpoint"
    )
    result_count: int = Field(default=5, ge=1, le=20, description="Number of results requested per query")
    timeout: float = Field(default=15.0, gt=0, description="Request timeout in seconds")


class ImageProviderConfig(BaseModel):
    """HTTP endpoints for the image generation providers."""

    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta", description="Gemini REST API base URL"
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI REST API base URL")
    timeout: float = Field(default=120.0, gt=0, description="Image request timeout in seconds")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    format: str = Field(default="detailed", description="Log format (simple, detailed, json)")
    file_dir: str = Field(default="logs", description="Directory for the log file")
    enable_file: bool = Field(default=False, description="Whether to also log to a file")


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Gateway settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Logging
    # =====================================================================
    log_level: str = Field(default="INFO", alias="METATRON_AI_LOG_LEVEL")
    log_format: str = Field(default="detailed", alias="METATRON_AI_LOG_FORMAT")
    log_file_dir: str = Field(default="logs", alias="METATRON_AI_LOG_FILE_DIR")
    enable_file_logging: bool = Field(default=False, alias="METATRON_AI_ENABLE_FILE_LOGGING")

    # =====================================================================
    # Storage
    # =====================================================================
    database_url: str = Field(default="sqlite+aiosqlite:///./data/metatron.db", alias="METATRON_DATABASE_URL")
    mongo_url: Optional[str] = Field(default=None, alias="METATRON_MONGO_URL")
    mongo_database: str = Field(default="metatron", alias="METATRON_MONGO_DATABASE")
    media_dir: str = Field(default="./data/media", alias="METATRON_MEDIA_DIR")

    # =====================================================================
    # Outbound HTTP
    # =====================================================================
    brave_search_base_url: str = Field(
        default="https://api.search.brave.com/res/v1/web/search", alias="BRAVE_SEARCH_BASE_URL"
    )
    brave_search_result_count: int = Field(default=5, alias="BRAVE_SEARCH_RESULT_COUNT")
    http_timeout_seconds: float = Field(default=15.0, alias="HTTP_TIMEOUT_SECONDS")
    gemini_base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL")
    openai_base_url: str = Field(default="https://api.openai.com/v1", alias="OPENAI_BASE_URL")
    image_timeout_seconds: float = Field(default=120.0, alias="IMAGE_TIMEOUT_SECONDS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def database(self) -> DatabaseConfig:
        """Get relational database configuration."""
        return DatabaseConfig(url=self.database_url)

    @property
    def mongo(self) -> MongoConfig:
        """Get document store configuration."""
        return MongoConfig(url=self.mongo_url, database=self.mongo_database)

    @property
    def media(self) -> MediaConfig:
        """Get media directory configuration."""
        return MediaConfig(directory=self.media_dir)

    @property
    def brave_search(self) -> BraveSearchConfig:
        """Get Brave Search configuration."""
        return BraveSearchConfig(
            base_url=self.brave_search_base_url,
            result_count=self.brave_search_result_count,
            timeout=self.http_timeout_seconds,
        )

    @property
    def image_providers(self) -> ImageProviderConfig:
        """Get image provider endpoint configuration."""
        return ImageProviderConfig(
            gemini_base_url=self.gemini_base_url,
            openai_base_url=self.openai_base_url,
            timeout=self.image_timeout_seconds,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return LoggingConfig(
            level=self.log_level,
            format=self.log_format,
            file_dir=self.log_file_dir,
            enable_file=self.enable_file_logging,
        )


settings = Settings()
