"""
Knowledge Mining - Configuration

Pydantic-based configuration management for the storage and queue services.
All settings are loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Azure Blob Storage
    storage_connection_string: str = Field(
        default="",
        description="Azure Storage connection string",
    )
    storage_container_name: str = Field(
        default="documents",
        description="Name of the container holding uploaded documents",
    )

    # Azure Queue Storage
    queue_connection_string: str = Field(
        default="",
        description="Azure Queue Storage connection string. Defaults to the storage connection string",
    )
    extractive_summary_requests_queue: Optional[str] = Field(
        default=None,
        description="Queue receiving extractive summary requests",
    )
    abstractive_summary_requests_queue: Optional[str] = Field(
        default=None,
        description="Queue receiving abstractive summary requests",
    )

    # Admin
    error_documents_prefix: str = Field(
        default="error-documents",
        description="Blob name prefix of documents that failed processing",
    )
    admin_page_size: int = Field(
        default=100,
        description="Number of error documents listed by the admin endpoint",
    )

    default_request_timeout: Optional[int] = Field(
        default=None,
        description="Server-side timeout in seconds forwarded to every storage call",
    )

    @property
    def effective_queue_connection_string(self) -> str:
        return self.queue_connection_string or self.storage_connection_string

    def validate_required(self) -> list[str]:
        """
        Validate that all required settings are present.

        Returns:
            List of missing required field names.
        """
        missing = []

        if not self.storage_connection_string:
            missing.append("STORAGE_CONNECTION_STRING")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: The application settings.
    """
    return Settings()


def get_settings_uncached() -> Settings:
    """
    Get a fresh settings instance (not cached).
    Useful for testing or when environment changes.

    Returns:
        Settings: The application settings.
    """
    return Settings()
