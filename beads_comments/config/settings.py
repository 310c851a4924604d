"""
Configuration settings for the beads comments client.

This module handles environment variable loading and configuration management
using Pydantic for validation and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT_DIR = Path(__file__).parent.parent.resolve()
DEFAULT_LOGGING_CONFIG_PATH = PACKAGE_ROOT_DIR / "config" / "logging_config.yaml"

DEFAULT_INDEXER_URL = "https://hypergoat-app-production.up.railway.app/graphql"
DEFAULT_PROFILE_API_URL = "https://public.api.bsky.app"


class Settings(BaseSettings):
    """
    Beads comments configuration settings.

    All settings can be overridden via environment variables.
    """

    # Read path endpoints
    indexer_url: str = Field(
        default=DEFAULT_INDEXER_URL,
        description="GraphQL endpoint of the record indexer"
    )
    profile_api_url: str = Field(
        default=DEFAULT_PROFILE_API_URL,
        description="Base URL of the public profile API"
    )
    request_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for outbound requests"
    )

    # Pagination and fan-out bounds
    page_size: int = Field(
        default=100,
        description="Records requested per indexer page"
    )
    max_pages: int = Field(
        default=5,
        description="Maximum indexer pages fetched per collection"
    )
    profile_concurrency: int = Field(
        default=5,
        description="Maximum concurrent profile lookups"
    )

    # CLI behaviour
    default_list_limit: int = Field(
        default=10,
        description="Root comments shown when no item is selected"
    )

    # Write path credentials
    pds_url: str = Field(
        default="https://bsky.social",
        description="Personal data server that accepts new comment records"
    )
    access_jwt: Optional[str] = Field(
        default=None,
        description="Access token for the personal data server"
    )
    did: Optional[str] = Field(
        default=None,
        description="Author identifier to post as (looked up from the session if unset)"
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level"
    )
    logging_config_path: str = Field(
        default=str(DEFAULT_LOGGING_CONFIG_PATH),
        description="Path to the logging dictConfig YAML file"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()
