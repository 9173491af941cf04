"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings.

    All settings can be overridden via environment variables.
    Prefix: GRAPH_TABLES_
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPH_TABLES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = Field(default="console", description='"console" or "json"')

    # Derivation defaults
    default_delimiter: str = Field(
        default=",",
        description="Delimiter used by expand() when none is given",
    )

    # Graph views
    instance_sample_size: int = Field(
        default=5,
        description="Items taken from each node and edge class for the default instance graph",
    )

    # Static tables
    max_static_table_mb: float = Field(
        default=30.0,
        description="Largest text payload add_string_as_static_table loads without skip_size_check",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
