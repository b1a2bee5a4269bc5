"""Configuration models for the app."""

from pathlib import Path
from typing import Any

from pydantic import PositiveFloat, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from netback.config.inventory import DEFAULT_TIMEOUT
from netback.config.logging import LoggingConfig
from netback.config.utils import YamlConfigLoader, get_cwd_file, parse_duration


class Config(BaseSettings):
    """Configuration for the application.

    Values missing from the configuration file are read from ``NETBACK_*``
    environment variables before falling back to the defaults below.
    """

    model_config = SettingsConfigDict(
        env_prefix="NETBACK_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    logging: LoggingConfig = LoggingConfig()
    output_path: Path = get_cwd_file("configs")
    max_concurrent_tasks: PositiveInt = 5
    default_timeout: PositiveFloat = DEFAULT_TIMEOUT

    @field_validator("default_timeout", mode="before")
    @classmethod
    def convert_default_timeout(cls, value: Any) -> Any:
        """Accept duration strings such as ``30s`` or ``1m30s``."""
        return parse_duration(value)


def load_config(config_file: Path | None) -> "Config":
    """Load configuration from a file."""

    def default_config() -> "Config":
        """Create a default configuration."""
        return Config()

    if config_file is None:
        return default_config()

    return YamlConfigLoader.load(
        model_class=Config,
        yaml_file=config_file,
        default_factory=default_config,
    )
