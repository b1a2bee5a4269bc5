"""Utility functions for configuration management."""

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings

from netback.exceptions import ConfigLoadError

if TYPE_CHECKING:
    from pydantic_core import ErrorDetails

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class YamlConfigLoader:
    """Generic YAML configuration loader factory for Pydantic models."""

    @staticmethod
    def load(
        model_class: type[T],
        yaml_file: Path,
        default_factory: Callable[[], T] | None = None,
        error_class: type[ConfigLoadError] = ConfigLoadError,
    ) -> T:
        """Load and validate a YAML configuration file into a Pydantic model.

        Settings models are instantiated rather than validated so that values
        missing from the file can still be picked up from the environment.

        Args:
            model_class: The Pydantic model class to validate against.
            yaml_file: Path to the YAML configuration file.
            default_factory: Optional function to create a default instance
                if the file doesn't exist or is empty.
            error_class: The ConfigLoadError subclass raised on failure.

        Returns:
            An instance of the specified Pydantic model.

        Raises:
            ConfigLoadError: If there are validation errors or file loading
                issues.

        """
        if not yaml_file.exists() or yaml_file.stat().st_size == 0:
            return YamlConfigLoader._handle_missing_or_empty_file(
                yaml_file, default_factory, error_class
            )

        try:
            yaml_data = YamlConfigLoader._load_yaml_data(yaml_file)

            if yaml_data is None:
                return YamlConfigLoader._handle_missing_or_empty_file(
                    yaml_file, default_factory, error_class, "contains no data"
                )
            if not isinstance(yaml_data, dict):
                msg = f"Configuration file {yaml_file} must contain a mapping."
                raise error_class(msg)

            if issubclass(model_class, BaseSettings):
                return model_class(**yaml_data)
            return model_class.model_validate(yaml_data)

        except ConfigLoadError:
            raise
        except FileNotFoundError as exc:
            logger.error("Configuration file %s does not exist.", yaml_file)
            msg = f"Configuration file {yaml_file} does not exist."
            raise error_class(msg) from exc
        except ValidationError as exc:
            error_msg = validation_errors(filepath=yaml_file.name, errors=exc.errors())
            logger.error(error_msg)
            raise error_class(error_msg) from exc
        except (OSError, yaml.YAMLError) as exc:
            logger.error("Failed to load configuration: %s", exc)
            msg = f"Failed to load configuration from {yaml_file}: {exc}"
            raise error_class(msg) from exc

    @staticmethod
    def _handle_missing_or_empty_file(
        yaml_file: Path,
        default_factory: Callable[[], T] | None,
        error_class: type[ConfigLoadError],
        reason: str = "does not exist or is empty",
    ) -> T:
        """Handle missing or empty configuration files."""
        if default_factory:
            logger.info(
                "Configuration file %s %s, using defaults.",
                yaml_file,
                reason,
            )
            return default_factory()
        logger.error("Configuration file %s %s.", yaml_file, reason)
        msg = f"Configuration file {yaml_file} {reason}."
        raise error_class(msg)

    @staticmethod
    def _load_yaml_data(yaml_file: Path) -> Any:
        """Load YAML data from file."""
        with Path.open(yaml_file, encoding="utf-8") as file:
            return yaml.safe_load(file)


def validation_errors(
    filepath: str,
    errors: list["ErrorDetails"] | list[dict[str, Any]],
) -> str:
    """Format validation errors into a human-readable string.

    Args:
        filepath: The path to the configuration file.
        errors: A list of validation errors.

    Returns:
        A formatted string describing the validation errors.

    """
    sp_4 = " " * 4
    as_human = ["Configuration errors", f"{sp_4}File:[{filepath}]"]

    for _err in errors:
        loc_str = ".".join(map(str, _err.get("loc", [])))
        msg = _err.get("msg", "Unknown error")
        as_human.append(f"{sp_4}Section: [{loc_str}]: {msg}")

    return "\n".join(as_human)


def parse_duration(value: Any) -> float:
    """Convert a timeout value into seconds.

    Accepts plain numbers (seconds) and duration strings made of one or more
    ``<number><unit>`` parts, e.g. ``30s``, ``1m30s`` or ``500ms``.

    Raises:
        ValueError: If the value cannot be interpreted as a duration.

    """
    if isinstance(value, bool):
        msg = f"invalid duration {value!r}"
        raise ValueError(msg)
    if isinstance(value, int | float):
        return float(value)
    if not isinstance(value, str):
        msg = f"invalid duration {value!r}"
        raise ValueError(msg)

    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()
    if position == 0 or position != len(text):
        msg = f"invalid duration {value!r}"
        raise ValueError(msg)
    return seconds


def get_cwd_file(relative_file_path: str) -> Path:
    """Get the absolute path to a file in the current working directory.

    Args:
        relative_file_path: The relative path to the file from the current
            working directory.

    Returns:
        The absolute path to the file.

    """
    return Path.cwd() / relative_file_path
