"""CLI utility functions."""

import importlib.metadata
from collections.abc import Callable, Iterable
from functools import wraps
from pathlib import Path
from typing import Any

import typer
from rich import print as rich_print
from rich.markup import escape
from typer import Exit as typerExit
from typer import rich_utils

from netback.collector.interfaces import DeviceResult
from netback.config.config import Config, load_config
from netback.config.inventory import Inventory, load_inventory
from netback.config.models import ModelCatalog, load_models
from netback.config.utils import parse_duration
from netback.exceptions import (
    ConfigLoadError,
    InventoryLoadError,
    ModelLoadError,
    NetbackCliError,
)


def cli_error_handler(
    error_class: type[NetbackCliError] = ConfigLoadError,
    error_message_prefix: str = "Error loading",
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Create a decorator to standardize CLI error handling for loader functions.

    Args:
        error_class: The exception class to use for error formatting.
        error_message_prefix: The prefix for error messages.

    Returns:
        A decorator that wraps functions with standardized CLI error handling.

    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:  # type: ignore[misc] # noqa: ANN002,ANN003,ANN401
            try:
                return func(*args, **kwargs)
            except NetbackCliError as exc:
                rich_utils.rich_format_error(
                    error_class(f"{error_message_prefix}: {exc.message}")
                )
                raise typer.Abort() from exc

        return wrapper

    return decorator


# https://github.com/fastapi/typer/issues/52
def version_callback(value: bool) -> None:
    """Display the version of the CLI."""
    if value:
        package_version = importlib.metadata.version("netback")
        rich_print(f"netback {package_version}")
        raise typerExit(0)


def parse_timeout(value: str) -> float:
    """Parse a positive timeout given in seconds or as a duration like ``30s``."""
    seconds = parse_duration(value)
    if seconds <= 0:
        msg = f"timeout must be positive, got {value!r}"
        raise ValueError(msg)
    return seconds


@cli_error_handler(InventoryLoadError, "Error loading routerdb")
def load_inventory_with_cli_error_handling(inventory_file: Path) -> Inventory:
    """Load the device inventory with CLI error handling.

    Raises:
        typer.Abort: If the inventory cannot be loaded.

    """
    return load_inventory(inventory_file)


@cli_error_handler(ModelLoadError, "Error loading models")
def load_models_with_cli_error_handling(model_file: Path) -> ModelCatalog:
    """Load the model file with CLI error handling.

    Raises:
        typer.Abort: If the model file cannot be loaded.

    """
    return load_models(model_file)


@cli_error_handler(ConfigLoadError, "Error loading configuration")
def load_config_with_cli_error_handling(config_file_path: Path | None) -> Config:
    """Load configuration from a YAML file with CLI error handling.

    Raises:
        typer.Abort: If the configuration cannot be loaded.

    """
    return load_config(config_file_path)


def report_results(results: Iterable[DeviceResult]) -> tuple[int, int]:
    """Print one line per device and the aggregate counts.

    Returns:
        The number of successful and failed devices.

    """
    success = failed = 0
    for result in results:
        name = escape(result.device.name)
        if result.ok:
            rich_print(f"[green]OK[/green]   {name} -> {escape(str(result.path))}")
            success += 1
        else:
            rich_print(f"[red]FAIL[/red] {name}: {escape(str(result.error))}")
            failed += 1

    rich_print(f"\nCompleted: {success} success, {failed} failed")
    return success, failed
