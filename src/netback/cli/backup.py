"""Command to back up device configurations."""

import asyncio
import logging
import time
from pathlib import Path
from typing import Annotated

import typer
from typer import rich_utils

from netback.cli.utils import (
    load_config_with_cli_error_handling,
    load_inventory_with_cli_error_handling,
    load_models_with_cli_error_handling,
    parse_timeout,
    report_results,
)
from netback.collector.orchestrator import Collector
from netback.collector.transport import open_scrapli_stream
from netback.config.config import Config
from netback.config.utils import get_cwd_file
from netback.exceptions import InventoryLoadError, OutputWriteError
from netback.utils.logging import AppLoggerAdapter, setup_logging
from netback.utils.storage import BackupWriter


def backup(  # pylint: disable=too-many-arguments,too-many-locals
    routerdb_file_path: Annotated[
        Path,
        typer.Option(
            ...,
            "--routerdb",
            "-r",
            rich_help_panel="Inventory",
            help="Path to the device inventory (routerdb) file.",
            envvar="NETBACK_ROUTERDB_FILE",
            dir_okay=False,
            exists=True,
            file_okay=True,
            resolve_path=True,
            readable=True,
        ),
    ],
    model_file_path: Annotated[
        Path,
        typer.Option(
            ...,
            "--model",
            "-m",
            rich_help_panel="Inventory",
            help="Path to the model definitions file.",
            envvar="NETBACK_MODEL_FILE",
            dir_okay=False,
            exists=True,
            file_okay=True,
            resolve_path=True,
            readable=True,
        ),
    ],
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            rich_help_panel="Backup",
            help="Directory the backups are written to.",
            envvar="NETBACK_OUTPUT",
            file_okay=False,
            resolve_path=True,
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-w",
            rich_help_panel="Backup",
            help="Number of concurrent device sessions.",
            envvar="NETBACK_WORKERS",
            min=1,
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            rich_help_panel="Backup",
            help="Default per-device timeout, in seconds or as a duration (30s, 1m30s).",
            envvar="NETBACK_TIMEOUT",
            parser=parse_timeout,
            metavar="DURATION",
        ),
    ] = None,
    config_file_path: Annotated[
        Path,
        typer.Option(
            "--config-file",
            "-c",
            rich_help_panel="netback Configuration",
            help="Path to the configuration file.",
            envvar="NETBACK_CONFIG_FILE",
            dir_okay=False,
            file_okay=True,
            resolve_path=True,
        ),
    ] = get_cwd_file("netback.yaml"),
) -> None:
    """Back up the configuration of every device in the routerdb."""
    app_config: Config = load_config_with_cli_error_handling(config_file_path)

    setup_logging(app_config.logging)

    base_logger = logging.getLogger(__name__)
    app_logger = AppLoggerAdapter(base_logger, operation="APPLICATION")
    app_logger.info("Logging configured successfully")

    # Every pattern is compiled here, before any device is contacted
    inventory = load_inventory_with_cli_error_handling(routerdb_file_path)
    catalog = load_models_with_cli_error_handling(model_file_path)

    if not inventory.devices:
        rich_utils.rich_format_error(
            InventoryLoadError("No devices found in the routerdb. Nothing to do.")
        )
        raise typer.Abort()

    writer = BackupWriter(output_dir or app_config.output_path)
    try:
        writer.ensure_root()
    except OutputWriteError as e:
        app_logger.error(f"Failed to create output directory: {e}")
        raise typer.Abort() from e

    backup_start_time = time.perf_counter()
    app_logger.info(f"Starting backup of {len(inventory.devices)} device(s)...")

    collector = Collector(stream_factory=open_scrapli_stream)
    results = asyncio.run(
        collector.collect(
            devices=inventory.devices,
            catalog=catalog,
            writer=writer,
            max_concurrent_connections=workers or app_config.max_concurrent_tasks,
            default_timeout=timeout or app_config.default_timeout,
        )
    )

    backup_time = time.perf_counter() - backup_start_time
    app_logger.info(
        f"Backup complete - TotalTime: {backup_time:.1f}s, "
        f"Backups saved to: {writer.output_root}"
    )

    _, failed = report_results(results)
    if failed:
        raise typer.Exit(code=1)
