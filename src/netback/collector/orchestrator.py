"""Orchestration of configuration backups across many devices.

Every device is backed up by its own task. A semaphore bounds how many
sessions are open at once, and each task produces exactly one result no
matter how it ends.
"""

import asyncio
import logging
import time

from netback.collector.executor import backup_device
from netback.collector.interfaces import DeviceResult, StreamFactory
from netback.collector.transport import open_scrapli_stream
from netback.config.inventory import DEFAULT_TIMEOUT, Device
from netback.config.models import ModelCatalog
from netback.exceptions import DeviceError, UnknownModelError
from netback.utils.logging import AppLoggerAdapter, DeviceLoggerAdapter
from netback.utils.storage import BackupWriter


async def main_workflow(
    devices: list[Device],
    catalog: ModelCatalog,
    writer: BackupWriter,
    max_concurrent_connections: int,
    default_timeout: float,
    stream_factory: StreamFactory,
) -> list[DeviceResult]:
    """Back up every device and collect one result per device.

    Args:
        devices: The devices to back up.
        catalog: Model profiles referenced by the devices.
        writer: Persists successful backups.
        max_concurrent_connections: Max concurrent device sessions.
        default_timeout: Timeout for devices that do not set their own.
        stream_factory: Builds the shell stream for a device.

    Returns:
        The results, in completion order.

    """
    logger = logging.getLogger(__name__)
    semaphore = asyncio.Semaphore(max_concurrent_connections)
    results: list[DeviceResult] = []

    async def guarded_task(device: Device) -> None:
        device_logger = DeviceLoggerAdapter(
            logger,
            hostname=device.name,
            platform=device.model,
            task_descriptor="DEVICE_BACKUP",
        )

        model = catalog.get(device.model)
        if model is None:
            error = UnknownModelError(f"model {device.model!r} not found")
            device_logger.error(f"Skipping device: {error.message}")
            results.append(DeviceResult(device=device, error=error))
            return

        async with semaphore:
            device_logger.info("")
            try:
                result = await backup_device(
                    device, model, stream_factory, default_timeout
                )
            except Exception as e:
                device_logger.error(f"Unexpected error: {e!r}")
                result = DeviceResult(device=device, error=e)

        if result.ok and result.output is not None:
            try:
                path = await asyncio.to_thread(
                    writer.write, device.name, device.group, result.output
                )
            except DeviceError as e:
                device_logger.error(f"Failed to store backup: {e}")
                result = DeviceResult(device=device, error=e)
            else:
                result = DeviceResult(device=device, output=result.output, path=path)
                device_logger.info(f"Backup complete: {path}")

        results.append(result)

    await asyncio.gather(*(guarded_task(device) for device in devices))

    app_logger = AppLoggerAdapter(logger, operation="APPLICATION")
    app_logger.info("All device backup tasks complete")
    return results


class Collector:
    """Entry point for running backups of an inventory."""

    def __init__(self, stream_factory: StreamFactory = open_scrapli_stream) -> None:
        """Initialize the collector.

        Args:
            stream_factory: Builds the shell stream for a device.

        """
        self.stream_factory = stream_factory

    async def collect(
        self,
        devices: list[Device],
        catalog: ModelCatalog,
        writer: BackupWriter,
        max_concurrent_connections: int = 5,
        default_timeout: float = DEFAULT_TIMEOUT,
    ) -> list[DeviceResult]:
        """Execute the backup workflow.

        Args:
            devices: Devices to back up.
            catalog: Model profiles referenced by the devices.
            writer: Persists successful backups.
            max_concurrent_connections: Maximum concurrent device sessions.
            default_timeout: Timeout for devices that do not set their own.

        Returns:
            One result per device.

        """
        start_time = time.perf_counter()
        results = await main_workflow(
            devices,
            catalog,
            writer,
            max_concurrent_connections,
            default_timeout,
            self.stream_factory,
        )
        app_logger = AppLoggerAdapter(logging.getLogger(__name__), operation="BACKUP")
        app_logger.debug(
            f"Backed up {sum(r.ok for r in results)}/{len(results)} devices "
            f"in {time.perf_counter() - start_time:.1f}s"
        )
        return results
