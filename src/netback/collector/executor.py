"""Backup of a single device.

Connects, waits for the first prompt, runs the post-login, comment and
backup commands in order, sends the pre-logout command and closes the
session, then filters the captures into the backup text.
"""

import asyncio
import logging
import time

from netback.collector.filters import render_backup
from netback.collector.interfaces import DeviceResult, StreamFactory
from netback.collector.session import ShellSession
from netback.config.inventory import Device
from netback.config.models import ModelProfile
from netback.exceptions import DeviceError
from netback.utils.logging import DeviceLoggerAdapter, TimingLoggerAdapter

# Pause after pre-logout so the device can end the session itself
LOGOUT_GRACE_PERIOD = 0.1


async def _run_commands(
    session: ShellSession, model: ModelProfile
) -> tuple[list[str], list[str]]:
    """Run every command of the model and return the raw captures."""
    await session.read_until_prompt()
    await session.run_post_login()

    comment_outputs = [
        await session.execute(command, stage="comments") for command in model.comments
    ]
    command_outputs = [
        await session.execute(command, stage="commands") for command in model.commands
    ]

    session.run_pre_logout()
    await asyncio.sleep(LOGOUT_GRACE_PERIOD)
    return comment_outputs, command_outputs


async def backup_device(
    device: Device,
    model: ModelProfile,
    stream_factory: StreamFactory,
    default_timeout: float,
) -> DeviceResult:
    """Back up one device and return its result.

    Device errors are captured in the result; the session is closed on every
    path before returning.

    Args:
        device: Device connection details.
        model: The device's model profile.
        stream_factory: Builds the shell stream for the device.
        default_timeout: Timeout used when the device does not set one.

    Returns:
        The backup text on success, the error otherwise.

    """
    base_logger = logging.getLogger(__name__)
    device_logger = DeviceLoggerAdapter(
        base_logger,
        hostname=device.name,
        platform=device.model,
        task_descriptor="DEVICE_CONNECTION",
    )
    timeout = device.effective_timeout(default_timeout)

    device_start_time = time.perf_counter()
    stream = stream_factory(device, model, timeout)
    session = ShellSession(
        stream, model, timeout, hostname=device.name, model_name=device.model
    )
    try:
        await stream.open()
        connection_time = time.perf_counter() - device_start_time
        device_logger.debug(f"Connected in {connection_time:.1f}s")

        commands_start_time = time.perf_counter()
        comment_outputs, command_outputs = await _run_commands(session, model)
        commands_time = time.perf_counter() - commands_start_time
    except DeviceError as e:
        device_logger.error(f"Backup failed: {e}")
        return DeviceResult(device=device, error=e)
    finally:
        try:
            await session.close()
        except DeviceError as e:
            device_logger.warning(f"Ignoring close error: {e}")

    output = render_backup(model, comment_outputs, command_outputs)

    total_device_time = time.perf_counter() - device_start_time
    timing_logger = TimingLoggerAdapter(
        base_logger,
        operation_type="device_backup",
        hostname=device.name,
        platform=device.model,
        connection_time=round(connection_time, 3),
        commands_time=round(commands_time, 3),
        total_time=round(total_device_time, 3),
        commands_count=len(model.comments) + len(model.commands),
    )
    timing_logger.info(
        f"ConnectionTime: {connection_time:.1f}s, "
        f"CommandsTime: {commands_time:.1f}s, "
        f"TotalTime: {total_device_time:.1f}s"
    )
    return DeviceResult(device=device, output=output)
