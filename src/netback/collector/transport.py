"""Shell stream backed by scrapli's asyncssh transport.

Scrapli only provides the connection here: authentication, the PTY and raw
channel reads and writes. Prompt handling is left to the session engine.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

import asyncssh
from scrapli.driver import AsyncDriver
from scrapli.exceptions import ScrapliException, ScrapliTimeout

from netback.collector.interfaces import IShellStream
from netback.exceptions import DeviceConnectError, PromptTimeoutError, StreamError

if TYPE_CHECKING:
    from netback.config.inventory import Device
    from netback.config.models import ModelProfile


class ScrapliShellStream(IShellStream):
    """Interactive shell over SSH using scrapli with the asyncssh transport."""

    def __init__(self, device: "Device", timeout: float) -> None:
        """Initialize the stream without connecting.

        Args:
            device: Device connection details.
            timeout: Seconds allowed for connecting and for each read.

        """
        self.device = device
        self.timeout = timeout
        self._conn = AsyncDriver(
            host=device.ip,
            port=device.port,
            auth_username=device.username,
            auth_password=device.password.get_secret_value(),
            auth_strict_key=device.auth_strict_key,
            transport="asyncssh",
            timeout_socket=timeout,
            timeout_transport=timeout,
            timeout_ops=timeout,
        )
        self._logger = logging.getLogger(__name__)

    async def open(self) -> None:
        """Connect, authenticate and open the shell channel."""
        address = f"{self.device.ip}:{self.device.port}"
        try:
            await self._conn.open()
        except (
            ScrapliException, asyncssh.Error, OSError, asyncio.TimeoutError
        ) as exc:
            msg = f"connect {address}: {exc}"
            raise DeviceConnectError(msg) from exc
        self._logger.debug("%s: shell opened on %s", self.device.name, address)

    async def read(self) -> bytes:
        """Read the next chunk from the channel."""
        try:
            return await self._conn.channel.read()
        except ScrapliTimeout as exc:
            msg = f"read timed out after {self.timeout:g}s"
            raise PromptTimeoutError(msg) from exc
        except (ScrapliException, asyncssh.Error, OSError) as exc:
            msg = f"read error: {exc}"
            raise StreamError(msg) from exc

    def write(self, data: str) -> None:
        """Write ``data`` to the channel."""
        try:
            self._conn.channel.write(channel_input=data)
        except (ScrapliException, OSError) as exc:
            msg = f"write error: {exc}"
            raise StreamError(msg) from exc

    async def close(self) -> None:
        """Close the connection."""
        if not self._conn.isalive():
            return
        try:
            await self._conn.close()
        except (ScrapliException, asyncssh.Error, OSError) as exc:
            msg = f"close error: {exc}"
            raise StreamError(msg) from exc


def open_scrapli_stream(
    device: "Device", model: "ModelProfile", timeout: float
) -> ScrapliShellStream:
    """Build a scrapli shell stream for ``device``."""
    return ScrapliShellStream(device, timeout)
