"""Core interfaces for the collector module.

This module defines the contract a shell stream must implement so the
session engine can drive it, and the result type reported per device.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from netback.config.inventory import Device
    from netback.config.models import ModelProfile


class IShellStream(ABC):
    """Interface for a bidirectional byte stream to a device shell.

    Implementations translate their library's exceptions into
    ``DeviceConnectError``, ``PromptTimeoutError`` and ``StreamError``.
    """

    @abstractmethod
    async def open(self) -> None:
        """Connect and authenticate, leaving an interactive shell open."""

    @abstractmethod
    async def read(self) -> bytes:
        """Return the next chunk received; empty bytes at end of stream."""

    @abstractmethod
    def write(self, data: str) -> None:
        """Send ``data`` to the device as-is."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""


# Builds an unopened stream for a device, its model and the effective timeout
StreamFactory: TypeAlias = Callable[["Device", "ModelProfile", float], IShellStream]


@dataclass(frozen=True)
class DeviceResult:
    """Outcome of backing up one device.

    Exactly one of ``output`` and ``error`` is set.
    """

    device: "Device"
    output: str | None = None
    error: Exception | None = None
    path: Path | None = None

    @property
    def ok(self) -> bool:
        """Whether the backup succeeded."""
        return self.error is None
