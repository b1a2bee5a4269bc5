"""Configuration backup module.

This module provides the interactive session engine, the output filtering
pipeline and the orchestration that backs up many devices concurrently.
"""

from netback.collector.executor import backup_device
from netback.collector.interfaces import DeviceResult, IShellStream, StreamFactory
from netback.collector.orchestrator import Collector, main_workflow
from netback.collector.session import ShellSession, process_interrupts
from netback.collector.transport import ScrapliShellStream, open_scrapli_stream

__all__ = [
    "Collector",
    "DeviceResult",
    "IShellStream",
    "ScrapliShellStream",
    "ShellSession",
    "StreamFactory",
    "backup_device",
    "main_workflow",
    "open_scrapli_stream",
    "process_interrupts",
]
