"""Structured logging utilities with context information.

This module provides custom LoggerAdapter classes that automatically inject
context information (device name, model, command details) into log records
for better structured logging and debugging.
"""

import logging
import re
import sys
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from netback.config.logging import LoggingConfig

_STATUS_COLORS = {
    "SUCCESS": "[bold green]SUCCESS[/bold green]",
    "STARTED": "[bold blue]STARTED[/bold blue]",
    "FAILED": "[bold red]FAILED[/bold red]",
    "SKIPPED": "[bold orange3]SKIPPED[/bold orange3]",
    "EXECUTING": "[bold cyan]EXECUTING[/bold cyan]",
}

_LEVEL_STATUS = {
    "DEBUG": "DEBUG",
    "INFO": "INFO",
    "WARNING": "WARNING",
    "ERROR": "FAILED",
    "CRITICAL": "CRITICAL",
}


class StatusLoggerAdapter(logging.LoggerAdapter):
    """Base adapter that prefixes messages with a coloured status token.

    The status is derived from the record level and refined by keywords in
    the message. Subclasses provide the descriptor, the subject shown next
    to the status and the extra fields added to each record.
    """

    executing_hints: tuple[str, ...] = ()

    def __init__(self, logger: logging.Logger | logging.LoggerAdapter) -> None:
        """Initialize the adapter around ``logger``."""
        super().__init__(logger, {})

    def _descriptor(self) -> str:
        raise NotImplementedError

    def _subject(self) -> str | None:
        return None

    def _context(self) -> dict[str, Any]:
        return {}

    def _status(self, msg_str: str, level_name: str | None) -> str:
        status = _LEVEL_STATUS.get(level_name or "INFO", level_name or "INFO")
        if "success" in msg_str or "complete" in msg_str:
            return "SUCCESS"
        if "fail" in msg_str or "error" in msg_str:
            return "FAILED"
        if "skip" in msg_str:
            return "SKIPPED"
        if any(hint in msg_str for hint in self.executing_hints):
            return "EXECUTING"
        if "start" in msg_str:
            return "STARTED"
        return status

    def _format_message(self, msg: object, level_name: str | None = None) -> str:
        """Format message with consistent pattern."""
        msg_str = str(msg).lower()
        status = self._status(msg_str, level_name)
        colored_status = _STATUS_COLORS.get(status, status)

        formatted = f"{self._descriptor()} - {colored_status}"
        subject = self._subject()
        if subject:
            formatted += f" - [purple]{subject}[/purple]"
        if msg_str.strip():
            formatted += f" - {msg}"
        return formatted

    def process(
        self, msg: object, kwargs: MutableMapping[str, Any]
    ) -> tuple[object, MutableMapping[str, Any]]:
        """Process the log message and add the adapter's context.

        Args:
            msg: The log message.
            kwargs: Keyword arguments for the log record.

        Returns:
            Tuple of processed message and updated kwargs with context.

        """
        level_name = kwargs.get("extra", {}).get("level_name")

        formatted_msg = self._format_message(msg, level_name)

        extra = kwargs.setdefault("extra", {})
        extra.update(self._context())
        return formatted_msg, kwargs


class DeviceLoggerAdapter(StatusLoggerAdapter):
    """Logger adapter that adds device context to all log messages."""

    def __init__(
        self,
        logger: logging.Logger,
        hostname: str,
        platform: str | None = None,
        task_descriptor: str = "DEVICE_BACKUP",
    ) -> None:
        """Initialize the device logger adapter.

        Args:
            logger: The base logger to wrap.
            hostname: The device name.
            platform: The model of the device.
            task_descriptor: The type of task being performed.

        """
        super().__init__(logger)
        self.hostname = hostname
        self.platform = platform or "unknown"
        self.task_descriptor = task_descriptor

    def _descriptor(self) -> str:
        return self.task_descriptor

    def _subject(self) -> str:
        return f"{self.hostname} ({self.platform})"

    def _context(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "platform": self.platform,
            "task_descriptor": self.task_descriptor,
            "device_context": f"{self.hostname}({self.platform})",
        }


class CommandLoggerAdapter(StatusLoggerAdapter):
    """Logger adapter that adds command execution context to log messages."""

    executing_hints = ("sending", "executing")

    def __init__(
        self,
        logger: logging.Logger,
        hostname: str,
        platform: str | None = None,
        command_name: str | None = None,
        command_text: str | None = None,
    ) -> None:
        """Initialize the command logger adapter.

        Args:
            logger: The base logger to wrap.
            hostname: The device name.
            platform: The model of the device.
            command_name: The stage the command belongs to, e.g. ``commands``.
            command_text: The actual command text being executed.

        """
        super().__init__(logger)
        self.hostname = hostname
        self.platform = platform or "unknown"
        self.command_name = command_name or "unknown_command"
        self.command_text = command_text or ""

    def _descriptor(self) -> str:
        return "COMMAND_EXECUTION"

    def _subject(self) -> str:
        return f"{self.hostname} ({self.platform})"

    def _context(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "platform": self.platform,
            "command_name": self.command_name,
            "command_text": self.command_text,
            "device_context": f"{self.hostname}({self.platform})",
            "command_context": f"{self.command_name}: {self.command_text}",
        }


class AppLoggerAdapter(StatusLoggerAdapter):
    """Logger adapter for application-level messages."""

    def __init__(
        self,
        logger: logging.Logger,
        operation: str = "APPLICATION",
        **context: str | int | float,
    ) -> None:
        """Initialize the app logger adapter.

        Args:
            logger: The base logger to wrap.
            operation: The type of operation (e.g., "APPLICATION", "STARTUP").
            **context: Additional context information as keyword arguments.

        """
        super().__init__(logger)
        self.operation = operation.upper()
        self.context = context

    def _descriptor(self) -> str:
        return self.operation

    def _context(self) -> dict[str, Any]:
        return {"operation": self.operation, **self.context}


class TimingLoggerAdapter(StatusLoggerAdapter):
    """Logger adapter that adds timing context to log messages."""

    def __init__(
        self,
        logger: logging.Logger,
        operation_type: str,
        **context: str | int | float,
    ) -> None:
        """Initialize the timing logger adapter.

        Args:
            logger: The base logger to wrap.
            operation_type: The type of operation being timed (e.g.,
                        "device_backup").
            **context: Additional context information as keyword arguments.

        """
        super().__init__(logger)
        self.operation_type = operation_type.upper()
        self.context = context

    def _descriptor(self) -> str:
        return self.operation_type

    def _subject(self) -> str:
        hostname = self.context.get("hostname", "unknown")
        platform = self.context.get("platform", "unknown")
        return f"{hostname} ({platform})"

    def _status(self, msg_str: str, level_name: str | None) -> str:
        status = super()._status(msg_str, level_name)
        if status == "INFO" and "time:" in msg_str:
            # Timing messages indicate successful completion
            return "SUCCESS"
        return status

    def _context(self) -> dict[str, Any]:
        return {"operation_type": self.operation_type, **self.context}


def _strip_rich_markup(text: str) -> str:
    """Remove Rich markup from text for clean file logging."""
    return re.sub(r"\[/?[^\]]*\]", "", text)


class PlainTextFormatter(logging.Formatter):
    """Custom formatter that strips Rich markup for file logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record and strip Rich markup."""
        formatted = super().format(record)
        return _strip_rich_markup(formatted)


def setup_logging(config: LoggingConfig) -> None:
    """Configure logging for the application using Rich.

    Sets up a Rich console handler and, when a logfile is configured, a
    plain-text file handler, then applies per-library log levels.

    Args:
        config: LoggingConfig instance containing logging configuration.

    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.main.stdout:
        console = Console(file=sys.stderr)

        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=True,
            show_time=True,
            show_level=True,
            show_path=False,
        )

        root_logger.addHandler(rich_handler)

    if config.main.logfile is not None:
        try:
            logfile_path = Path(config.main.logfile)
            logfile_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(
                filename=logfile_path, mode="a", encoding="utf-8"
            )
            file_formatter = PlainTextFormatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(getattr(logging, config.main.level.upper()))

            root_logger.addHandler(file_handler)

        except OSError as e:
            # File logging is optional; keep going with the console
            if config.main.stdout:
                logging.warning("Failed to setup file logging: %s", e)

    root_logger.setLevel(logging.DEBUG)

    _configure_logger("netback", config.main.level)
    _configure_logger("scrapli", config.scrapli.level)
    _configure_logger("asyncssh", config.asyncssh.level)

    _suppress_noisy_loggers()


def _configure_logger(logger_name: str, level: str) -> None:
    """Configure a specific logger with the given level."""
    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, level.upper()))


def _suppress_noisy_loggers() -> None:
    """Suppress logging from noisy third-party libraries."""
    for logger_name in ("asyncio", "concurrent.futures"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)
