"""Exceptions for netback."""

import click


class NetbackCliError(click.ClickException):
    """Base exception for netback CLI errors."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        """Initialize the NetbackCliError with a message and exit code.

        Args:
            message: The error message to display.
            exit_code: The exit code to use when the exception is raised.

        """
        super().__init__(message)
        self.exit_code = exit_code


class ConfigLoadError(NetbackCliError):
    """Custom exception for configuration loading failures."""


class InventoryLoadError(ConfigLoadError):
    """Custom exception for device inventory (routerdb) loading failures."""


class ModelLoadError(ConfigLoadError):
    """Custom exception for model file loading failures."""


class UnknownModelError(ConfigLoadError):
    """A device references a model that is not defined in the model file."""


class DeviceError(Exception):
    """Base exception for failures that only affect a single device."""


class DeviceConnectError(DeviceError):
    """Dialing or authenticating to the device failed."""


class PromptTimeoutError(DeviceError, TimeoutError):
    """The prompt did not appear before the read deadline."""


class StreamError(DeviceError):
    """The shell stream faulted while reading, writing or closing."""


class OutputWriteError(DeviceError):
    """The filtered configuration could not be persisted."""
