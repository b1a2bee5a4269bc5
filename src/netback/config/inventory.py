"""Configuration models for the device inventory (routerdb)."""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    Field,
    SecretStr,
    StrictBool,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from netback.config.utils import YamlConfigLoader, parse_duration
from netback.exceptions import InventoryLoadError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 22
DEFAULT_TIMEOUT = 30.0

PathComponent = Annotated[str, Field(min_length=1)]


class Device(BaseSettings):
    """Model representing the connection details for a network device."""

    model_config = SettingsConfigDict(
        extra="forbid",
        frozen=True,
        env_prefix="NETBACK_DEVICE_",
    )

    # Used as the backup file name
    name: PathComponent
    # IP address or hostname of the device
    ip: Annotated[str, Field(min_length=1)]
    model: Annotated[str, Field(min_length=1)]
    # Output subdirectory
    group: PathComponent
    username: Annotated[str, Field(min_length=1)]
    password: SecretStr
    port: Annotated[int, Field(ge=1, le=65535)] = DEFAULT_PORT
    timeout: Annotated[float, Field(gt=0)] | None = None
    auth_strict_key: StrictBool = False

    @field_validator("name", "group")
    @classmethod
    def validate_path_component(cls, value: str) -> str:
        """Validate that the value can be used as a single path component."""
        if value in (".", "..") or "/" in value or "\\" in value:
            msg = f"{value!r} cannot be used as a file or directory name"
            raise ValueError(msg)
        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: SecretStr) -> SecretStr:
        """Validate that the password is not empty."""
        if not value.get_secret_value():
            msg = "password is required"
            raise ValueError(msg)
        return value

    @field_validator("timeout", mode="before")
    @classmethod
    def convert_timeout(cls, value: Any) -> Any:
        """Convert duration strings such as '30s' into seconds."""
        if value is None:
            return None
        return parse_duration(value)

    def effective_timeout(self, default: float = DEFAULT_TIMEOUT) -> float:
        """Return the device timeout, falling back to ``default``."""
        return self.timeout if self.timeout is not None else default

    def __repr_args__(self) -> Sequence[tuple[str | None, Any]]:
        """Exclude None values from the representation."""
        return [
            (key, value) for key, value in super().__repr_args__() if value is not None
        ]


class Inventory(BaseModel):
    """Model representing an inventory of network devices."""

    devices: list[Device] = []

    @model_validator(mode="after")
    def validate_unique_targets(self) -> "Inventory":
        """Validate that no two devices write to the same backup file."""
        seen: set[tuple[str, str]] = set()
        for device in self.devices:
            target = (device.group.lower(), device.name.lower())
            if target in seen:
                msg = (
                    f"Duplicate device found: {device.group}/{device.name}. "
                    "Device names must be unique within a group (case-insensitive)."
                )
                raise ValueError(msg)
            seen.add(target)
        return self


def load_inventory(inventory_file: Path) -> Inventory:
    """Load the device inventory from a YAML file.

    Args:
        inventory_file: Path to the routerdb YAML file.

    Returns:
        The validated inventory.

    Raises:
        InventoryLoadError: If the file is missing, malformed or invalid.

    """
    inventory = YamlConfigLoader.load(
        model_class=Inventory,
        yaml_file=inventory_file,
        error_class=InventoryLoadError,
    )
    logger.debug("Loaded %d device(s) from %s", len(inventory.devices), inventory_file)
    return inventory
