"""Storage of backed up configurations on the local filesystem.

Each device is written to ``<output-root>/<group>/<device-name>``.
"""

import logging
from pathlib import Path

from netback.exceptions import OutputWriteError
from netback.utils.logging import DeviceLoggerAdapter


class BackupWriter:
    """Writes filtered device configurations below an output root."""

    def __init__(self, output_root: Path) -> None:
        """Initialize the writer.

        Args:
            output_root: Directory that holds one subdirectory per group.

        """
        self.output_root = output_root

    def ensure_root(self) -> Path:
        """Create the output root if it does not exist.

        Raises:
            OutputWriteError: If the directory cannot be created.

        """
        try:
            self.output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"create output directory {self.output_root}: {exc}"
            raise OutputWriteError(msg) from exc
        return self.output_root

    def file_path(self, device_name: str, group: str) -> Path:
        """Return the backup file path for a device."""
        return self.output_root / group / device_name

    def write(self, device_name: str, group: str, content: str) -> Path:
        """Write ``content`` as the backup of ``device_name``.

        Group directories are created as needed and an existing backup is
        replaced.

        Returns:
            The path that was written.

        Raises:
            OutputWriteError: If the directory or file cannot be written.

        """
        device_logger = DeviceLoggerAdapter(
            logging.getLogger(__name__),
            hostname=device_name,
            platform=group,
            task_descriptor="BACKUP_STORAGE",
        )
        target = self.file_path(device_name, group)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"create group directory {target.parent}: {exc}"
            raise OutputWriteError(msg) from exc

        try:
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            msg = f"write {target}: {exc}"
            raise OutputWriteError(msg) from exc

        device_logger.debug(f"Stored {len(content)} characters in '{target}'")
        return target
