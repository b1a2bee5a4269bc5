"""Configuration models for logging."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, StrictBool

from netback.config.utils import get_cwd_file

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class AppLoggingConfig(BaseModel):
    """Configuration for application logging."""

    level: LogLevel = "INFO"
    logfile: Path | None = get_cwd_file("./netback.log")
    stdout: StrictBool = True


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    main: AppLoggingConfig = AppLoggingConfig(level="INFO")
    scrapli: AppLoggingConfig = AppLoggingConfig(level="WARNING")
    asyncssh: AppLoggingConfig = AppLoggingConfig(level="WARNING")
