"""Model descriptors: the per-platform shell dialogue profile."""

import logging
import re
from pathlib import Path
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from netback.config.patterns import (
    ExpectRule,
    NonEmptyPattern,
    SecretRule,
    compile_pattern,
)
from netback.config.utils import YamlConfigLoader
from netback.exceptions import ModelLoadError

logger = logging.getLogger(__name__)


class ConnectionSettings(BaseModel):
    """Commands sent around the backup itself."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    post_login: list[str] = []
    pre_logout: str | None = None


class ModelProfile(BaseModel):
    """Named protocol profile shared read-only by every device of the model.

    Attributes:
        prompt: Pattern matching the shell's ready line.
        comment: Prefix used to mark lines as commentary. Empty disables
            annotation.
        connection: Post-login and pre-logout commands.
        expect: Interrupt rules evaluated on every chunk read.
        secrets: Redaction rules applied to every capture.
        comments: Commands whose whole output is commented.
        commands: Commands whose output is the backup proper.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    prompt: NonEmptyPattern
    comment: str = ""
    connection: ConnectionSettings = ConnectionSettings()
    expect: list[ExpectRule] = []
    secrets: list[SecretRule] = []
    comments: list[str] = []
    commands: Annotated[list[str], Field(min_length=1)]

    _prompt_regex: re.Pattern[str] = PrivateAttr()

    @model_validator(mode="after")
    def compile_prompt(self) -> "ModelProfile":
        """Compile the prompt pattern."""
        self._prompt_regex = compile_pattern(self.prompt)
        return self

    @field_validator("comment", mode="before")
    @classmethod
    def convert_comment(cls, value: object) -> object:
        """Treat an explicit null comment as no annotation."""
        return "" if value is None else value

    def prompt_matches(self, buffer: str) -> bool:
        """Test the prompt pattern against the unfinished last line of ``buffer``.

        A prompt is never followed by a newline, so a buffer ending in one has
        no prompt line. A single trailing carriage return is dropped.
        """
        last_line = buffer.rpartition("\n")[2].removesuffix("\r")
        return self._prompt_regex.search(last_line) is not None


class ModelCatalog(BaseModel):
    """All model profiles loaded from the model file, keyed by name."""

    models: dict[str, ModelProfile]

    @field_validator("models")
    @classmethod
    def validate_not_empty(
        cls, models: dict[str, ModelProfile]
    ) -> dict[str, ModelProfile]:
        """Validate that at least one model is defined."""
        if not models:
            msg = "no models defined"
            raise ValueError(msg)
        return models

    def get(self, name: str) -> ModelProfile | None:
        """Get the profile for a model name, or None if it is not defined."""
        return self.models.get(name)


def load_models(model_file: Path) -> ModelCatalog:
    """Load and validate the model file.

    Every prompt, expect and secret pattern is compiled here, before any
    device is contacted.

    Raises:
        ModelLoadError: If the file is missing, malformed or invalid.

    """
    catalog = YamlConfigLoader.load(
        model_class=ModelCatalog,
        yaml_file=model_file,
        error_class=ModelLoadError,
    )
    logger.debug("Loaded %d model(s) from %s", len(catalog.models), model_file)
    return catalog
