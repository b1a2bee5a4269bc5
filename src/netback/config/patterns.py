"""Compiled pattern rules used for prompts, secrets and expect handling.

Patterns are compiled when the model file is validated, so an invalid
expression is reported as a configuration error before any device is
contacted.

Replacement templates reference capture groups with ``$1``, ``${1}``,
``$name`` or ``${name}``; ``$$`` is a literal dollar sign and backslashes
carry no special meaning. Templates are translated once into the
``\\g<...>`` form understood by :func:`re.sub`.
"""

import re
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

NonEmptyPattern = Annotated[str, Field(min_length=1)]

_TEMPLATE_REFERENCE = re.compile(r"\$(?:(\$)|\{(\w+)\}|(\w+))")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile ``pattern`` or raise ``ValueError`` naming the bad expression."""
    try:
        return re.compile(pattern)
    except re.error as exc:
        msg = f"invalid regular expression {pattern!r}: {exc}"
        raise ValueError(msg) from exc


def translate_template(template: str, regex: re.Pattern[str]) -> str:
    """Translate a ``$``-style replacement template for ``regex.sub``.

    Raises:
        ValueError: If the template references a group ``regex`` lacks.

    """
    parts: list[str] = []
    position = 0
    for match in _TEMPLATE_REFERENCE.finditer(template):
        parts.append(template[position : match.start()].replace("\\", "\\\\"))
        position = match.end()
        if match.group(1):
            parts.append("$")
            continue
        group = match.group(2) or match.group(3)
        if group.isdigit():
            if int(group) > regex.groups:
                msg = (
                    f"replacement {template!r} references group {group} but "
                    f"pattern {regex.pattern!r} has {regex.groups} group(s)"
                )
                raise ValueError(msg)
        elif group not in regex.groupindex:
            msg = (
                f"replacement {template!r} references unknown group "
                f"{group!r} in pattern {regex.pattern!r}"
            )
            raise ValueError(msg)
        parts.append(f"\\g<{group}>")
    parts.append(template[position:].replace("\\", "\\\\"))
    return "".join(parts)


class PatternRule(BaseModel):
    """A regular expression paired with an optional replacement template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: NonEmptyPattern
    replace: str | None = None

    _regex: re.Pattern[str] = PrivateAttr()
    _template: str = PrivateAttr(default="")

    @model_validator(mode="after")
    def compile_rule(self) -> "PatternRule":
        """Compile the pattern and translate the replacement template."""
        self._regex = compile_pattern(self.pattern)
        self._template = translate_template(self.replace or "", self._regex)
        return self

    @property
    def regex(self) -> re.Pattern[str]:
        """The compiled pattern."""
        return self._regex

    def count(self, text: str) -> int:
        """Return the number of non-overlapping matches in ``text``."""
        return sum(1 for _ in self._regex.finditer(text))

    def substitute(self, text: str) -> str:
        """Replace every match in ``text`` with the rule's replacement."""
        return self._regex.sub(self._template, text)


class SecretRule(PatternRule):
    """Redaction rule applied to every captured command output."""

    replace: str


class ExpectRule(PatternRule):
    """Interrupt rule evaluated while waiting for the prompt.

    ``send`` is written to the device as soon as the pattern matches, e.g.
    a space to advance a pager. ``replace`` rewrites the matched text in the
    capture; when only ``send`` is given the matched text is removed.
    """

    send: str | None = None

    @property
    def rewrites(self) -> bool:
        """Whether a match rewrites the in-flight buffer."""
        return self.replace is not None or bool(self.send)

    @property
    def substitutes_residue(self) -> bool:
        """Whether the rule is re-applied to the assembled capture."""
        return self.replace is not None

