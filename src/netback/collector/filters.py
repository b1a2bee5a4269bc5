"""Output filtering: secret redaction and comment annotation.

Pure text transformations applied to the captures of a device session
before the backup is written.
"""

from collections.abc import Iterable, Sequence

from netback.config.models import ModelProfile
from netback.config.patterns import ExpectRule, SecretRule


def redact(text: str, secrets: Sequence[SecretRule]) -> str:
    """Apply each secret rule to ``text`` in declared order."""
    for secret in secrets:
        text = secret.substitute(text)
    return text


def apply_expect_replacements(text: str, expect: Sequence[ExpectRule]) -> str:
    """Re-apply the textual replacements of expect rules to a full capture.

    Catches matches that were only complete once the capture was assembled.
    Send-only rules are skipped.
    """
    for rule in expect:
        if rule.substitutes_residue:
            text = rule.substitute(text)
    return text


def comment_all_lines(text: str, prefix: str) -> str:
    """Prefix every non-empty line of ``text`` with ``prefix``."""
    if not text or not prefix:
        return text
    return "\n".join(prefix + line if line else line for line in text.split("\n"))


def comment_boundary_lines(text: str, prefix: str) -> str:
    """Prefix the first and last non-empty lines of ``text``.

    Marks the command echo and the trailing prompt of a capture while
    leaving the configuration body untouched. A single non-empty line is
    prefixed once.
    """
    if not text or not prefix:
        return text

    lines = text.split("\n")
    non_empty = [index for index, line in enumerate(lines) if line]
    if not non_empty:
        return text

    first, last = non_empty[0], non_empty[-1]
    lines[first] = prefix + lines[first]
    if last != first:
        lines[last] = prefix + lines[last]
    return "\n".join(lines)


def clean_capture(text: str, model: ModelProfile) -> str:
    """Redact secrets, then apply residual expect replacements."""
    return apply_expect_replacements(redact(text, model.secrets), model.expect)


def render_backup(
    model: ModelProfile,
    comment_outputs: Iterable[str],
    command_outputs: Iterable[str],
) -> str:
    """Assemble the backup text from the captures of one device.

    Comment command captures are commented entirely, command captures only
    on their boundary lines. Empty parts are dropped and the rest joined
    with a newline, comment outputs first.
    """
    parts: list[str] = []

    for output in comment_outputs:
        processed = comment_all_lines(clean_capture(output, model), model.comment)
        if processed:
            parts.append(processed)

    for output in command_outputs:
        processed = comment_boundary_lines(clean_capture(output, model), model.comment)
        if processed:
            parts.append(processed)

    return "\n".join(parts)
