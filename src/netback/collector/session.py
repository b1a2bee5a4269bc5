"""Interactive shell session engine.

Device shells are unstructured text streams. A command is complete when the
model's prompt pattern matches the last line received, and transient
prompts such as pagers are handled by the model's expect rules, evaluated
against the whole buffer every time a chunk arrives.
"""

import asyncio
import codecs
import logging
from collections.abc import Sequence
from typing import NamedTuple

from netback.collector.interfaces import IShellStream
from netback.config.models import ModelProfile
from netback.config.patterns import ExpectRule
from netback.exceptions import PromptTimeoutError, StreamError
from netback.utils.logging import CommandLoggerAdapter, DeviceLoggerAdapter

LINE_TERMINATOR = "\n"


class InterruptOutcome(NamedTuple):
    """Result of evaluating expect rules against a buffer."""

    buffer: str
    replies: list[str]
    rewritten: bool


def process_interrupts(buffer: str, rules: Sequence[ExpectRule]) -> InterruptOutcome:
    """Evaluate expect rules against ``buffer`` in declared order.

    A matching rule with ``send`` queues one reply per match. A matching rule
    that rewrites replaces all of its matches, and later rules see the
    rewritten text.

    Args:
        buffer: The accumulated output of the current read.
        rules: The model's expect rules.

    Returns:
        The possibly rewritten buffer, the replies to send in order, and
        whether any rewrite happened.

    """
    replies: list[str] = []
    rewritten = False

    for rule in rules:
        matches = rule.count(buffer)
        if not matches:
            continue
        if rule.send:
            replies.extend([rule.send] * matches)
        if rule.rewrites:
            buffer = rule.substitute(buffer)
            rewritten = True

    return InterruptOutcome(buffer, replies, rewritten)


class ShellSession:
    """Request/response dialogue with one device over a shell stream.

    The session exclusively owns ``stream`` until :meth:`close` is called.
    """

    def __init__(
        self,
        stream: IShellStream,
        model: ModelProfile,
        timeout: float,
        hostname: str = "unknown",
        model_name: str | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            stream: An opened shell stream.
            model: The dialogue profile for the device.
            timeout: Seconds allowed for each read-until-prompt cycle.
            hostname: Device name used in log messages.
            model_name: Model name used in log messages.

        """
        self.stream = stream
        self.model = model
        self.timeout = timeout
        self.hostname = hostname
        self.model_name = model_name
        self._buffer = ""
        self._closed = False
        self._logger = logging.getLogger(__name__)

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def _command_logger(self, stage: str, command: str) -> CommandLoggerAdapter:
        return CommandLoggerAdapter(
            self._logger,
            hostname=self.hostname,
            platform=self.model_name,
            command_name=stage,
            command_text=command,
        )

    def send(self, text: str) -> None:
        """Write ``text`` to the device without waiting for a response."""
        try:
            self.stream.write(text)
        except OSError as exc:
            msg = f"write error: {exc}"
            raise StreamError(msg) from exc

    def send_line(self, command: str) -> None:
        """Write ``command`` followed by the line terminator."""
        self.send(command + LINE_TERMINATOR)

    async def read_until_prompt(self, timeout: float | None = None) -> str:
        """Read until the prompt appears, the stream ends or time runs out.

        Expect rules are applied to the buffer on every chunk before the
        prompt is tested, so a pager can be dismissed and the final prompt
        recognised within the same read.

        Args:
            timeout: Seconds to wait; defaults to the session timeout.

        Returns:
            Everything read, after expect-rule rewrites.

        Raises:
            PromptTimeoutError: If the deadline passes before the prompt.
            StreamError: If the stream faults.

        """
        timeout = self.timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                msg = f"timeout after {timeout:g}s waiting for prompt"
                raise PromptTimeoutError(msg)

            try:
                async with asyncio.timeout(remaining):
                    chunk = await self.stream.read()
            except PromptTimeoutError:
                raise
            except TimeoutError as exc:
                msg = f"timeout after {timeout:g}s waiting for prompt"
                raise PromptTimeoutError(msg) from exc
            except OSError as exc:
                msg = f"read error: {exc}"
                raise StreamError(msg) from exc

            if not chunk:
                self._buffer += decoder.decode(b"", final=True)
                break

            self._buffer += decoder.decode(chunk)

            outcome = process_interrupts(self._buffer, self.model.expect)
            for reply in outcome.replies:
                self._logger.debug("%s: expect reply %r", self.hostname, reply)
                self.send(reply)
            if outcome.rewritten:
                self._buffer = outcome.buffer

            if self.model.prompt_matches(self._buffer):
                break

        return self._buffer

    async def execute(self, command: str, stage: str = "commands") -> str:
        """Send ``command`` and return everything up to the next prompt.

        The capture includes the command echo and the prompt line.
        """
        command_logger = self._command_logger(stage, command)
        command_logger.debug(f"Sending command '{command}'")
        self.send_line(command)
        output = await self.read_until_prompt()
        command_logger.debug(f"Command '{command}' complete, {len(output)} characters")
        return output

    async def run_post_login(self) -> None:
        """Run the model's post-login commands in order.

        The first failure aborts the sequence and propagates.
        """
        for command in self.model.connection.post_login:
            await self.execute(command, stage="post_login")

    def run_pre_logout(self) -> None:
        """Send the pre-logout command, if any, without waiting for output.

        Failures are logged and otherwise ignored.
        """
        command = self.model.connection.pre_logout
        if not command:
            return
        try:
            self.send_line(command)
        except StreamError as exc:
            self._command_logger("pre_logout", command).warning(
                f"Pre-logout command was not sent: {exc}"
            )

    async def close(self) -> None:
        """Close the stream.

        Calling close again is a no-op.

        Raises:
            StreamError: Aggregating every error raised while closing.

        """
        if self._closed:
            return
        self._closed = True

        errors: list[Exception] = []
        try:
            await self.stream.close()
        except (StreamError, OSError) as exc:
            errors.append(exc)

        if errors:
            device_logger = DeviceLoggerAdapter(
                self._logger,
                hostname=self.hostname,
                platform=self.model_name,
                task_descriptor="SESSION_CLOSE",
            )
            device_logger.warning(f"Errors while closing session: {errors}")
            msg = f"close errors: {'; '.join(str(err) for err in errors)}"
            raise StreamError(msg) from errors[0]
