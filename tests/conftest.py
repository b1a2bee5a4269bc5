from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from netback.collector.interfaces import IShellStream
from netback.config.inventory import Device
from netback.config.models import ModelProfile

PROMPT = "router#"

Responder = Callable[["FakeShellStream", str], None]


class FakeShellStream(IShellStream):
    """In-memory device shell fed by tests or by a responder."""

    def __init__(
        self,
        responder: Responder | None = None,
        greeting: str | None = PROMPT,
        open_error: Exception | None = None,
        close_error: Exception | None = None,
    ) -> None:
        self.responder = responder
        self.greeting = greeting
        self.open_error = open_error
        self.close_error = close_error
        self.writes: list[str] = []
        self.opened = False
        self.close_calls = 0
        self._chunks: asyncio.Queue[bytes] = asyncio.Queue()

    def feed(self, data: str | bytes) -> None:
        self._chunks.put_nowait(data.encode() if isinstance(data, str) else data)

    def end(self) -> None:
        self._chunks.put_nowait(b"")

    async def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.opened = True
        if self.greeting:
            self.feed(self.greeting)

    async def read(self) -> bytes:
        return await self._chunks.get()

    def write(self, data: str) -> None:
        self.writes.append(data)
        if self.responder is not None:
            self.responder(self, data)

    async def close(self) -> None:
        self.close_calls += 1
        if self.close_error is not None:
            raise self.close_error


def echo_responder(responses: dict[str, str], prompt: str = PROMPT) -> Responder:
    """Answer each command line with its echo, its output and the prompt."""

    def respond(stream: FakeShellStream, data: str) -> None:
        if not data.endswith("\n"):
            return
        command = data[:-1]
        output = responses.get(command)
        if output is None:
            stream.feed(f"{command}\n{prompt}")
        else:
            stream.feed(f"{command}\n{output}\n{prompt}")

    return respond


def make_model(**overrides: Any) -> ModelProfile:
    data: dict[str, Any] = {
        "prompt": r"^.+[#>]$",
        "commands": ["show running-config"],
    }
    data.update(overrides)
    return ModelProfile.model_validate(data)


def make_device(name: str = "r1", **overrides: Any) -> Device:
    data: dict[str, Any] = {
        "name": name,
        "ip": "192.0.2.1",
        "model": "ios",
        "group": "core",
        "username": "admin",
        "password": "secret",
    }
    data.update(overrides)
    return Device(**data)


@pytest.fixture
def model() -> ModelProfile:
    return make_model()


@pytest.fixture
def device() -> Device:
    return make_device()
