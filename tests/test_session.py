from __future__ import annotations

import asyncio
import time

import pytest

from netback.collector.session import ShellSession, process_interrupts
from netback.config.patterns import ExpectRule
from netback.exceptions import PromptTimeoutError, StreamError

from conftest import PROMPT, FakeShellStream, echo_responder, make_model

PAGER = ExpectRule(pattern=" --More-- ", send=" ")


def test_process_interrupts_sends_once_per_match() -> None:
    outcome = process_interrupts("a --More-- b --More-- ", [PAGER])
    assert outcome.replies == [" ", " "]
    assert outcome.buffer == "ab"
    assert outcome.rewritten


def test_process_interrupts_applies_rules_in_order() -> None:
    rules = [
        ExpectRule(pattern="CONFIRM", replace="[y/n]"),
        ExpectRule(pattern=r"\[y/n\]", send="y\n"),
    ]
    outcome = process_interrupts("Proceed? CONFIRM", rules)
    assert outcome.replies == ["y\n"]
    assert outcome.buffer == "Proceed? "


def test_process_interrupts_without_match_leaves_buffer() -> None:
    outcome = process_interrupts("show run\nr1#", [PAGER])
    assert outcome == ("show run\nr1#", [], False)


def test_no_op_rule_does_not_rewrite() -> None:
    outcome = process_interrupts("foo bar", [ExpectRule(pattern="foo")])
    assert outcome == ("foo bar", [], False)


def test_read_until_prompt_returns_emitted_text() -> None:
    async def scenario() -> str:
        stream = FakeShellStream()
        await stream.open()
        session = ShellSession(stream, make_model(), timeout=1.0)
        return await session.read_until_prompt()

    assert asyncio.run(scenario()) == PROMPT


def test_read_until_prompt_joins_chunks_and_split_characters() -> None:
    async def scenario() -> str:
        stream = FakeShellStream(greeting=None)
        data = "banner café\nrouter#".encode()
        split = data.index("é".encode()) + 1
        stream.feed(data[:split])
        stream.feed(data[split:-3])
        stream.feed(data[-3:])
        session = ShellSession(stream, make_model(), timeout=1.0)
        return await session.read_until_prompt()

    assert asyncio.run(scenario()) == "banner café\nrouter#"


def test_read_until_prompt_times_out_within_deadline() -> None:
    async def scenario() -> None:
        stream = FakeShellStream(greeting=None)
        stream.feed("no prompt here\n")
        session = ShellSession(stream, make_model(), timeout=0.2)
        await session.read_until_prompt()

    start = time.monotonic()
    with pytest.raises(PromptTimeoutError):
        asyncio.run(scenario())
    assert time.monotonic() - start < 1.5


def test_read_until_prompt_returns_on_end_of_stream() -> None:
    async def scenario() -> str:
        stream = FakeShellStream(greeting=None)
        stream.feed("partial output\n")
        stream.end()
        session = ShellSession(stream, make_model(), timeout=1.0)
        return await session.read_until_prompt()

    assert asyncio.run(scenario()) == "partial output\n"


def test_read_until_prompt_surfaces_stream_faults() -> None:
    class BrokenStream(FakeShellStream):
        async def read(self) -> bytes:
            raise ConnectionResetError("reset by peer")

    async def scenario() -> None:
        session = ShellSession(BrokenStream(), make_model(), timeout=1.0)
        await session.read_until_prompt()

    with pytest.raises(StreamError, match="reset by peer"):
        asyncio.run(scenario())


def test_pager_is_absorbed_within_one_read() -> None:
    def respond(stream: FakeShellStream, data: str) -> None:
        if data == "show run\n":
            stream.feed("show run\nline1\nline2\n --More-- ")
        elif data == " ":
            stream.feed("line3\nrouter#")

    async def scenario() -> tuple[str, list[str]]:
        stream = FakeShellStream(responder=respond)
        await stream.open()
        session = ShellSession(stream, make_model(expect=[PAGER.model_dump()]), 1.0)
        await session.read_until_prompt()
        output = await session.execute("show run")
        return output, stream.writes

    output, writes = asyncio.run(scenario())
    assert output == "show run\nline1\nline2\nline3\nrouter#"
    assert writes == ["show run\n", " "]


def test_send_only_rule_does_not_end_read() -> None:
    async def scenario() -> tuple[str, list[str]]:
        stream = FakeShellStream(greeting=None)
        stream.feed("a --More-- b --More-- ")
        stream.feed("c\nrouter#")
        session = ShellSession(stream, make_model(expect=[PAGER.model_dump()]), 1.0)
        return await session.read_until_prompt(), stream.writes

    output, writes = asyncio.run(scenario())
    assert output == "abc\nrouter#"
    assert writes == [" ", " "]


def test_prompt_only_matches_last_line() -> None:
    async def scenario() -> str:
        stream = FakeShellStream(greeting=None)
        # "<xml>" would satisfy the prompt pattern if it were the last line
        stream.feed("show run\n<xml>\nhostname r1\n")
        stream.feed("router#")
        session = ShellSession(stream, make_model(), timeout=1.0)
        return await session.read_until_prompt()

    assert asyncio.run(scenario()) == "show run\n<xml>\nhostname r1\nrouter#"


def test_prompt_like_line_at_chunk_boundary_does_not_end_read() -> None:
    async def scenario() -> str:
        stream = FakeShellStream(greeting=None)
        stream.feed("show run\ninterface Gi0/1\n description to-core#\n")
        stream.feed(" ip address 10.0.0.1 255.255.255.0\nrouter#")
        session = ShellSession(stream, make_model(), timeout=1.0)
        return await session.read_until_prompt()

    assert asyncio.run(scenario()) == (
        "show run\ninterface Gi0/1\n description to-core#\n"
        " ip address 10.0.0.1 255.255.255.0\nrouter#"
    )


def test_prompt_with_trailing_carriage_return_matches() -> None:
    model = make_model()
    assert model.prompt_matches("show clock\r\nrouter#\r")
    assert not model.prompt_matches("show clock\r\nrouter#\r\n")
    assert not model.prompt_matches("config line ending in>\n")


def test_post_login_failure_aborts_sequence() -> None:
    def respond(stream: FakeShellStream, data: str) -> None:
        if data == "terminal length 0\n":
            stream.feed(f"terminal length 0\n{PROMPT}")

    async def scenario() -> FakeShellStream:
        stream = FakeShellStream(responder=respond)
        await stream.open()
        model = make_model(
            connection={"post_login": ["terminal length 0", "hangs", "never sent"]}
        )
        session = ShellSession(stream, model, timeout=0.2)
        await session.read_until_prompt()
        with pytest.raises(PromptTimeoutError):
            await session.run_post_login()
        return stream

    stream = asyncio.run(scenario())
    assert stream.writes == ["terminal length 0\n", "hangs\n"]


def test_pre_logout_is_best_effort() -> None:
    class DeadStream(FakeShellStream):
        def write(self, data: str) -> None:
            raise StreamError("channel closed")

    model = make_model(connection={"pre_logout": "exit"})
    ShellSession(DeadStream(), model, timeout=1.0).run_pre_logout()

    stream = FakeShellStream()
    ShellSession(stream, model, timeout=1.0).run_pre_logout()
    assert stream.writes == ["exit\n"]


def test_close_is_idempotent_and_reports_errors() -> None:
    async def scenario() -> FakeShellStream:
        stream = FakeShellStream(close_error=OSError("already gone"))
        session = ShellSession(stream, make_model(), timeout=1.0)
        with pytest.raises(StreamError, match="already gone"):
            await session.close()
        await session.close()
        assert session.closed
        return stream

    assert asyncio.run(scenario()).close_calls == 1


def test_execute_uses_echo_responder() -> None:
    async def scenario() -> str:
        stream = FakeShellStream(responder=echo_responder({"show clock": "12:00"}))
        await stream.open()
        session = ShellSession(stream, make_model(), timeout=1.0)
        await session.read_until_prompt()
        return await session.execute("show clock")

    assert asyncio.run(scenario()) == f"show clock\n12:00\n{PROMPT}"
