from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from netback.cli import backup as backup_command
from netback.cli.main import app
from netback.collector import executor
from netback.config.inventory import Device
from netback.config.models import ModelProfile

from conftest import FakeShellStream, echo_responder

MODEL_YAML = """\
models:
  ios:
    prompt: '^.+[#>]$'
    comment: '! '
    commands:
      - show running-config
"""

ROUTERDB_YAML = """\
devices:
  - name: r1
    ip: 192.0.2.1
    model: ios
    group: core
    username: admin
    password: secret
  - name: r2
    ip: 192.0.2.2
    model: {model}
    group: core
    username: admin
    password: secret
"""

CONFIG_YAML = """\
logging:
  main:
    stdout: false
    logfile: null
"""

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_devices(monkeypatch: pytest.MonkeyPatch) -> None:
    def factory(device: Device, model: ModelProfile, timeout: float) -> FakeShellStream:
        return FakeShellStream(
            responder=echo_responder({"show running-config": f"hostname {device.name}"})
        )

    monkeypatch.setattr(backup_command, "open_scrapli_stream", factory)
    monkeypatch.setattr(executor, "LOGOUT_GRACE_PERIOD", 0)


def invoke(
    tmp_path: Path,
    model: str = "ios",
    model_yaml: str = MODEL_YAML,
    extra_args: tuple[str, ...] = (),
) -> tuple[int, str]:
    routerdb = tmp_path / "routerdb.yaml"
    routerdb.write_text(ROUTERDB_YAML.format(model=model), encoding="utf-8")
    models = tmp_path / "model.yaml"
    models.write_text(model_yaml, encoding="utf-8")
    config = tmp_path / "netback.yaml"
    config.write_text(CONFIG_YAML, encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "backup",
            "--routerdb", str(routerdb),
            "--model", str(models),
            "--output", str(tmp_path / "out"),
            "--config-file", str(config),
            "--workers", "2",
            *extra_args,
        ],
    )
    return result.exit_code, result.output


def test_backup_succeeds(tmp_path: Path) -> None:
    exit_code, output = invoke(tmp_path)

    assert exit_code == 0, output
    assert "Completed: 2 success, 0 failed" in output
    assert (tmp_path / "out" / "core" / "r1").read_text(encoding="utf-8") == (
        "! show running-config\nhostname r1\n! router#"
    )


def test_backup_reports_failures(tmp_path: Path) -> None:
    exit_code, output = invoke(tmp_path, model="junos")

    assert exit_code == 1
    assert "FAIL r2" in output
    assert "Completed: 1 success, 1 failed" in output
    assert not (tmp_path / "out" / "core" / "r2").exists()


def test_invalid_model_file_aborts_before_connecting(tmp_path: Path) -> None:
    exit_code, _ = invoke(tmp_path, model_yaml=MODEL_YAML.replace("^.+[#>]$", "(oops"))

    assert exit_code == 1
    assert not (tmp_path / "out").exists()


def test_timeout_option_accepts_durations(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: list[float] = []

    def factory(device: Device, model: ModelProfile, timeout: float) -> FakeShellStream:
        seen.append(timeout)
        return FakeShellStream(responder=echo_responder({}))

    monkeypatch.setattr(backup_command, "open_scrapli_stream", factory)
    exit_code, output = invoke(tmp_path, extra_args=("--timeout", "1m30s"))

    assert exit_code == 0, output
    assert seen == [90.0, 90.0]


@pytest.mark.parametrize("value", ["soon", "0s"])
def test_timeout_option_rejects_bad_durations(tmp_path: Path, value: str) -> None:
    exit_code, _ = invoke(tmp_path, extra_args=("--timeout", value))

    assert exit_code == 2
    assert not (tmp_path / "out").exists()
