"""Tests for the azpipes command line."""

from pathlib import Path

import pytest

import azpipes.__main__ as cli
from fakes import FAILED, IN_PROGRESS, SUCCEEDED, FakeRunsAPI

CONFIG_YAML = """
organization: contoso
project: web
polling:
  interval_seconds: 0.001
pipelines:
  - name: build
    id: 1
    ref: main
  - name: deploy
    id: 2
    ref: develop
"""


class FakeClient(FakeRunsAPI):
    organization = "contoso"
    project = "web"

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


def install_client(monkeypatch, client: FakeClient) -> list[dict]:
    created: list[dict] = []

    def factory(**kwargs):
        created.append(kwargs)
        return client

    monkeypatch.setattr(cli, "AzureDevOpsClient", factory)
    return created


def test_run_succeeds(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    client = FakeClient(
        runs={1: 101, 2: 202},
        polls={101: [IN_PROGRESS, SUCCEEDED], 202: [SUCCEEDED]},
    )
    created = install_client(monkeypatch, client)

    exit_code = cli.main(["--config", str(config_file), "run"])

    assert exit_code == 0
    assert created[0]["pat"] == "secret"
    assert created[0]["organization"] == "contoso"
    assert len(client.trigger_calls) == 2
    assert "All 2 pipeline(s) succeeded" in capsys.readouterr().out


def test_run_fails_on_failed_pipeline(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    client = FakeClient(runs={1: 101, 2: 202}, polls={101: [FAILED], 202: [SUCCEEDED]})
    install_client(monkeypatch, client)

    exit_code = cli.main(["--config", str(config_file), "run"])

    out = capsys.readouterr().out
    assert exit_code == 1
    assert client.trigger_calls == [(1, "refs/heads/main")]
    assert "Stopped at build" in out


def test_run_from_named_pipeline(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    client = FakeClient(runs={2: 202}, polls={202: [SUCCEEDED]})
    install_client(monkeypatch, client)

    exit_code = cli.main(["--config", str(config_file), "run", "--from", "deploy"])

    assert exit_code == 0
    assert client.trigger_calls == [(2, "refs/heads/develop")]
    assert "build: skipped" in capsys.readouterr().out


def test_run_unknown_start_is_error(monkeypatch, config_file: Path) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    client = FakeClient()
    install_client(monkeypatch, client)

    exit_code = cli.main(["--config", str(config_file), "run", "--from", "nope"])

    assert exit_code == 1
    assert client.total_calls == 0


def test_run_without_pat_fails(monkeypatch, config_file: Path) -> None:
    created = install_client(monkeypatch, FakeClient())

    exit_code = cli.main(["--config", str(config_file), "run", "--no-prompt"])

    assert exit_code == 1
    assert created == []


def test_run_with_no_pipelines_is_success(monkeypatch, tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("organization: contoso\nproject: web\npipelines: []\n")
    created = install_client(monkeypatch, FakeClient())

    exit_code = cli.main(["--config", str(path), "run"])

    assert exit_code == 0
    assert created == []


def test_invalid_interval_is_config_error(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    install_client(monkeypatch, FakeClient())

    exit_code = cli.main(["--config", str(config_file), "run", "--interval", "0"])

    assert exit_code == 1
    assert "Configuration Error" in capsys.readouterr().out


def test_status_prints_run(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    client = FakeClient(polls={101: [FAILED]})
    install_client(monkeypatch, client)

    exit_code = cli.main(
        ["--config", str(config_file), "status", "--pipeline-id", "1", "--run-id", "101"]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "State: completed" in out
    assert "Result: failed" in out


def test_config_hides_pat(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "super-secret")

    exit_code = cli.main(["--config", str(config_file), "config"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "PAT: ✓ Set" in out
    assert "super-secret" not in out
    assert "1. build (#1 @ refs/heads/main)" in out


def test_init_writes_template(tmp_path: Path) -> None:
    data_dir = tmp_path / "data"

    exit_code = cli.main(["init", "--data-dir", str(data_dir)])

    assert exit_code == 0
    assert "pipelines:" in (data_dir / "config.yaml").read_text()


def test_no_command_prints_help() -> None:
    assert cli.main([]) == 1


def test_run_reports_unexpected_error(monkeypatch, config_file: Path, capsys) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")

    class BrokenClient(FakeClient):
        async def run_pipeline(self, pipeline_id: int, ref: str):
            raise RuntimeError("event loop closed")

    install_client(monkeypatch, BrokenClient())

    exit_code = cli.main(["--config", str(config_file), "run"])

    assert exit_code == 1
    assert "❌ Sequence run failed: event loop closed" in capsys.readouterr().out


def test_every_remote_command_initializes_logfire(monkeypatch, config_file: Path) -> None:
    monkeypatch.setenv("AZPIPES_PAT", "secret")
    calls = []
    monkeypatch.setattr(cli, "_init_logfire", lambda settings: calls.append(settings))
    client = FakeClient(
        runs={1: 101, 2: 202},
        polls={101: [SUCCEEDED], 202: [SUCCEEDED], 303: [SUCCEEDED]},
    )
    install_client(monkeypatch, client)

    cli.main(["--config", str(config_file), "status", "--pipeline-id", "1", "--run-id", "303"])
    cli.main(["--config", str(config_file), "run"])

    assert len(calls) == 2
