import pytest
import uvicorn
from rich.console import Console

import cli
from core.config import Config


class NeverServe:
    """Stands in for uvicorn.Server and records any attempt to build one."""

    created = []

    def __init__(self, config):
        NeverServe.created.append(config)

    def run(self):
        raise AssertionError("server must not run")


@pytest.fixture
def cli_env(monkeypatch):
    NeverServe.created = []
    output = Console(record=True, width=120)
    monkeypatch.setattr(cli, "console", output)
    monkeypatch.setattr(cli, "load_config", lambda: Config())
    monkeypatch.setattr(cli, "clear_logs", lambda: None)
    monkeypatch.setattr(uvicorn, "Server", NeverServe)
    return output


def test_invalid_host_list_exits_before_serving(cli_env, monkeypatch):
    monkeypatch.setattr(cli, "UPSTREAM_HOSTS", {"d1": ""})
    monkeypatch.setattr("sys.argv", ["prefix-proxy"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert NeverServe.created == []
    assert "Empty upstream host for 'd1'" in cli_env.export_text()


def test_empty_host_list_exits_before_serving(cli_env, monkeypatch):
    monkeypatch.setattr(cli, "UPSTREAM_HOSTS", {})
    monkeypatch.setattr("sys.argv", ["prefix-proxy", "--routes"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 1
    assert NeverServe.created == []


def test_routes_prints_table_without_serving(cli_env, monkeypatch):
    monkeypatch.setattr(cli, "UPSTREAM_HOSTS", {"d1": "d1.api.example.com", "i1": "i1.api.example.com"})
    monkeypatch.setattr("sys.argv", ["prefix-proxy", "--routes"])

    cli.main()

    text = cli_env.export_text()
    assert "/d1" in text
    assert "https://d1.api.example.com" in text
    assert "https://i1.api.example.com" in text
    assert NeverServe.created == []


def test_unknown_argument_exits_with_usage(cli_env, monkeypatch):
    monkeypatch.setattr("sys.argv", ["prefix-proxy", "--bogus"])

    with pytest.raises(SystemExit) as exc_info:
        cli.main()

    assert exc_info.value.code == 2
    assert "Unknown argument: --bogus" in cli_env.export_text()
    assert NeverServe.created == []
