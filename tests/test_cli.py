"""Tests for linkwarden_mcp/cli.py — option handling and exit codes."""
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from linkwarden_mcp.cli import main
from linkwarden_mcp.errors import TransportClosed

NO_ENV = {"LINKWARDEN_BASE_URL": None, "LINKWARDEN_TOKEN": None}
CREDS = ["--base-url", "http://linkwarden.test", "--token", "secret"]


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("linkwarden_mcp.cli.setup_logging") as setup:
        yield setup


class TestStdioCommand:
    def test_missing_backend(self, runner):
        result = runner.invoke(main, ["stdio"], env=NO_ENV)
        assert result.exit_code == 1
        assert "base url is required" in result.output

    def test_list_tools(self, runner):
        result = runner.invoke(main, CREDS + ["stdio", "--list-tools"], env=NO_ENV)
        assert result.exit_code == 0
        assert "- create_link:" in result.output
        assert len([l for l in result.output.splitlines() if l.startswith("- ")]) == 16

    def test_list_tools_read_only(self, runner):
        result = runner.invoke(main, CREDS + ["-t", "link,tags", "--read-only", "stdio", "--list-tools"],
                               env=NO_ENV)
        assert result.exit_code == 0
        names = [l.split(":")[0][2:] for l in result.output.splitlines() if l.startswith("- ")]
        assert names == ["get_all_links", "get_link_by_id", "get_all_tags"]

    def test_unknown_toolset(self, runner):
        result = runner.invoke(main, CREDS + ["-t", "bogus", "stdio", "--list-tools"], env=NO_ENV)
        assert result.exit_code == 1
        assert "unknown toolset(s): bogus" in result.output

    def test_env_credentials(self, runner):
        env = {"LINKWARDEN_BASE_URL": "http://env.test", "LINKWARDEN_TOKEN": "tok"}
        result = runner.invoke(main, ["stdio", "--list-tools"], env=env)
        assert result.exit_code == 0

    def test_signal_shutdown_exits_zero(self, runner, no_logging_setup):
        serve = AsyncMock(return_value=True)
        with patch("linkwarden_mcp.cli.run_stdio_server", serve):
            result = runner.invoke(main, CREDS + ["--log-level", "debug", "stdio"], env=NO_ENV)
        assert result.exit_code == 0
        settings = serve.await_args.args[0]
        assert settings.token == "secret"
        assert settings.log_level == "DEBUG"
        no_logging_setup.assert_called_once()

    def test_end_of_input_exits_one(self, runner):
        serve = AsyncMock(side_effect=TransportClosed("input stream closed"))
        with patch("linkwarden_mcp.cli.run_stdio_server", serve):
            result = runner.invoke(main, CREDS + ["stdio"], env=NO_ENV)
        assert result.exit_code == 1
        assert "Error: input stream closed" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "linkwarden-mcp-server" in result.output
