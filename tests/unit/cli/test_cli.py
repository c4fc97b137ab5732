"""Unit tests for mcp_toolkit.cli module."""

import json

import pytest
import typer
from typer.testing import CliRunner

from mcp_toolkit import __version__
from mcp_toolkit.cli.app import app
from mcp_toolkit.cli.constants import ExitCodes

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path, workspace, monkeypatch):
    """Config allowing the workspace, with secrets to check redaction."""
    monkeypatch.chdir(tmp_path)
    for name in ("BRAVE_API_KEY", "GIT_PASSWORD", "MCP_TOOLKIT_FORBIDDEN_TOOLS"):
        monkeypatch.delenv(name, raising=False)
    # Keep the test run's root logging handlers in place
    monkeypatch.setattr("mcp_toolkit.cli.app.setup_logging", lambda settings: "")

    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "allowed_directories": [str(workspace)],
                "forbidden_tools": ["GitPush"],
                "log_path": str(tmp_path / "logs"),
                "brave_search": {"api_key": "brave-secret"},
                "git": {"user_name": "bob", "user_password": "git-secret"},
            }
        )
    )
    return path


@pytest.mark.unit
@pytest.mark.cli
class TestCLIFramework:
    """Tests for CLI framework and structure."""

    def test_app_is_typer_instance(self):
        assert isinstance(app, typer.Typer)

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("serve", "tools", "call", "config"):
            assert command in result.output

    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == ExitCodes.SUCCESS
        assert f"mcp-toolkit version {__version__}" in result.output


@pytest.mark.unit
@pytest.mark.cli
class TestToolsCommand:
    """Tests for `mcp-toolkit tools`."""

    def test_lists_tools_and_forbidden(self, config_file):
        result = runner.invoke(app, ["tools", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Registered Tools" in result.output
        assert "Calculator" in result.output
        assert "Forbidden: GitPush" in result.output

    def test_invalid_config_reported(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("mcp_toolkit.cli.app.setup_logging", lambda settings: "")
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = runner.invoke(app, ["tools", "--config", str(path)])

        assert result.exit_code == 0
        assert "Registered Tools" in result.output


@pytest.mark.unit
@pytest.mark.cli
class TestCallCommand:
    """Tests for `mcp-toolkit call`."""

    def test_successful_call_prints_envelope(self, config_file):
        result = runner.invoke(
            app,
            [
                "call",
                "Calculator",
                "--params",
                '{"operation": "Add", "a": 2, "b": 3}',
                "--config",
                str(config_file),
            ],
        )

        assert result.exit_code == 0
        response = json.loads(result.stdout)
        assert response["success"] is True
        assert response["result"] == "5"

    def test_file_operation_inside_workspace(self, config_file, workspace):
        (workspace / "note.txt").write_text("hello")
        params = json.dumps({"operation": "ReadFile", "path": str(workspace / "note.txt")})

        result = runner.invoke(app, ["call", "ReadFile", "-p", params, "-c", str(config_file)])

        assert json.loads(result.stdout)["result"] == "hello"

    def test_failed_call_exits_nonzero(self, config_file, outside_dir):
        params = json.dumps({"operation": "ReadFile", "path": str(outside_dir / "x.txt")})

        result = runner.invoke(app, ["call", "ReadFile", "-p", params, "-c", str(config_file)])

        assert result.exit_code == ExitCodes.GENERAL_ERROR
        assert json.loads(result.stdout)["error"] == "access_denied"

    def test_forbidden_tool_is_unknown(self, config_file, workspace):
        params = json.dumps({"operation": "GitPush", "repositoryPath": str(workspace)})

        result = runner.invoke(app, ["call", "GitPush", "-p", params, "-c", str(config_file)])

        assert result.exit_code == ExitCodes.GENERAL_ERROR
        assert json.loads(result.stdout)["error"] == "unknown_tool"

    def test_call_is_traced(self, config_file, tmp_path):
        runner.invoke(
            app,
            ["call", "Calculator", "-p", '{"operation": "Abs", "a": -1}', "-c", str(config_file)],
        )

        trace = (tmp_path / "logs" / "calls.jsonl").read_text()
        assert '"tool": "Calculator"' in trace

    @pytest.mark.parametrize("params", ["{not json", "[1, 2]"])
    def test_invalid_params(self, config_file, params):
        result = runner.invoke(app, ["call", "Calculator", "-p", params, "-c", str(config_file)])
        assert result.exit_code == ExitCodes.GENERAL_ERROR


@pytest.mark.unit
@pytest.mark.cli
class TestConfigShowCommand:
    """Tests for `mcp-toolkit config show`."""

    def test_shows_redacted_settings(self, config_file):
        result = runner.invoke(app, ["config", "show", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "Config file:" in result.output
        assert "brave-secret" not in result.output
        assert "git-secret" not in result.output
        assert '"user_name": "bob"' in result.output
