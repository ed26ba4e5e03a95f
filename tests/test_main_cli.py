import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from desktopsetup.core.command import CommandResult
from desktopsetup.core.errors import BootstrapError
from desktopsetup.core.task import TaskResult
from desktopsetup.core.types import PackageManagerKind
from desktopsetup.main import app
from desktopsetup.managers.base import PackageManager

runner = CliRunner()


class NothingInstalled:
    def find(self, name, ignore_system_paths=False):
        return None

    def find_app(self, app_name):
        return None


@pytest.fixture
def offline(monkeypatch):
    """Stub every step of the installer that would touch the real machine."""
    monkeypatch.setattr("desktopsetup.main.check_preconditions", lambda: None)
    monkeypatch.setattr("desktopsetup.main.refresh_brew_environment", lambda: False)
    monkeypatch.setattr("desktopsetup.main.xcode_tools_installed", lambda: True)
    monkeypatch.setattr("desktopsetup.main.find_brew", lambda: Path("/opt/homebrew/bin/brew"))
    monkeypatch.setattr("desktopsetup.main.SystemLocator", NothingInstalled)
    monkeypatch.setattr("desktopsetup.main.build_managers", lambda tools, dry_run: {})
    monkeypatch.setattr("desktopsetup.main.running_tools", lambda tools: [])
    monkeypatch.setattr(
        "desktopsetup.main.install_xcode_tools",
        lambda dry_run, poll_seconds: TaskResult("Xcode Command Line Tools", success=True),
    )
    monkeypatch.setattr(
        "desktopsetup.main.ensure_homebrew",
        lambda non_interactive, dry_run: TaskResult("Homebrew", success=True),
    )
    python_calls = []
    monkeypatch.setattr(
        "desktopsetup.main.ensure_python",
        lambda series, dry_run: python_calls.append(series) or TaskResult(f"Python {series}", success=True),
    )
    return python_calls


def _args(tmp_path: Path, *args: str) -> list[str]:
    return [*args, "--config-file", str(tmp_path / "config.json")]


def test_per_tool_failures_still_exit_zero(offline, tmp_path):
    result = runner.invoke(app, _args(tmp_path, "ai-tools", "--yes"))

    assert result.exit_code == 0, result.output
    assert "Installation plan" in result.output
    assert "Warning:" in result.output
    assert offline == []


def test_install_scope_sets_up_python(offline, tmp_path):
    result = runner.invoke(app, _args(tmp_path, "install", "--yes"))
    assert result.exit_code == 0, result.output
    assert offline == ["3.12"]


class RecordingManager(PackageManager):
    """Accepts every install and records the package ids in the shared event list."""

    def __init__(self, events):
        super().__init__()
        self.events = events

    def is_installed(self, package_id):
        return False

    def latest_version(self, package_id):
        return None

    def install(self, package_id):
        self.events.append(package_id)
        return CommandResult(0, "", "", True)

    def upgrade(self, package_id):
        return self.install(package_id)

    def uninstall(self, package_id):
        return CommandResult(0, "", "", True)


def test_install_runs_bootstrap_runtimes_python_then_apps(offline, monkeypatch, tmp_path):
    events = []
    monkeypatch.setattr(
        "desktopsetup.main.build_managers",
        lambda tools, dry_run: {kind: RecordingManager(events) for kind in PackageManagerKind},
    )
    monkeypatch.setattr(
        "desktopsetup.main.install_xcode_tools",
        lambda dry_run, poll_seconds: events.append("xcode") or TaskResult("Xcode", success=True),
    )
    monkeypatch.setattr(
        "desktopsetup.main.ensure_homebrew",
        lambda non_interactive, dry_run: events.append("homebrew") or TaskResult("Homebrew", success=True),
    )
    monkeypatch.setattr(
        "desktopsetup.main.ensure_python",
        lambda series, dry_run: events.append("python") or TaskResult("Python", success=True),
    )

    result = runner.invoke(app, _args(tmp_path, "install", "--yes"))

    assert result.exit_code == 0, result.output
    assert events == [
        "xcode",
        "homebrew",
        "pyenv",
        "node",
        "python",
        "claude",
        "@openai/codex",
        "@google/gemini-cli",
        "1password",
    ]


def test_bootstrap_failure_exits_one(offline, monkeypatch, tmp_path):
    def broken(non_interactive, dry_run):
        raise BootstrapError("Homebrew installation failed.")

    monkeypatch.setattr("desktopsetup.main.ensure_homebrew", broken)
    result = runner.invoke(app, _args(tmp_path, "install", "--yes"))
    assert result.exit_code == 1


def test_bad_config_file_exits_two(tmp_path):
    (tmp_path / "config.json").write_text("{oops")
    result = runner.invoke(app, _args(tmp_path, "plan"))
    assert result.exit_code == 2


def test_bad_override_exits_two(offline, tmp_path):
    result = runner.invoke(
        app, _args(tmp_path, "ai-tools", "--yes"), env={"CSA_CODEX_PKG_MGR": "apt"}
    )
    assert result.exit_code == 2


def test_work_tools_non_interactive_defaults_to_core(offline, tmp_path):
    result = runner.invoke(app, _args(tmp_path, "work-tools"), env={"NONINTERACTIVE": "1"})
    assert result.exit_code == 0, result.output
    assert "Slack" in result.output
    assert "Visual Studio Code" not in result.output


def test_plan_rejects_unknown_scope(offline, tmp_path):
    result = runner.invoke(app, _args(tmp_path, "plan", "--scope", "everything"))
    assert result.exit_code == 2


def test_generate_config(tmp_path):
    target = tmp_path / "config.json"
    result = runner.invoke(app, ["generate-config", "--config-file", str(target)])
    assert result.exit_code == 0
    assert json.loads(target.read_text())["installer"]["default_profile"] == "core"

    again = runner.invoke(app, ["generate-config", "--config-file", str(target)])
    assert again.exit_code == 1


# ── mcp ─────────────────────────────────────────────────────────────────────


@pytest.fixture
def mcp_file(monkeypatch, tmp_path) -> Path:
    monkeypatch.setattr("desktopsetup.main.check_preconditions", lambda: None)
    path = tmp_path / "claude_desktop_config.json"
    monkeypatch.setenv("CSA_MCP_CONFIG_PATH", str(path))
    monkeypatch.setenv("CSA_CONFIG_FILE", str(tmp_path / "config.json"))
    return path


def test_mcp_validate_states(mcp_file):
    assert runner.invoke(app, ["mcp", "validate"]).stdout.splitlines()[-1] == "missing"

    mcp_file.write_text('{"mcpServers": {}}')
    assert runner.invoke(app, ["mcp", "validate"]).stdout.splitlines()[-1] == "valid"

    mcp_file.write_text('{"mcpServers": [}')
    assert runner.invoke(app, ["mcp", "validate"]).exit_code == 1


def test_mcp_tableau_refuses_invalid_file(mcp_file):
    mcp_file.write_text('{"mcpServers": [}')

    result = runner.invoke(
        app,
        ["mcp", "tableau", "--yes"],
        env={"CSA_TABLEAU_PAT_NAME": "n", "CSA_TABLEAU_PAT_VALUE": "v"},
    )

    assert result.exit_code == 1
    assert mcp_file.read_text() == '{"mcpServers": [}'
    assert list(mcp_file.parent.glob("*.backup.*")) == []


def test_mcp_tableau_non_interactive(mcp_file):
    mcp_file.write_text(json.dumps({"mcpServers": {"filesystem": {"command": "npx"}}}))

    result = runner.invoke(
        app,
        ["mcp", "tableau"],
        env={"NONINTERACTIVE": "1", "CSA_TABLEAU_PAT_NAME": "claude", "CSA_TABLEAU_PAT_VALUE": "s3cr3t"},
    )

    assert result.exit_code == 0, result.output
    assert "s3cr3t" not in result.output
    servers = json.loads(mcp_file.read_text())["mcpServers"]
    assert set(servers) == {"filesystem", "tableau"}
    assert len(list(mcp_file.parent.glob("*.backup.*"))) == 1


def test_mcp_show_masks_secret(mcp_file):
    mcp_file.write_text(
        json.dumps({"mcpServers": {"tableau": {"command": "npx", "env": {"PAT_VALUE": "s3cr3t"}}}})
    )
    result = runner.invoke(app, ["mcp", "show", "tableau"])
    assert result.exit_code == 0
    assert "s3cr3t" not in result.output
    assert "********" in result.output


def test_mcp_list_and_remove(mcp_file):
    mcp_file.write_text(json.dumps({"mcpServers": {"a": {"command": "x"}, "b": {"command": "y"}}}))

    assert runner.invoke(app, ["mcp", "list"]).stdout.splitlines()[-2:] == ["a", "b"]
    assert runner.invoke(app, ["mcp", "remove", "a"]).exit_code == 0
    assert "nothing changed" in runner.invoke(app, ["mcp", "remove", "zzz"]).output
    assert list(json.loads(mcp_file.read_text())["mcpServers"]) == ["b"]


def test_mcp_show_url_server(mcp_file):
    mcp_file.write_text(
        json.dumps(
            {
                "mcpServers": {
                    "remote": {
                        "url": "https://mcp.example.com/sse",
                        "headers": {"Authorization": "Bearer abc"},
                    }
                }
            }
        )
    )
    result = runner.invoke(app, ["mcp", "show", "remote"])
    assert result.exit_code == 0, result.output
    assert "https://mcp.example.com/sse" in result.stdout
    assert "Bearer abc" not in result.output
