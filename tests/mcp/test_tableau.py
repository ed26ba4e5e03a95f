import json
from pathlib import Path

import pytest

from desktopsetup.core.config import Settings
from desktopsetup.core.errors import ConfigurationError
from desktopsetup.mcp import tableau
from desktopsetup.mcp.registry import McpRegistry

EXISTING = {
    "mcpServers": {
        "tableau": {
            "command": "npx",
            "args": ["-y", "@tableau/mcp-server@latest"],
            "env": {
                "SERVER": "https://us-west-2b.online.tableau.com",
                "SITE_NAME": "cloudsecurityalliance",
                "PAT_NAME": "old-name",
                "PAT_VALUE": "old-secret",
            },
        }
    }
}


def _settings(path: Path, non_interactive=False, tableau_env=None) -> Settings:
    return Settings(
        config={},
        non_interactive=non_interactive,
        mcp_config_path=path,
        tableau_env=tableau_env or {},
    )


def _scripted(monkeypatch, prompts, confirms=()):
    prompts = list(prompts)
    confirms = list(confirms)
    monkeypatch.setattr(tableau.typer, "prompt", lambda *a, **k: prompts.pop(0))
    monkeypatch.setattr(tableau.typer, "confirm", lambda *a, **k: confirms.pop(0))


@pytest.fixture
def existing(tmp_path) -> Path:
    path = tmp_path / "claude_desktop_config.json"
    path.write_text(json.dumps(EXISTING, indent=2))
    return path


def test_build_entry_shape():
    entry = tableau.build_entry(" https://x.online.tableau.com ", "site", "name ", " value")
    assert entry.to_dict() == {
        "command": "npx",
        "args": ["-y", "@tableau/mcp-server@latest"],
        "env": {
            "SERVER": "https://x.online.tableau.com",
            "SITE_NAME": "site",
            "PAT_NAME": "name",
            "PAT_VALUE": "value",
        },
    }


def test_describe_never_shows_secret():
    entry = tableau.build_entry("https://x", "site", "name", "hunter2")
    assert not any("hunter2" in line for line in tableau.describe(entry))


def test_fresh_configure(monkeypatch, tmp_path):
    path = tmp_path / "claude_desktop_config.json"
    _scripted(
        monkeypatch,
        prompts=[tableau.DEFAULT_SERVER_URL, tableau.DEFAULT_SITE_NAME, "claude", "s3cr3t"],
        confirms=[True],
    )

    outcome = tableau.configure(McpRegistry(path), _settings(path))

    assert outcome == "configured"
    env = json.loads(path.read_text())["mcpServers"]["tableau"]["env"]
    assert env["PAT_NAME"] == "claude"
    assert env["PAT_VALUE"] == "s3cr3t"


def test_keep_existing(monkeypatch, existing):
    _scripted(monkeypatch, prompts=[1])
    before = existing.read_text()

    assert tableau.configure(McpRegistry(existing), _settings(existing)) == "kept"
    assert existing.read_text() == before
    assert list(existing.parent.glob("*.backup.*")) == []


def test_rotate_pat_keeps_server_and_site(monkeypatch, existing):
    existing.write_text(
        json.dumps({**EXISTING, "mcpServers": {**EXISTING["mcpServers"], "filesystem": {"command": "npx"}}})
    )
    _scripted(monkeypatch, prompts=[2, "new-name", "new-secret"])

    outcome = tableau.configure(McpRegistry(existing), _settings(existing))

    servers = json.loads(existing.read_text())["mcpServers"]
    assert outcome == "rotated"
    assert servers["tableau"]["env"] == {
        "SERVER": "https://us-west-2b.online.tableau.com",
        "SITE_NAME": "cloudsecurityalliance",
        "PAT_NAME": "new-name",
        "PAT_VALUE": "new-secret",
    }
    assert servers["filesystem"] == {"command": "npx"}
    (backup,) = existing.parent.glob("*.backup.*")
    assert json.loads(backup.read_text())["mcpServers"]["tableau"]["env"]["PAT_VALUE"] == "old-secret"


def test_empty_pat_name_aborts_without_writing(monkeypatch, tmp_path):
    path = tmp_path / "claude_desktop_config.json"
    _scripted(monkeypatch, prompts=["https://x", "site", "   "], confirms=[True])

    with pytest.raises(ConfigurationError, match="PAT Token Name"):
        tableau.configure(McpRegistry(path), _settings(path))
    assert not path.exists()


def test_cancelled(monkeypatch, tmp_path):
    path = tmp_path / "claude_desktop_config.json"
    _scripted(monkeypatch, prompts=[], confirms=[False])
    assert tableau.configure(McpRegistry(path), _settings(path)) == "cancelled"
    assert not path.exists()


def test_non_interactive_from_environment(tmp_path):
    path = tmp_path / "claude_desktop_config.json"
    settings = _settings(
        path, non_interactive=True, tableau_env={"PAT_NAME": "ci", "PAT_VALUE": "ci-secret"}
    )

    assert tableau.configure(McpRegistry(path), settings) == "configured"
    env = json.loads(path.read_text())["mcpServers"]["tableau"]["env"]
    assert env["SERVER"] == tableau.DEFAULT_SERVER_URL
    assert env["PAT_VALUE"] == "ci-secret"


def test_non_interactive_keeps_existing_without_credentials(existing):
    before = existing.read_text()
    assert tableau.configure(McpRegistry(existing), _settings(existing, non_interactive=True)) == "kept"
    assert existing.read_text() == before


def test_non_interactive_without_anything_is_an_error(tmp_path):
    path = tmp_path / "claude_desktop_config.json"
    with pytest.raises(ConfigurationError):
        tableau.configure(McpRegistry(path), _settings(path, non_interactive=True))
