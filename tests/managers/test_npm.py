import json

from desktopsetup.managers.npm import NpmGlobal

MOD = "desktopsetup.managers.npm"
TREE = {"dependencies": {"@openai/codex": {"version": "0.46.0"}}}


def test_is_installed_parses_tree(command_log, mock_result):
    command_log(MOD, default=mock_result(stdout=json.dumps(TREE)))
    npm = NpmGlobal()
    assert npm.is_installed("@openai/codex") is True
    assert npm.installed_version("@openai/codex") == "0.46.0"


def test_missing_package_exits_nonzero_with_empty_tree(command_log, mock_result):
    command_log(MOD, default=mock_result(success=False, stdout="{}"))
    assert NpmGlobal().is_installed("@google/gemini-cli") is False


def test_latest_version(command_log, mock_result):
    calls = command_log(MOD, default=mock_result(stdout="0.47.1"))
    assert NpmGlobal().latest_version("@openai/codex") == "0.47.1"
    assert calls == [["npm", "view", "@openai/codex", "version"]]


def test_upgrade_falls_back_to_install(command_log, mock_result):
    calls = command_log(MOD, responses={("npm", "update"): mock_result(success=False)})
    assert NpmGlobal().upgrade("@google/gemini-cli").success is True
    assert calls == [
        ["npm", "update", "-g", "@google/gemini-cli"],
        ["npm", "install", "-g", "@google/gemini-cli"],
    ]


def test_uninstall(command_log):
    calls = command_log(MOD)
    NpmGlobal().uninstall("@anthropic-ai/claude-code")
    assert calls == [["npm", "uninstall", "-g", "@anthropic-ai/claude-code"]]
