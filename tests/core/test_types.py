from pathlib import Path

from rich.console import Console

from desktopsetup import catalog
from desktopsetup.core.report import plan_table, render_summary
from desktopsetup.core.task import Severity, TaskResult
from desktopsetup.core.types import ACTION_FOR_STATE, Action, InstalledState, PlanItem


def test_every_state_has_an_action():
    assert set(ACTION_FOR_STATE) == set(InstalledState)
    assert ACTION_FOR_STATE[InstalledState.UNMANAGED] is Action.NOOP


def test_describe_unmanaged_mentions_version():
    item = PlanItem(
        catalog.GEMINI,
        InstalledState.UNMANAGED,
        Action.NOOP,
        location=Path("/Users/me/bin/gemini"),
        installed_version="0.8.0",
    )
    assert item.describe() == "installed outside npm (0.8.0); leaving as-is"


def test_catalog_scopes_start_with_runtimes():
    assert catalog.tools_for("ai")[0] is catalog.NODE
    assert catalog.tools_for("all")[0] is catalog.PYENV
    assert set(catalog.tools_for("work-core")) < set(catalog.tools_for("work-dev"))


def test_plan_table_has_one_row_per_item_plus_prerequisites():
    items = [PlanItem(catalog.CODEX, InstalledState.ABSENT, Action.INSTALL)]
    table = plan_table(items, prerequisites=[("Homebrew", "install")])
    assert table.row_count == 2


def test_summary_prints_warnings(capsys):
    results = [
        TaskResult("Codex CLI", success=True, changed=True),
        TaskResult("Gemini CLI", success=False, messages=[(Severity.WARNING, "npm exploded")]),
    ]
    render_summary(results, console=Console(force_terminal=False, width=120))
    out = capsys.readouterr().out
    assert "Warning: Gemini CLI: npm exploded" in out


def test_summary_prints_bracketed_stderr_literally(capsys):
    msg = "Codex CLI: Install failed (EACCES [/opt/homebrew/lib] denied)"
    results = [TaskResult("Codex CLI", success=False, messages=[(Severity.WARNING, msg)])]

    render_summary(results, console=Console(force_terminal=False, width=200))

    assert f"Warning: Codex CLI: {msg}" in capsys.readouterr().out


def test_plan_table_tolerates_markup_in_versions(capsys):
    item = PlanItem(
        catalog.GEMINI,
        InstalledState.UNMANAGED,
        Action.NOOP,
        installed_version="[/bold]",
    )
    Console(force_terminal=False, width=200).print(plan_table([item]))
    assert "[/bold]" in capsys.readouterr().out
