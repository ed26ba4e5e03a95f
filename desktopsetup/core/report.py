# desktopsetup/core/report.py
from collections.abc import Iterable

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from desktopsetup.core.task import Severity, TaskResult
from desktopsetup.core.types import Action, PlanItem

ACTION_STYLES = {
    Action.INSTALL: "green",
    Action.UPGRADE: "cyan",
    Action.MIGRATE_THEN_INSTALL: "yellow",
    Action.NOOP: "dim",
}


def plan_table(
    items: Iterable[PlanItem],
    prerequisites: Iterable[tuple[str, str]] = (),
    title: str = "Installation plan",
) -> Table:
    """Build the printed plan. Only labels, states and versions go in here."""
    table = Table(title=title, title_justify="left", show_lines=False)
    table.add_column("Tool")
    table.add_column("State")
    table.add_column("Action")

    for label, status in prerequisites:
        table.add_row(label, "", status)
    for item in items:
        style = ACTION_STYLES.get(item.action, "")
        table.add_row(
            escape(item.tool.name), item.state.value, f"[{style}]{escape(item.describe())}[/{style}]"
        )
    return table


def render_plan(
    items: Iterable[PlanItem],
    prerequisites: Iterable[tuple[str, str]] = (),
    console: Console | None = None,
) -> None:
    (console or Console()).print(plan_table(items, prerequisites))


def render_summary(
    results: Iterable[TaskResult],
    console: Console | None = None,
) -> None:
    """One line per step; warnings go below the table."""
    console = console or Console()
    results = list(results)
    table = Table(title="Summary", title_justify="left")
    table.add_column("Step")
    table.add_column("Result")
    table.add_column("Detail")

    for res in results:
        status = "[green]OK[/green]" if res.success else "[yellow]WARN[/yellow]"
        if res.changed:
            status += " (changed)"
        detail = res.messages[-1][1] if res.messages else ""
        table.add_row(escape(res.name), status, escape(detail))
    console.print(table)

    warnings = [
        (res.name, msg)
        for res in results
        for sev, msg in res.messages
        if sev in (Severity.WARNING, Severity.ERROR)
    ]
    for name, msg in warnings:
        console.print(f"[yellow]Warning:[/yellow] {escape(name)}: {escape(msg)}")
