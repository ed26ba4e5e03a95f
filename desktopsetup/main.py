#!/usr/bin/env python3
"""
DesktopSetup - macOS workstation bootstrap
==========================================

CLI entry point that wires up:
* Settings (config file + environment) & logging
* Preconditions, Xcode Command Line Tools and Homebrew bootstrap
* The installation reconciler (plan -> confirm -> apply)
* The Claude Desktop MCP registry editor
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

# ── Third-party ─────────────────────────────────────────────────────────────
import click
import typer
from rich.console import Console

# ── Local imports ───────────────────────────────────────────────────────────
from desktopsetup import catalog
from desktopsetup.core import config as config_loader
from desktopsetup.core.config import Settings, apply_tool_overrides
from desktopsetup.core.errors import FatalPrecondition
from desktopsetup.core.locator import SystemLocator
from desktopsetup.core.logger import LoggerProxy, setup_logging
from desktopsetup.core.report import render_plan, render_summary
from desktopsetup.core.task import TaskResult
from desktopsetup.core.types import PlanItem, ToolSpec
from desktopsetup.managers import build_managers
from desktopsetup.mcp import tableau
from desktopsetup.mcp.registry import (
    McpRegistry,
    MutationOutcome,
    ValidationStatus,
    redact_entry,
)
from desktopsetup.reconciler import Reconciler
from desktopsetup.tasks.bootstrap import (
    ensure_homebrew,
    find_brew,
    install_xcode_tools,
    refresh_brew_environment,
    xcode_tools_installed,
)
from desktopsetup.tasks.preconditions import check_preconditions
from desktopsetup.tasks.processes import running_tools
from desktopsetup.tasks.runtimes import ensure_python

log = LoggerProxy(__name__)
console = Console()

RUNTIME_KEYS = {"node", "pyenv"}

# ── Typer CLI app ───────────────────────────────────────────────────────────
app = typer.Typer(
    help="DesktopSetup - install and update macOS developer and AI tooling.",
    add_completion=False,
)
mcp_app = typer.Typer(help="Edit the Claude Desktop MCP server registry.")
app.add_typer(mcp_app, name="mcp")

ConfigOpt = Annotated[
    Path,
    typer.Option(help="Path to JSON configuration file.", envvar="CSA_CONFIG_FILE"),
]
DryRunOpt = Annotated[
    bool, typer.Option("--dry-run", "-n", help="Print commands without executing.")
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose (DEBUG) output.")]
YesOpt = Annotated[
    bool, typer.Option("--yes", "-y", help="Skip confirmation prompts (same as NONINTERACTIVE=1).")
]


def _load_settings(
    config_file: Path, dry_run: bool = False, verbose: bool = False, yes: bool = False
) -> Settings:
    try:
        settings = Settings.from_sources(
            config_path=config_file, dry_run=dry_run, verbose=verbose, assume_yes=yes
        )
    except FatalPrecondition as exc:
        typer.echo(f"ERROR: {exc.message}", err=True)
        raise typer.Exit(code=exc.exit_code) from None

    log_file = setup_logging(settings.script_behavior, verbose=verbose)
    if log_file:
        log.debug(f"Logging to file: {log_file}")
    if settings.non_interactive_reason:
        log.info(f"Running in non-interactive mode because {settings.non_interactive_reason}.")
    return settings


def _fail(exc: FatalPrecondition) -> typer.Exit:
    log.error(exc.message)
    return typer.Exit(code=exc.exit_code)


def _confirm(settings: Settings, question: str) -> bool:
    if settings.non_interactive:
        return True
    return typer.confirm(question, default=True)


# ── Installer flow ──────────────────────────────────────────────────────────
def _prerequisite_status() -> list[tuple[str, str]]:
    return [
        ("Xcode CLI Tools", "installed" if xcode_tools_installed() else "install"),
        ("Homebrew", "installed (update)" if find_brew() else "install"),
    ]


def _split_runtimes(plan: list[PlanItem]) -> tuple[list[PlanItem], list[PlanItem]]:
    runtimes = [item for item in plan if item.tool.key in RUNTIME_KEYS]
    rest = [item for item in plan if item.tool.key not in RUNTIME_KEYS]
    return runtimes, rest


def _print_installed_versions(reconciler: Reconciler, tools: list[ToolSpec]) -> None:
    console.print("\n[bold]Installed versions:[/bold]")
    for tool in tools:
        location = reconciler.locate(tool)
        if location is None:
            continue
        version = None
        if tool.executable_name:
            version = reconciler.probe(location, tool.version_args)
        console.print(f"  {tool.name:<22} {version or 'installed'}")


def run_installer(
    settings: Settings,
    scope: str,
    *,
    check_running: bool = False,
    next_steps: tuple[str, ...] = (),
) -> list[TaskResult]:
    """
    Preconditions -> plan -> confirm -> bootstrap -> re-plan -> apply.

    Raises FatalPrecondition for anything that must stop the run; per-tool
    failures are returned as results with warnings.
    """
    check_preconditions()

    tools = apply_tool_overrides(catalog.tools_for(scope), settings.tool_overrides)
    reconciler = Reconciler(
        build_managers(tools, dry_run=settings.dry_run),
        SystemLocator(),
        dry_run=settings.dry_run,
    )

    if check_running:
        running = running_tools(tools)
        if running:
            log.warning(f"These tools are currently running: {', '.join(running)}")
            typer.echo(
                "  It's safe to continue, but running sessions will stay on the old version.\n"
                "  For a clean migration, close them first and re-run."
            )
            if not _confirm(settings, "Continue anyway?"):
                raise FatalPrecondition("Aborted. Close running tools and try again.")

    refresh_brew_environment()
    render_plan(reconciler.plan(tools), _prerequisite_status(), console=console)
    if not _confirm(settings, "Proceed with installation?"):
        raise FatalPrecondition("Aborted by user.")

    results = [
        install_xcode_tools(dry_run=settings.dry_run, poll_seconds=settings.xcode_poll_seconds),
        ensure_homebrew(non_interactive=settings.non_interactive, dry_run=settings.dry_run),
    ]

    # Inventory queries only work once Homebrew exists, so plan again.
    runtimes, rest = _split_runtimes(reconciler.plan(tools))
    results.extend(reconciler.apply(runtimes))
    if scope in catalog.PYTHON_SCOPES:
        results.append(ensure_python(settings.python_series, dry_run=settings.dry_run))
    results.extend(reconciler.apply(rest))

    render_summary(results, console=console)
    if not settings.dry_run:
        _print_installed_versions(reconciler, tools)
    if next_steps:
        console.print("\n[bold]Next steps:[/bold]")
        for step in next_steps:
            console.print(f"  - {step}")
    return results


def _installer_command(settings: Settings, scope: str, **kwargs) -> None:
    try:
        run_installer(settings, scope, **kwargs)
    except FatalPrecondition as exc:
        raise _fail(exc) from None
    raise typer.Exit(code=0)


# ── CLI commands ────────────────────────────────────────────────────────────
@app.command()
def install(
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    dry_run: DryRunOpt = False,
    verbose: VerboseOpt = False,
    yes: YesOpt = False,
) -> None:
    """
    Combined installer: Homebrew, pyenv + Python, Node.js, AI CLIs and 1Password.
    """
    settings = _load_settings(config_file, dry_run, verbose, yes)
    _installer_command(settings, "all")


@app.command(name="ai-tools")
def ai_tools(
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    dry_run: DryRunOpt = False,
    verbose: VerboseOpt = False,
    yes: YesOpt = False,
) -> None:
    """
    Install or update Claude Code, Codex CLI and Gemini CLI (plus Node.js).

    Tools found under the wrong package manager are migrated; their settings
    directories (~/.claude, ~/.codex, ~/.gemini) are never touched.
    """
    settings = _load_settings(config_file, dry_run, verbose, yes)
    _installer_command(
        settings,
        "ai",
        check_running=True,
        next_steps=(
            "Run 'claude' to start Claude Code",
            "Run 'codex' to start Codex CLI",
            "Run 'gemini' to start Gemini CLI",
            "Update npm tools later with: npm update -g @openai/codex @google/gemini-cli",
            "Claude Code updates itself automatically.",
        ),
    )


@app.command(name="work-tools")
def work_tools(
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    profile: Annotated[
        str | None,
        typer.Option(help="core or dev ($CSA_PROFILE). Prompted for when interactive."),
    ] = None,
    dry_run: DryRunOpt = False,
    verbose: VerboseOpt = False,
    yes: YesOpt = False,
) -> None:
    """
    Install or update work applications (core profile, optionally developer tools).
    """
    settings = _load_settings(config_file, dry_run, verbose, yes)
    chosen = profile or settings.profile
    if chosen is None:
        if settings.non_interactive:
            chosen = settings.installer.get("default_profile", "core")
        else:
            typer.echo(
                "Select a profile:\n"
                "  1) Core - 1Password, Slack, Zoom, Chrome, Microsoft Office, Git, GitHub CLI\n"
                "  2) Core + Developer - adds VS Code, AWS CLI, Wrangler"
            )
            reply = typer.prompt("Profile", default=1, type=click.IntRange(1, 2))
            chosen = "dev" if reply == 2 else "core"
    if chosen not in ("core", "dev"):
        typer.echo(f"ERROR: Unknown profile '{chosen}'. Use 'core' or 'dev'.", err=True)
        raise typer.Exit(code=2)

    steps = [
        "Sign in to 1Password, Slack, Zoom, Chrome, and Microsoft Office",
        "Run 'gh auth login' to authenticate with GitHub",
    ]
    if chosen == "dev":
        steps.append("Run 'aws configure' to set up AWS credentials")
    steps.append("Install AI tools with: desktopsetup ai-tools")
    _installer_command(settings, f"work-{chosen}", next_steps=tuple(steps))


@app.command(name="plan")
def plan_command(
    scope: Annotated[
        str, typer.Option(help=f"One of: {', '.join(catalog.SCOPES)}")
    ] = "all",
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    verbose: VerboseOpt = False,
) -> None:
    """
    Print what an install run would do, without changing anything.
    """
    settings = _load_settings(config_file, verbose=verbose)
    if scope not in catalog.SCOPES:
        typer.echo(f"ERROR: Unknown scope '{scope}'. Use one of: {', '.join(catalog.SCOPES)}", err=True)
        raise typer.Exit(code=2)
    try:
        tools = apply_tool_overrides(catalog.tools_for(scope), settings.tool_overrides)
    except FatalPrecondition as exc:
        raise _fail(exc) from None
    refresh_brew_environment()
    reconciler = Reconciler(build_managers(tools, dry_run=True), SystemLocator(), dry_run=True)
    render_plan(reconciler.plan(tools), _prerequisite_status(), console=console)


@app.command(name="generate-config")
def generate_config_command(
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    force: Annotated[bool, typer.Option("--force", help="Overwrite existing config file.")] = False,
) -> None:
    """
    Write a config file populated with every default.
    """
    if config_file.exists():
        if not force:
            typer.echo("Config already exists - use --force to overwrite.", err=True)
            raise typer.Exit(code=1)
        config_file.unlink()
    if config_loader.generate_default_config(config_file):
        typer.echo(f"Default config written to {config_file}")
    else:
        typer.echo("Failed to create default config", err=True)
        raise typer.Exit(code=1)


# ── MCP registry commands ──────────────────────────────────────────────────
def _open_registry(settings: Settings, must_be_valid: bool = True) -> McpRegistry:
    check_preconditions()
    registry = McpRegistry(settings.mcp_config_path)
    result = registry.validate()
    if must_be_valid and result.status is ValidationStatus.INVALID:
        raise FatalPrecondition(f"Existing config file is invalid JSON: {result.reason}")
    return registry


@mcp_app.command(name="tableau")
def mcp_tableau(
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
    verbose: VerboseOpt = False,
    yes: YesOpt = False,
) -> None:
    """
    Configure the Tableau MCP server (add, rotate PAT, or reconfigure).
    """
    settings = _load_settings(config_file, verbose=verbose, yes=yes)
    try:
        registry = _open_registry(settings)
        outcome = tableau.configure(registry, settings)
    except FatalPrecondition as exc:
        raise _fail(exc) from None

    if outcome in ("configured", "updated", "rotated"):
        typer.echo(f"Configuration saved to: {registry.path}")
        typer.echo("Restart Claude Desktop to use the new MCP server.")


@mcp_app.command(name="list")
def mcp_list(config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH) -> None:
    """
    List configured MCP servers.
    """
    settings = _load_settings(config_file)
    try:
        names = _open_registry(settings).list_servers()
    except FatalPrecondition as exc:
        raise _fail(exc) from None
    if not names:
        typer.echo("No MCP servers configured.")
    for name in names:
        typer.echo(name)


@mcp_app.command(name="show")
def mcp_show(
    name: Annotated[str, typer.Argument(help="Server name")],
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
) -> None:
    """
    Show one server entry with credentials masked.
    """
    settings = _load_settings(config_file)
    try:
        entry = _open_registry(settings).get_raw(name)
    except FatalPrecondition as exc:
        raise _fail(exc) from None
    if entry is None:
        typer.echo(f"MCP server '{name}' is not configured.", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(redact_entry(entry), indent=2))


@mcp_app.command(name="remove")
def mcp_remove(
    name: Annotated[str, typer.Argument(help="Server name")],
    config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH,
) -> None:
    """
    Remove one server entry (a backup of the file is kept).
    """
    settings = _load_settings(config_file)
    try:
        result = _open_registry(settings).remove(name)
    except FatalPrecondition as exc:
        raise _fail(exc) from None
    if result.outcome is MutationOutcome.NOT_FOUND:
        typer.echo(f"MCP server '{name}' was not configured; nothing changed.")
    else:
        typer.echo(f"Removed '{name}'. Backup: {result.backup_path}")


@mcp_app.command(name="validate")
def mcp_validate(config_file: ConfigOpt = config_loader.DEFAULT_CONFIG_PATH) -> None:
    """
    Check that the registry file is valid JSON with an mcpServers object.
    """
    settings = _load_settings(config_file)
    result = McpRegistry(settings.mcp_config_path).validate()
    if result.status is ValidationStatus.INVALID:
        typer.echo(f"invalid: {result.reason}", err=True)
        raise typer.Exit(code=1)
    typer.echo(result.status.value.lower())


# ── Main guard ──────────────────────────────────────────────────────────────
if __name__ == "__main__":
    app()
