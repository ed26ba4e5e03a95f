# desktopsetup/mcp/tableau.py
"""Tableau MCP server: entry builder and the interactive configure / rotate flow."""

from __future__ import annotations

import click
import typer

from desktopsetup.core.config import Settings
from desktopsetup.core.errors import ConfigurationError
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.mcp.registry import McpRegistry, McpServerEntry

log = LoggerProxy(__name__)

SERVER_NAME = "tableau"
DEFAULT_SERVER_URL = "https://us-west-2b.online.tableau.com"
DEFAULT_SITE_NAME = "cloudsecurityalliance"
PACKAGE = "@tableau/mcp-server@latest"

PAT_INSTRUCTIONS = f"""\
You'll need a Personal Access Token (PAT) from Tableau:
  1. Go to: {DEFAULT_SERVER_URL}/#/site/{DEFAULT_SITE_NAME}/
  2. Log in, click your initials (top right) and select "My Account Settings"
  3. Under "Personal Access Tokens", click "Create New Token"
  4. Name it something like "Claude Desktop"
  5. Copy both the token name and the secret value
"""


def build_entry(server_url: str, site_name: str, pat_name: str, pat_value: str) -> McpServerEntry:
    return McpServerEntry(
        command="npx",
        args=["-y", PACKAGE],
        env={
            "SERVER": server_url.strip(),
            "SITE_NAME": site_name.strip(),
            "PAT_NAME": pat_name.strip(),
            "PAT_VALUE": pat_value.strip(),
        },
    )


def describe(entry: McpServerEntry) -> list[str]:
    """Current settings for display. The PAT value is never included."""
    return [
        f"Server: {entry.env.get('SERVER', 'N/A')}",
        f"Site: {entry.env.get('SITE_NAME', 'N/A')}",
        f"PAT Name: {entry.env.get('PAT_NAME', 'N/A')}",
    ]


def _prompt_credentials(label: str = "") -> tuple[str, str]:
    pat_name = typer.prompt(f"{label}PAT Token Name", default="", show_default=False)
    if not pat_name.strip():
        raise ConfigurationError("PAT Token Name is required")
    pat_value = typer.prompt(
        f"{label}PAT Token Value (hidden)", default="", show_default=False, hide_input=True
    )
    if not pat_value.strip():
        raise ConfigurationError("PAT Token Value is required")
    return pat_name, pat_value


def _from_environment(settings: Settings, existing: McpServerEntry | None) -> McpServerEntry | None:
    env = settings.tableau_env
    if "PAT_NAME" not in env or "PAT_VALUE" not in env:
        return None
    base = existing.env if existing else {}
    return build_entry(
        env.get("SERVER") or base.get("SERVER") or DEFAULT_SERVER_URL,
        env.get("SITE_NAME") or base.get("SITE_NAME") or DEFAULT_SITE_NAME,
        env["PAT_NAME"],
        env["PAT_VALUE"],
    )


def configure(registry: McpRegistry, settings: Settings) -> str:
    """
    Add, rotate or keep the Tableau entry. Returns a short outcome label.

    Non-interactive runs take everything from ``CSA_TABLEAU_*`` variables; an
    existing entry is kept unless new PAT credentials are supplied.
    """
    existing = registry.get(SERVER_NAME)

    if settings.non_interactive:
        entry = _from_environment(settings, existing)
        if entry is None:
            if existing is not None:
                log.info("Tableau MCP server already configured; keeping it.")
                return "kept"
            raise ConfigurationError(
                "Non-interactive mode needs CSA_TABLEAU_PAT_NAME and CSA_TABLEAU_PAT_VALUE"
            )
        registry.upsert(SERVER_NAME, entry)
        return "updated" if existing else "configured"

    if existing is not None:
        typer.echo("Tableau MCP Server is already configured.\n\nCurrent configuration:")
        for line in describe(existing):
            typer.echo(f"  {line}")
        typer.echo(
            "\nWhat would you like to do?\n"
            "  1) Keep existing configuration (do nothing)\n"
            "  2) Update PAT token only (rotate credentials)\n"
            "  3) Reconfigure completely (change server/site/credentials)"
        )
        choice = typer.prompt("Choose an option", default=1, type=click.IntRange(1, 3))
        if choice == 1:
            typer.echo("Keeping existing configuration.")
            return "kept"
        if choice == 2:
            typer.echo(PAT_INSTRUCTIONS)
            pat_name, pat_value = _prompt_credentials("New ")
            entry = build_entry(
                existing.env.get("SERVER", DEFAULT_SERVER_URL),
                existing.env.get("SITE_NAME", DEFAULT_SITE_NAME),
                pat_name,
                pat_value,
            )
            registry.upsert(SERVER_NAME, entry)
            return "rotated"

    typer.echo("This will connect Claude Desktop to your Tableau instance for data analysis.")
    typer.echo(PAT_INSTRUCTIONS)
    if not typer.confirm("Ready to continue?", default=True):
        typer.echo("Setup cancelled.")
        return "cancelled"

    server_url = typer.prompt("Tableau Server URL", default=DEFAULT_SERVER_URL)
    site_name = typer.prompt("Site Name", default=DEFAULT_SITE_NAME)
    pat_name, pat_value = _prompt_credentials()
    registry.upsert(SERVER_NAME, build_entry(server_url, site_name, pat_name, pat_value))
    return "updated" if existing else "configured"
