# desktopsetup/catalog.py
"""Default tool lists for each install scope, in install order."""

from desktopsetup.core.types import MigrationSource, PackageManagerKind, ToolSpec

FORMULA = PackageManagerKind.HOMEBREW_FORMULA
CASK = PackageManagerKind.HOMEBREW_CASK
NPM = PackageManagerKind.NPM_GLOBAL
NATIVE = PackageManagerKind.NATIVE_INSTALLER

CLAUDE_INSTALL_URL = "https://claude.ai/install.sh"

# Runtimes come first; every npm-based tool after them depends on Node.js.
NODE = ToolSpec("node", "Node.js", FORMULA, "node", executable_name="node")
PYENV = ToolSpec("pyenv", "pyenv", FORMULA, "pyenv", executable_name="pyenv")

CLAUDE = ToolSpec(
    "claude",
    "Claude Code",
    NATIVE,
    "claude",
    executable_name="claude",
    install_url=CLAUDE_INSTALL_URL,
    migration_sources=(
        MigrationSource(CASK, "claude-code"),
        MigrationSource(NPM, "@anthropic-ai/claude-code"),
    ),
)
CODEX = ToolSpec(
    "codex",
    "Codex CLI",
    NPM,
    "@openai/codex",
    executable_name="codex",
    migration_sources=(MigrationSource(CASK, "codex"),),
)
GEMINI = ToolSpec(
    "gemini",
    "Gemini CLI",
    NPM,
    "@google/gemini-cli",
    executable_name="gemini",
    migration_sources=(
        MigrationSource(FORMULA, "gemini-cli"),
        MigrationSource(CASK, "gemini-cli"),
    ),
)

GIT = ToolSpec(
    "git",
    "Git",
    FORMULA,
    "git",
    executable_name="git",
    ignore_system_paths=True,
)
GH = ToolSpec("gh", "GitHub CLI", FORMULA, "gh", executable_name="gh")
ONEPASSWORD = ToolSpec("onepassword", "1Password", CASK, "1password", app_name="1Password")
SLACK = ToolSpec("slack", "Slack", CASK, "slack", app_name="Slack")
ZOOM = ToolSpec("zoom", "Zoom", CASK, "zoom", app_name="zoom.us")
CHROME = ToolSpec("chrome", "Google Chrome", CASK, "google-chrome", app_name="Google Chrome")
OFFICE = ToolSpec(
    "office", "Microsoft Office", CASK, "microsoft-office", app_name="Microsoft Word"
)

VSCODE = ToolSpec(
    "vscode", "Visual Studio Code", CASK, "visual-studio-code", app_name="Visual Studio Code"
)
AWSCLI = ToolSpec("aws", "AWS CLI", FORMULA, "awscli", executable_name="aws")
WRANGLER = ToolSpec("wrangler", "Wrangler", NPM, "wrangler", executable_name="wrangler")

SCOPES: dict[str, list[ToolSpec]] = {
    "ai": [NODE, CLAUDE, CODEX, GEMINI],
    "work-core": [NODE, GIT, GH, ONEPASSWORD, SLACK, ZOOM, CHROME, OFFICE],
    "work-dev": [NODE, GIT, GH, ONEPASSWORD, SLACK, ZOOM, CHROME, OFFICE, VSCODE, AWSCLI, WRANGLER],
    "all": [PYENV, NODE, CLAUDE, CODEX, GEMINI, ONEPASSWORD],
}

# Scopes that also provision Python through pyenv after the formula is in place.
PYTHON_SCOPES = {"all"}


def tools_for(scope: str) -> list[ToolSpec]:
    try:
        return list(SCOPES[scope])
    except KeyError:
        raise KeyError(f"Unknown scope '{scope}'. Known scopes: {', '.join(SCOPES)}") from None
