# desktopsetup/tasks/bootstrap.py
"""
Everything that has to exist before any package can be reconciled:
Xcode Command Line Tools, Homebrew, and a PATH that can see Homebrew.
"""

import os
import shutil
import time
from collections.abc import Callable
from pathlib import Path

from desktopsetup.core.command import run_command
from desktopsetup.core.errors import BootstrapError
from desktopsetup.core.locator import HOMEBREW_PREFIXES
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.task import Severity, TaskResult
from desktopsetup.managers import homebrew

log = LoggerProxy(__name__)

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"


# --- Xcode Command Line Tools ---


def xcode_tools_installed() -> bool:
    return run_command(["xcode-select", "-p"], check=False, quiet=True).success


def install_xcode_tools(
    dry_run: bool = False,
    poll_seconds: float = 5,
    sleep: Callable[[float], None] = time.sleep,
) -> TaskResult:
    """
    Trigger the Command Line Tools installer and block until it finishes.

    ``xcode-select --install`` only opens a GUI dialog, so we poll
    ``xcode-select -p`` until the user completes it (or the process is interrupted).
    """
    name = "Xcode Command Line Tools"
    if xcode_tools_installed():
        log.info("Xcode Command Line Tools already installed.")
        return TaskResult(name, success=True, changed=False)

    log.info("Installing Xcode Command Line Tools...")
    run_command(["xcode-select", "--install"], dry_run=dry_run, check=False)
    if dry_run:
        return TaskResult(name, success=True, changed=False,
                          messages=[(Severity.INFO, "DRYRUN: would wait for installer")])

    log.info("Waiting for the installation dialog to complete. Please follow its prompts.")
    while not xcode_tools_installed():
        sleep(poll_seconds)
    log.info("Xcode Command Line Tools installed.")
    return TaskResult(name, success=True, changed=True)


# --- Homebrew ---


def find_brew() -> Path | None:
    found = shutil.which("brew")
    if found:
        return Path(found)
    for prefix in HOMEBREW_PREFIXES:
        candidate = prefix / "bin" / "brew"
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return candidate
    return None


def refresh_brew_environment() -> bool:
    """
    Evaluate ``brew shellenv`` into this process so later lookups see Homebrew.

    Equivalent of ``eval "$(brew shellenv)"`` for the current Python process;
    the user's shell profile is left alone.
    """
    brew_path = find_brew()
    if brew_path is None:
        log.debug("Cannot refresh environment: brew executable not found.")
        return False

    result = run_command([str(brew_path), "shellenv"], check=True, quiet=True)
    if not result.success:
        log.error("Failed to execute 'brew shellenv'.")
        return False

    for line in result.stdout.splitlines():
        line = line.strip().rstrip(";")
        if not line.startswith("export "):
            continue
        parts = line[len("export "):].split("=", 1)
        if len(parts) != 2:
            log.warning(f"Could not parse brew shellenv line: {line}")
            continue
        key, value = parts[0], parts[1].strip("'\"")
        # shellenv emits e.g. PATH="/opt/homebrew/bin:/opt/homebrew/sbin${PATH+:$PATH}"
        if "${" in value:
            value = value.split("${", 1)[0].rstrip(":")
            current = os.environ.get(key, "")
            value = f"{value}{os.pathsep}{current}" if current else value
        log.debug(f"Setting env var: {key}")
        os.environ[key] = value
    return True


def ensure_homebrew(non_interactive: bool, dry_run: bool = False) -> TaskResult:
    """
    Install Homebrew if missing, then make it visible on PATH and update it.

    Raises BootstrapError when Homebrew cannot be installed: nothing after this
    step can run without it.
    """
    name = "Homebrew"
    if find_brew() is not None:
        refresh_brew_environment()
        updated = homebrew.update(dry_run=dry_run)
        messages = [] if updated else [(Severity.WARNING, "brew update failed; continuing")]
        return TaskResult(name, success=True, changed=False, messages=messages)

    log.info("Homebrew not found. Installing Homebrew...")
    extra_env = {"NONINTERACTIVE": "1"} if non_interactive else None
    result = run_command(
        ["/bin/bash", "-c", f'/bin/bash -c "$(curl -fsSL {HOMEBREW_INSTALL_URL})"'],
        dry_run=dry_run,
        capture=False,
        extra_env=extra_env,
    )
    if not result.success:
        raise BootstrapError("Homebrew installation failed.")
    if dry_run:
        return TaskResult(name, success=True, changed=False,
                          messages=[(Severity.INFO, "DRYRUN: Homebrew installation simulated")])

    if not refresh_brew_environment():
        raise BootstrapError("Homebrew installer finished but 'brew' could not be found.")
    log.info("Homebrew installation successful.")
    return TaskResult(name, success=True, changed=True)
