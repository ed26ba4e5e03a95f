# desktopsetup/tasks/runtimes.py
import os
import re
from pathlib import Path

from desktopsetup.core.command import run_command
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.task import Severity, TaskResult

log = LoggerProxy(__name__)


def latest_in_series(available: str, series: str) -> str | None:
    """
    Pick the newest stable ``<series>.N`` from ``pyenv install -l`` output.

    Pre-releases (``3.12.0rc1``, ``3.12-dev``) never match.
    """
    pattern = re.compile(rf"^{re.escape(series)}\.(\d+)$")
    patches = [
        int(match.group(1))
        for line in available.splitlines()
        if (match := pattern.match(line.strip()))
    ]
    if not patches:
        return None
    return f"{series}.{max(patches)}"


def _pyenv_env() -> dict[str, str]:
    root = os.environ.get("PYENV_ROOT") or str(Path.home() / ".pyenv")
    return {"PYENV_ROOT": root, "PATH": f"{root}/bin{os.pathsep}{os.environ.get('PATH', '')}"}


def ensure_python(series: str = "3.12", dry_run: bool = False) -> TaskResult:
    """Install the newest ``series`` Python through pyenv and make it the global default."""
    name = f"Python {series}"
    env = _pyenv_env()

    listing = run_command(["pyenv", "install", "-l"], check=False, quiet=True, extra_env=env)
    if not listing.success:
        log.warning("pyenv not found after install; skipping Python installation.")
        return TaskResult(name, success=False, messages=[(Severity.WARNING, "pyenv unavailable")])

    version = latest_in_series(listing.stdout, series)
    if version is None:
        version = f"{series}.0"
        log.warning(f"Could not determine latest {series}.x from pyenv; falling back to {version}")

    log.info(f"Ensuring Python {version} via pyenv")
    result = run_command(["pyenv", "install", "-s", version], dry_run=dry_run, capture=False, extra_env=env)
    if not result.success:
        return TaskResult(name, success=False,
                          messages=[(Severity.WARNING, f"pyenv failed to install Python {version}")])

    messages: list[tuple[Severity, str]] = []
    current = run_command(["pyenv", "global"], check=False, quiet=True, extra_env=env).stdout.strip()
    changed = False
    if not current.startswith(f"{series}."):
        log.info(f"Setting pyenv global to {version}")
        if run_command(["pyenv", "global", version], dry_run=dry_run, extra_env=env).success:
            changed = not dry_run
        else:
            messages.append((Severity.WARNING, "Failed to set pyenv global"))
    else:
        log.info(f"pyenv global already set ({current}); leaving as-is")

    run_command(["pyenv", "rehash"], dry_run=dry_run, check=False, extra_env=env)
    messages.append((Severity.INFO, f"Python {version} available"))
    return TaskResult(name, success=True, changed=changed, messages=messages)
