# desktopsetup/managers/pip.py
from __future__ import annotations

import re
import shutil

from desktopsetup.core.command import CommandResult, run_command
from desktopsetup.core.types import PackageManagerKind
from desktopsetup.core.versions import normalize
from desktopsetup.managers.base import PackageManager

INDEX_HEADER = re.compile(r"^\S+\s+\(([^)]+)\)")


class PipPackage(PackageManager):
    """User-scope Python packages, driven through ``python3 -m pip``."""

    kind = PackageManagerKind.PIP

    def __init__(self, dry_run: bool = False, python: str = "python3"):
        super().__init__(dry_run=dry_run)
        self.python = python

    def _pip(self, *args: str) -> list[str]:
        return [self.python, "-m", "pip", *args]

    def available(self) -> bool:
        return shutil.which(self.python) is not None

    def is_installed(self, package_id: str) -> bool:
        return run_command(self._pip("show", package_id), check=False, quiet=True).success

    def installed_version(self, package_id: str) -> str | None:
        result = run_command(self._pip("show", package_id), check=False, quiet=True)
        for line in result.stdout.splitlines():
            if line.startswith("Version:"):
                return normalize(line.split(":", 1)[1])
        return None

    def latest_version(self, package_id: str) -> str | None:
        result = run_command(self._pip("index", "versions", package_id), check=False, quiet=True)
        if not result.success or not result.stdout:
            return None
        match = INDEX_HEADER.match(result.stdout.splitlines()[0])
        return normalize(match.group(1)) if match else None

    def install(self, package_id: str) -> CommandResult:
        return run_command(self._pip("install", package_id), dry_run=self.dry_run)

    def upgrade(self, package_id: str) -> CommandResult:
        return run_command(self._pip("install", "--upgrade", package_id), dry_run=self.dry_run)

    def uninstall(self, package_id: str) -> CommandResult:
        return run_command(self._pip("uninstall", "-y", package_id), dry_run=self.dry_run)
