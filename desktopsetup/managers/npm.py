# desktopsetup/managers/npm.py
from __future__ import annotations

import json
import shutil

from desktopsetup.core.command import CommandResult, run_command
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.types import PackageManagerKind
from desktopsetup.core.versions import normalize
from desktopsetup.managers.base import PackageManager

log = LoggerProxy(__name__)


class NpmGlobal(PackageManager):
    kind = PackageManagerKind.NPM_GLOBAL

    def available(self) -> bool:
        return shutil.which("npm") is not None

    def is_installed(self, package_id: str) -> bool:
        result = run_command(
            ["npm", "list", "-g", "--depth=0", "--json", package_id], check=False, quiet=True
        )
        # npm exits 1 with an empty tree when the package is missing
        if not result.stdout:
            return False
        try:
            tree = json.loads(result.stdout)
        except json.JSONDecodeError:
            return False
        return package_id in (tree.get("dependencies") or {})

    def installed_version(self, package_id: str) -> str | None:
        result = run_command(
            ["npm", "list", "-g", "--depth=0", "--json", package_id], check=False, quiet=True
        )
        try:
            tree = json.loads(result.stdout or "{}")
        except json.JSONDecodeError:
            return None
        entry = (tree.get("dependencies") or {}).get(package_id) or {}
        return normalize(entry.get("version"))

    def latest_version(self, package_id: str) -> str | None:
        result = run_command(["npm", "view", package_id, "version"], check=False, quiet=True)
        if not result.success:
            return None
        return normalize(result.stdout)

    def install(self, package_id: str) -> CommandResult:
        return run_command(["npm", "install", "-g", package_id], dry_run=self.dry_run)

    def upgrade(self, package_id: str) -> CommandResult:
        result = run_command(["npm", "update", "-g", package_id], dry_run=self.dry_run, check=False)
        if result.success:
            return result
        log.info(f"'npm update' failed for {package_id}; falling back to 'npm install'.")
        return self.install(package_id)

    def uninstall(self, package_id: str) -> CommandResult:
        return run_command(["npm", "uninstall", "-g", package_id], dry_run=self.dry_run)
