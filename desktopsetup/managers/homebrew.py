# desktopsetup/managers/homebrew.py
from __future__ import annotations

import json
import shutil

from desktopsetup.core.command import CommandResult, run_command
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.types import PackageManagerKind
from desktopsetup.core.versions import normalize
from desktopsetup.managers.base import PackageManager

log = LoggerProxy(__name__)


class _Homebrew(PackageManager):
    """Shared plumbing for formulae and casks; subclasses set the flag."""

    type_flag: str = "--formula"
    info_key: str = "formulae"

    def available(self) -> bool:
        return shutil.which("brew") is not None

    def is_installed(self, package_id: str) -> bool:
        return run_command(
            ["brew", "list", self.type_flag, package_id], check=False, quiet=True
        ).success

    def _info(self, package_id: str) -> dict | None:
        result = run_command(
            ["brew", "info", "--json=v2", self.type_flag, package_id], check=False, quiet=True
        )
        if not result.success or not result.stdout:
            return None
        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError:
            log.warning(f"Unparsable 'brew info' output for {package_id}")
            return None
        entries = payload.get(self.info_key) or []
        return entries[0] if entries else None

    def install(self, package_id: str) -> CommandResult:
        return run_command(["brew", "install", self.type_flag, package_id], dry_run=self.dry_run)

    def upgrade(self, package_id: str) -> CommandResult:
        return run_command(["brew", "upgrade", self.type_flag, package_id], dry_run=self.dry_run)

    def uninstall(self, package_id: str) -> CommandResult:
        return run_command(
            ["brew", "uninstall", self.type_flag, package_id], dry_run=self.dry_run
        )


class HomebrewFormula(_Homebrew):
    kind = PackageManagerKind.HOMEBREW_FORMULA
    type_flag = "--formula"
    info_key = "formulae"

    def latest_version(self, package_id: str) -> str | None:
        info = self._info(package_id)
        if not info:
            return None
        return normalize(info.get("versions", {}).get("stable"))


class HomebrewCask(_Homebrew):
    kind = PackageManagerKind.HOMEBREW_CASK
    type_flag = "--cask"
    info_key = "casks"

    def latest_version(self, package_id: str) -> str | None:
        info = self._info(package_id)
        if not info:
            return None
        # Cask versions look like "4.43.51,2024.10" - only the part before the comma is comparable
        return normalize(str(info.get("version", "")).split(",", 1)[0])

    def installed_version(self, package_id: str) -> str | None:
        result = run_command(
            ["brew", "list", "--cask", "--versions", package_id], check=False, quiet=True
        )
        if not result.success or not result.stdout:
            return None
        # "slack 4.43.51" -> "4.43.51"
        parts = result.stdout.splitlines()[0].split()
        return normalize(parts[-1].split(",", 1)[0]) if len(parts) > 1 else None


def update(dry_run: bool = False) -> bool:
    """Runs 'brew update'. Failures are reported but never fatal."""
    log.info("Updating Homebrew...")
    result = run_command(["brew", "update"], dry_run=dry_run, check=False, capture=False)
    if not result.success:
        log.warning("'brew update' failed; continuing.")
        return False
    return True
