# desktopsetup/managers/native.py
from __future__ import annotations

from pathlib import Path

from desktopsetup.core.command import CommandResult, run_command
from desktopsetup.core.locator import NATIVE_BIN_DIR
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.types import PackageManagerKind
from desktopsetup.managers.base import PackageManager

log = LoggerProxy(__name__)


class NativeInstaller(PackageManager):
    """
    Single-binary tools installed by a vendor script into ``~/.local/bin``.

    ``package_id`` is the launcher name inside the bin directory. These tools
    update themselves, so no latest version is ever advertised and a managed
    install is always considered current.
    """

    kind = PackageManagerKind.NATIVE_INSTALLER

    def __init__(
        self,
        installers: dict[str, str] | None = None,
        dry_run: bool = False,
        bin_dir: Path = NATIVE_BIN_DIR,
    ):
        super().__init__(dry_run=dry_run)
        self.installers = dict(installers or {})
        self.bin_dir = bin_dir

    def register(self, package_id: str, install_url: str) -> None:
        self.installers[package_id] = install_url

    def is_installed(self, package_id: str) -> bool:
        launcher = self.bin_dir / package_id
        return launcher.exists() or launcher.is_symlink()

    def latest_version(self, package_id: str) -> str | None:
        return None

    def install(self, package_id: str) -> CommandResult:
        url = self.installers.get(package_id)
        if not url:
            log.error(f"No installer URL registered for {package_id}")
            return CommandResult(returncode=-1, stdout="", stderr="no installer URL", success=False)
        return run_command(
            ["/bin/bash", "-c", f"curl -fsSL {url} | bash"],
            dry_run=self.dry_run,
            capture=False,
        )

    def upgrade(self, package_id: str) -> CommandResult:
        return self.install(package_id)

    def uninstall(self, package_id: str) -> CommandResult:
        # Only the launcher goes; the tool's data and settings directories stay put.
        launcher = self.bin_dir / package_id
        if self.dry_run:
            print(f"DRYRUN: Would remove {launcher}")
            return CommandResult(0, "", "", True)
        try:
            launcher.unlink(missing_ok=True)
        except OSError as e:
            return CommandResult(-1, "", str(e), False)
        log.info(f"Removed {launcher}")
        return CommandResult(0, "", "", True)
