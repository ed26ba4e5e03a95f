# desktopsetup/core/locator.py
"""
Where is a tool on this machine?

The reconciler only ever asks a Locator, so tests can substitute a fake one
instead of touching the real filesystem or PATH.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Protocol

from desktopsetup.core.logger import LoggerProxy

log = LoggerProxy(__name__)

HOMEBREW_PREFIXES = (Path("/opt/homebrew"), Path("/usr/local"))
NATIVE_BIN_DIR = Path.home() / ".local" / "bin"
SYSTEM_BIN_DIRS = (Path("/usr/bin"), Path("/bin"), Path("/usr/sbin"), Path("/sbin"))


def well_known_bin_dirs() -> list[Path]:
    return [prefix / "bin" for prefix in HOMEBREW_PREFIXES] + [NATIVE_BIN_DIR]


def app_dirs() -> list[Path]:
    return [Path("/Applications"), Path.home() / "Applications"]


class Locator(Protocol):
    def find(self, name: str, ignore_system_paths: bool = False) -> Path | None: ...

    def find_app(self, app_name: str) -> Path | None: ...


class SystemLocator:
    """Search PATH, then the Homebrew prefixes and the native-installer bin dir."""

    def __init__(
        self,
        extra_dirs: list[Path] | None = None,
        applications: list[Path] | None = None,
    ):
        self.extra_dirs = extra_dirs if extra_dirs is not None else well_known_bin_dirs()
        self.applications = applications if applications is not None else app_dirs()

    def find(self, name: str, ignore_system_paths: bool = False) -> Path | None:
        search_path = os.environ.get("PATH", "")
        dirs = [Path(p) for p in search_path.split(os.pathsep) if p]
        dirs.extend(d for d in self.extra_dirs if d not in dirs)

        for directory in dirs:
            if ignore_system_paths and directory in SYSTEM_BIN_DIRS:
                continue
            found = shutil.which(name, path=str(directory))
            if found:
                log.debug(f"Located {name} at {found}")
                return Path(found)
        log.debug(f"{name} not found on PATH or in {', '.join(map(str, self.extra_dirs))}")
        return None

    def find_app(self, app_name: str) -> Path | None:
        for directory in self.applications:
            bundle = directory / f"{app_name}.app"
            if bundle.is_dir():
                return bundle
        return None
