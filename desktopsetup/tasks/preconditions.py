# desktopsetup/tasks/preconditions.py
import os
import platform
from pathlib import Path

from desktopsetup.core.errors import PrivilegeError, UnsupportedPlatformError
from desktopsetup.core.logger import LoggerProxy

log = LoggerProxy(__name__)

CONTAINER_MARKERS = (Path("/.dockerenv"), Path("/run/.containerenv"))


def in_container() -> bool:
    return any(marker.exists() for marker in CONTAINER_MARKERS)


def ensure_macos() -> None:
    system = platform.system()
    if system != "Darwin":
        raise UnsupportedPlatformError(f"This tool supports macOS only (detected {system}).")


def ensure_not_root(allow_in_container: bool = True) -> None:
    """Refuse to run as root, except inside a container when allowed."""
    if os.geteuid() != 0:
        return
    if allow_in_container and in_container():
        log.warning("Running as root inside a container.")
        return
    raise PrivilegeError("Don't run this as root.")


def check_preconditions(allow_root_in_container: bool = True) -> None:
    ensure_macos()
    ensure_not_root(allow_in_container=allow_root_in_container)
