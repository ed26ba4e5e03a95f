# desktopsetup/managers/base.py
from __future__ import annotations

from abc import ABC, abstractmethod

from desktopsetup.core.command import CommandResult
from desktopsetup.core.types import PackageManagerKind


class PackageManager(ABC):
    """
    The five verbs the reconciler needs from any package manager.

    Implementations shell out through ``run_command``; ``dry_run`` is honoured
    by the mutating verbs only, so a dry run still reports live inventory.
    """

    kind: PackageManagerKind

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    @abstractmethod
    def is_installed(self, package_id: str) -> bool: ...

    @abstractmethod
    def latest_version(self, package_id: str) -> str | None: ...

    @abstractmethod
    def install(self, package_id: str) -> CommandResult: ...

    @abstractmethod
    def upgrade(self, package_id: str) -> CommandResult: ...

    @abstractmethod
    def uninstall(self, package_id: str) -> CommandResult: ...

    def installed_version(self, package_id: str) -> str | None:
        """Version as recorded by the manager; used when there is no executable to ask."""
        return None

    def available(self) -> bool:
        """Is the manager's own executable usable right now?"""
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dry_run={self.dry_run})"
