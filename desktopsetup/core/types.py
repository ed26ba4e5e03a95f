# desktopsetup/core/types.py
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path


class PackageManagerKind(str, Enum):
    HOMEBREW_FORMULA = "homebrew-formula"
    HOMEBREW_CASK = "homebrew-cask"
    NPM_GLOBAL = "npm-global"
    PIP = "pip"
    NATIVE_INSTALLER = "native-installer"

    @property
    def label(self) -> str:
        return {
            PackageManagerKind.HOMEBREW_FORMULA: "Homebrew",
            PackageManagerKind.HOMEBREW_CASK: "Homebrew cask",
            PackageManagerKind.NPM_GLOBAL: "npm",
            PackageManagerKind.PIP: "pip",
            PackageManagerKind.NATIVE_INSTALLER: "native installer",
        }[self]


@dataclass(frozen=True)
class MigrationSource:
    manager: PackageManagerKind
    package_id: str


@dataclass(frozen=True)
class ToolSpec:
    """Static description of one installable tool and how to manage it."""

    key: str
    name: str
    package_manager: PackageManagerKind
    package_id: str
    executable_name: str | None = None
    app_name: str | None = None
    migration_sources: tuple[MigrationSource, ...] = ()
    version_args: tuple[str, ...] = ("--version",)
    install_url: str | None = None
    ignore_system_paths: bool = False

    def with_overrides(self, **changes) -> "ToolSpec":
        return replace(self, **changes)


class InstalledState(str, Enum):
    ABSENT = "Absent"
    MANAGED_CURRENT = "ManagedCurrent"
    MANAGED_STALE = "ManagedStale"
    MANAGED_WRONG = "ManagedWrong"
    UNMANAGED = "Unmanaged"


class Action(str, Enum):
    INSTALL = "Install"
    UPGRADE = "Upgrade"
    MIGRATE_THEN_INSTALL = "Migrate-then-Install"
    NOOP = "NoOp"


ACTION_FOR_STATE: dict[InstalledState, Action] = {
    InstalledState.ABSENT: Action.INSTALL,
    InstalledState.MANAGED_STALE: Action.UPGRADE,
    InstalledState.MANAGED_WRONG: Action.MIGRATE_THEN_INSTALL,
    InstalledState.MANAGED_CURRENT: Action.NOOP,
    InstalledState.UNMANAGED: Action.NOOP,
}


@dataclass
class PlanItem:
    tool: ToolSpec
    state: InstalledState
    action: Action
    location: Path | None = None
    installed_version: str | None = None
    latest_version: str | None = None
    migrate_from: MigrationSource | None = None
    notes: list[str] = field(default_factory=list)

    def describe(self) -> str:
        """One-line, human-readable status used in the printed plan."""
        manager = self.tool.package_manager.label
        if self.action is Action.INSTALL:
            return f"install via {manager}"
        if self.action is Action.UPGRADE:
            return f"upgrade {self.installed_version} -> {self.latest_version} via {manager}"
        if self.action is Action.MIGRATE_THEN_INSTALL and self.migrate_from is not None:
            return (
                f"migrate from {self.migrate_from.manager.label} -> {manager} "
                "(settings preserved)"
            )
        version = f" ({self.installed_version})" if self.installed_version else ""
        if self.state is InstalledState.UNMANAGED:
            return f"installed outside {manager}{version}; leaving as-is"
        return f"installed{version}"
