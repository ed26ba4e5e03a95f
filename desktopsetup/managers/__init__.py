from collections.abc import Iterable

from desktopsetup.core.types import PackageManagerKind, ToolSpec
from desktopsetup.managers.base import PackageManager
from desktopsetup.managers.homebrew import HomebrewCask, HomebrewFormula
from desktopsetup.managers.native import NativeInstaller
from desktopsetup.managers.npm import NpmGlobal
from desktopsetup.managers.pip import PipPackage


def build_managers(
    tools: Iterable[ToolSpec], dry_run: bool = False
) -> dict[PackageManagerKind, PackageManager]:
    """One manager per kind; native installer URLs are collected from the tool specs."""
    native = NativeInstaller(dry_run=dry_run)
    for tool in tools:
        if tool.package_manager is PackageManagerKind.NATIVE_INSTALLER and tool.install_url:
            native.register(tool.package_id, tool.install_url)
    return {
        PackageManagerKind.HOMEBREW_FORMULA: HomebrewFormula(dry_run=dry_run),
        PackageManagerKind.HOMEBREW_CASK: HomebrewCask(dry_run=dry_run),
        PackageManagerKind.NPM_GLOBAL: NpmGlobal(dry_run=dry_run),
        PackageManagerKind.PIP: PipPackage(dry_run=dry_run),
        PackageManagerKind.NATIVE_INSTALLER: native,
    }


__all__ = [
    "HomebrewCask",
    "HomebrewFormula",
    "NativeInstaller",
    "NpmGlobal",
    "PackageManager",
    "PipPackage",
    "build_managers",
]
