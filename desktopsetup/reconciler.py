# desktopsetup/reconciler.py
"""
Installation state reconciler.

``plan()`` inspects the machine and decides one action per tool;
``apply()`` executes those actions in order, one tool at a time. A failure is
confined to its tool: it becomes a warning result and the next tool runs.

Decision table::

    Absent          -> Install
    ManagedStale    -> Upgrade
    ManagedWrong    -> Migrate-then-Install
    ManagedCurrent  -> NoOp
    Unmanaged       -> NoOp   (foreign installs are never touched)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from desktopsetup.core.errors import RecoverableActionFailure
from desktopsetup.core.locator import Locator
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.task import Severity, TaskResult
from desktopsetup.core.types import (
    ACTION_FOR_STATE,
    Action,
    InstalledState,
    PackageManagerKind,
    PlanItem,
    ToolSpec,
)
from desktopsetup.core.versions import is_older, probe_executable
from desktopsetup.managers.base import PackageManager

log = LoggerProxy(__name__)

VersionProbe = Callable[[Path, tuple[str, ...]], str | None]


class Reconciler:
    def __init__(
        self,
        managers: Mapping[PackageManagerKind, PackageManager],
        locator: Locator,
        probe: VersionProbe = probe_executable,
        dry_run: bool = False,
    ):
        self.managers = managers
        self.locator = locator
        self.probe = probe
        self.dry_run = dry_run

    # ── Inspection ──────────────────────────────────────────────────────

    def locate(self, tool: ToolSpec) -> Path | None:
        if tool.executable_name:
            return self.locator.find(tool.executable_name, tool.ignore_system_paths)
        if tool.app_name:
            return self.locator.find_app(tool.app_name)
        return None

    def _manager(self, kind: PackageManagerKind) -> PackageManager:
        try:
            return self.managers[kind]
        except KeyError:
            raise RecoverableActionFailure(kind.value, "lookup", "no manager configured") from None

    def inspect(self, tool: ToolSpec) -> PlanItem:
        """Resolve the InstalledState of one tool from live system state."""
        location = self.locate(tool)
        if location is None:
            return self._item(tool, InstalledState.ABSENT)

        manager = self._manager(tool.package_manager)
        if manager.is_installed(tool.package_id):
            installed = None
            if tool.executable_name:
                installed = self.probe(location, tool.version_args)
            if installed is None:
                installed = manager.installed_version(tool.package_id)
            latest = manager.latest_version(tool.package_id)
            state = (
                InstalledState.MANAGED_STALE
                if is_older(installed, latest)
                else InstalledState.MANAGED_CURRENT
            )
            return self._item(
                tool, state, location=location, installed_version=installed, latest_version=latest
            )

        installed = self.probe(location, tool.version_args) if tool.executable_name else None
        for source in tool.migration_sources:
            source_manager = self.managers.get(source.manager)
            if source_manager is not None and source_manager.is_installed(source.package_id):
                return self._item(
                    tool,
                    InstalledState.MANAGED_WRONG,
                    location=location,
                    installed_version=installed,
                    migrate_from=source,
                )

        return self._item(tool, InstalledState.UNMANAGED, location=location, installed_version=installed)

    @staticmethod
    def _item(tool: ToolSpec, state: InstalledState, **kwargs) -> PlanItem:
        return PlanItem(tool=tool, state=state, action=ACTION_FOR_STATE[state], **kwargs)

    def plan(self, tools: Iterable[ToolSpec]) -> list[PlanItem]:
        items = []
        for tool in tools:
            try:
                item = self.inspect(tool)
            except RecoverableActionFailure as exc:
                log.warning(f"Could not inspect {tool.name}: {exc}")
                item = self._item(tool, InstalledState.UNMANAGED)
                item.notes.append(str(exc))
            log.debug(f"{tool.name}: {item.state.value} -> {item.action.value}")
            items.append(item)
        return items

    # ── Execution ───────────────────────────────────────────────────────

    def apply(self, plan: Iterable[PlanItem]) -> list[TaskResult]:
        results = []
        for item in plan:
            name = item.tool.name
            try:
                result = self._apply_item(item)
            except RecoverableActionFailure as exc:
                log.warning(str(exc))
                result = TaskResult(name, success=False, messages=[(Severity.WARNING, str(exc))])
            except Exception as exc:
                log.exception(f"{name} crashed: {exc}")
                result = TaskResult(name, success=False, messages=[(Severity.WARNING, str(exc))])
            results.append(result)
        return results

    def _apply_item(self, item: PlanItem) -> TaskResult:
        tool = item.tool
        if item.action is Action.NOOP:
            return TaskResult(tool.name, success=True, changed=False,
                              messages=[(Severity.INFO, item.describe())])

        messages: list[tuple[Severity, str]] = []
        manager = self._manager(tool.package_manager)

        if item.action is Action.MIGRATE_THEN_INSTALL and item.migrate_from is not None:
            messages.extend(self._migrate_away(item))

        if not self.dry_run and not manager.available():
            raise RecoverableActionFailure(
                tool.name, item.action.value, f"{tool.package_manager.label} not available"
            )

        if item.action is Action.UPGRADE:
            log.info(f"Upgrading {tool.name}")
            outcome = manager.upgrade(tool.package_id)
        else:
            log.info(f"Installing {tool.name} via {tool.package_manager.label}")
            outcome = manager.install(tool.package_id)

        if not outcome.success:
            detail = outcome.stderr or f"exit {outcome.returncode}"
            raise RecoverableActionFailure(tool.name, item.action.value, detail)

        if not self.dry_run:
            location = self.locate(tool)
            if location is None:
                target = tool.executable_name or f"{tool.app_name}.app"
                raise RecoverableActionFailure(tool.name, "post-install check", f"{target} not found")
            messages.append((Severity.INFO, f"{item.action.value} complete ({location})"))
        else:
            messages.append((Severity.INFO, f"DRYRUN: {item.describe()}"))

        return TaskResult(tool.name, success=True, changed=not self.dry_run, messages=messages)

    def _migrate_away(self, item: PlanItem) -> list[tuple[Severity, str]]:
        """Uninstall through the wrong manager. Failure here is only a warning."""
        source = item.migrate_from
        assert source is not None
        tool = item.tool
        log.info(
            f"Removing {tool.name} from {source.manager.label} "
            f"(migrating to {tool.package_manager.label})"
        )
        source_manager = self.managers.get(source.manager)
        if source_manager is None:
            return [(Severity.WARNING, f"no {source.manager.label} manager to uninstall {source.package_id}")]
        outcome = source_manager.uninstall(source.package_id)
        if outcome.success:
            return []
        msg = f"uninstall of {source.package_id} via {source.manager.label} failed; continuing"
        log.warning(f"{tool.name}: {msg}")
        return [(Severity.WARNING, msg)]
