"""Auto-deploy reconciliation.

Diffs the modules listed by a ModuleSource against the modules installed in
the runtime and applies the configured actions in a fixed order:

    install (update inline for known locations) → uninstall → start

Per-module failures are logged, emitted as ``ModuleOperationFailed`` and
skipped; they never abort the batch. The runtime's bootstrap module
(id 0) is never uninstalled.
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, FrozenSet, List, Mapping, Tuple

from launcher.config.schemas import DeploySettings
from launcher.errors import map_exception
from launcher.events import (
    emit,
    DeployCompleted,
    ModuleInstalled,
    ModuleOperationFailed,
    ModuleStarted,
    ModuleUninstalled,
    ModuleUpdated,
)
from launcher.modules.runtime import BOOTSTRAP_MODULE_ID, ModuleHandle, Runtime
from launcher.modules.source import ModuleSource

logger = logging.getLogger("launcher.deploy")


class DeployAction(enum.Enum):
    INSTALL = "install"
    UPDATE = "update"
    START = "start"
    UNINSTALL = "uninstall"


def parse_actions(raw: str | None) -> FrozenSet[DeployAction]:
    """Parse a comma separated action list; unknown tokens are dropped."""
    actions = set()
    for token in (raw or "").split(","):
        value = token.strip().lower()
        try:
            actions.add(DeployAction(value))
        except ValueError:
            if value:
                logger.debug("ignoring unknown deploy action %r", value)
    return frozenset(actions)


@dataclass
class ReconcileReport:
    actions: FrozenSet[DeployAction] = frozenset()
    directory: str | None = None
    installed: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    uninstalled: List[str] = field(default_factory=list)
    started: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str, BaseException]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.installed or self.updated or self.uninstalled or self.started
        )


def _close_quietly(stream: BinaryIO) -> None:
    try:
        stream.close()
    except OSError:
        logger.debug("closing module stream failed", exc_info=True)


class Reconciler:
    """Applies deploy actions for one directory of a ModuleSource."""

    def __init__(self, source: ModuleSource) -> None:
        self._source = source

    def _report_failure(
        self,
        report: ReconcileReport,
        operation: str,
        location: str,
        exc: BaseException,
    ) -> None:
        logger.error(
            "Auto-deploy %s failed for %s.", operation, location, exc_info=exc
        )
        report.failures.append((operation, location, exc))
        emit(
            ModuleOperationFailed(
                operation=operation,
                location=location,
                error_type=map_exception(exc, operation),
                message=str(exc),
            )
        )

    def _install(self, runtime: Runtime, location: str) -> ModuleHandle:
        stream = self._source.open(location)
        try:
            return runtime.install(location, stream)
        finally:
            _close_quietly(stream)

    def reconcile(
        self,
        configuration: Mapping[str, str],
        runtime: Runtime,
        default_directory: str,
    ) -> ReconcileReport:
        settings = DeploySettings.from_configuration(configuration)
        actions = parse_actions(settings.action)
        report = ReconcileReport(actions=actions)
        if not actions:
            logger.debug("no auto-deploy actions configured")
            return report

        t0 = time.time()
        tier = (
            settings.tier
            if settings.tier is not None
            else runtime.initial_start_tier
        )
        directory = settings.directory or default_directory
        report.directory = directory

        installed: Dict[str, ModuleHandle] = {
            h.location: h for h in runtime.installed_modules()
        }
        desired = sorted(self._source.list(directory))

        start_candidates: List[ModuleHandle] = []
        for location in desired:
            # what remains in `installed` afterwards may be uninstalled
            handle = installed.pop(location, None)
            operation = "install" if handle is None else "update"
            try:
                if handle is None and DeployAction.INSTALL in actions:
                    handle = self._install(runtime, location)
                    report.installed.append(location)
                    emit(
                        ModuleInstalled(
                            location=location,
                            module_id=handle.module_id,
                            start_tier=tier,
                        )
                    )
                elif handle is not None and DeployAction.UPDATE in actions:
                    runtime.update(handle)
                    report.updated.append(location)
                    emit(ModuleUpdated(location=location, module_id=handle.module_id))

                if handle is not None and not handle.is_fragment:
                    start_candidates.append(handle)
                    runtime.set_start_tier(handle, tier)
            except Exception as e:  # noqa: BLE001
                self._report_failure(report, operation, location, e)

        if DeployAction.UNINSTALL in actions:
            for location, handle in installed.items():
                if handle.module_id == BOOTSTRAP_MODULE_ID:
                    continue
                try:
                    runtime.uninstall(handle)
                    report.uninstalled.append(location)
                    emit(
                        ModuleUninstalled(
                            location=location, module_id=handle.module_id
                        )
                    )
                except Exception as e:  # noqa: BLE001
                    self._report_failure(report, "uninstall", location, e)

        if DeployAction.START in actions:
            for handle in start_candidates:
                if handle.is_active:
                    continue
                try:
                    runtime.start_module(handle)
                    report.started.append(handle.location)
                    emit(
                        ModuleStarted(
                            location=handle.location, module_id=handle.module_id
                        )
                    )
                except Exception as e:  # noqa: BLE001
                    self._report_failure(report, "start", handle.location, e)

        emit(
            DeployCompleted(
                directory=directory,
                actions=sorted(a.value for a in actions),
                installed=len(report.installed),
                updated=len(report.updated),
                uninstalled=len(report.uninstalled),
                started=len(report.started),
                failures=len(report.failures),
                duration_ms=int((time.time() - t0) * 1000),
            )
        )
        return report


def reconcile(
    configuration: Mapping[str, str],
    runtime: Runtime,
    default_directory: str,
    source: ModuleSource,
) -> ReconcileReport:
    return Reconciler(source).reconcile(configuration, runtime, default_directory)


__all__ = [
    "DeployAction",
    "parse_actions",
    "ReconcileReport",
    "Reconciler",
    "reconcile",
]
