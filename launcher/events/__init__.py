"""Launcher event dataclasses + any-subscriber bridge.

Per-event subscriptions go through `launcher.eventbus`. `on(handler)`
registers a handler(name, payload) that receives every event; the built-in
metrics collector is one of those.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from time import time
from typing import Any, Callable, Dict, List, Protocol

from launcher import metrics as _metrics
from launcher.eventbus import emit as _emit_bus

EventHandler = Callable[[str, Dict[str, Any]], None]


class SupportsEvent(Protocol):  # pragma: no cover
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        ...


@dataclass(slots=True)
class BaseEvent:
    def to_event(self) -> Dict[str, Any]:  # noqa: D401
        data = asdict(self)
        data["ts"] = data.get("ts") or time()
        return data


@dataclass(slots=True)
class ConfigurationLoaded(BaseEvent):
    source: str  # path/url of the properties file or "defaults"
    keys: int
    copied_settings: int = 0


@dataclass(slots=True)
class ModuleInstalled(BaseEvent):
    location: str
    module_id: int
    start_tier: int | None = None
    origin: str = "deploy"  # deploy|auto-properties


@dataclass(slots=True)
class ModuleUpdated(BaseEvent):
    location: str
    module_id: int


@dataclass(slots=True)
class ModuleUninstalled(BaseEvent):
    location: str
    module_id: int


@dataclass(slots=True)
class ModuleStarted(BaseEvent):
    location: str
    module_id: int
    origin: str = "deploy"


@dataclass(slots=True)
class ModuleOperationFailed(BaseEvent):
    """One module failed inside a batch; the batch carried on.

    operation: install|update|uninstall|start
    """
    operation: str
    location: str
    error_type: str
    message: str | None = None


@dataclass(slots=True)
class DeployCompleted(BaseEvent):
    directory: str
    actions: list[str]
    installed: int
    updated: int
    uninstalled: int
    started: int
    failures: int
    duration_ms: int


@dataclass(slots=True)
class RuntimeStarted(BaseEvent):
    restart: bool = False


@dataclass(slots=True)
class RuntimeStopped(BaseEvent):
    reason: str  # StopReason value


@dataclass(slots=True)
class ShutdownHookRemoved(BaseEvent):
    removed: bool  # False when the hook was already gone


_ANY_SUBS: List[EventHandler] = []


def _metrics_collector(name: str, payload: Dict[str, Any]) -> None:
    if name == "ModuleInstalled":
        _metrics.inc("module_operations_total", {"op": "install"})
    elif name == "ModuleUpdated":
        _metrics.inc("module_operations_total", {"op": "update"})
    elif name == "ModuleUninstalled":
        _metrics.inc("module_operations_total", {"op": "uninstall"})
    elif name == "ModuleStarted":
        _metrics.inc("module_operations_total", {"op": "start"})
    elif name == "ModuleOperationFailed":
        _metrics.inc(
            "module_operation_errors_total",
            {
                "op": payload.get("operation", "unknown"),
                "error_type": payload.get("error_type", "unknown"),
            },
        )
    elif name == "DeployCompleted":
        _metrics.observe("deploy_duration_ms", payload.get("duration_ms", 0))
    elif name == "RuntimeStarted":
        if payload.get("restart"):
            _metrics.inc("runtime_restarts_total")
    elif name == "RuntimeStopped":
        _metrics.inc(
            "runtime_stops_total", {"reason": payload.get("reason", "unknown")}
        )
    elif name == "ShutdownHookRemoved":
        _metrics.inc(
            "shutdown_hook_removed_total",
            {"result": "removed" if payload.get("removed") else "absent"},
        )


_ANY_SUBS.append(_metrics_collector)


def emit(ev: BaseEvent | SupportsEvent) -> None:
    name = ev.__class__.__name__
    payload = ev.to_event()
    _emit_bus(name, payload)
    for h in list(_ANY_SUBS):  # copy for isolation
        try:
            h(name, dict(payload))
        except Exception:  # noqa: BLE001
            _metrics.inc("handler_exceptions_total", {"event": name})


def on(handler: EventHandler) -> Callable[[], None]:
    _ANY_SUBS.append(handler)

    def _unsub() -> None:  # noqa: D401
        try:
            _ANY_SUBS.remove(handler)
        except ValueError:
            pass

    return _unsub


def reset_listeners_for_tests() -> None:  # pragma: no cover
    _ANY_SUBS.clear()
    _ANY_SUBS.append(_metrics_collector)


__all__ = [
    "emit",
    "on",
    "BaseEvent",
    "ConfigurationLoaded",
    "ModuleInstalled",
    "ModuleUpdated",
    "ModuleUninstalled",
    "ModuleStarted",
    "ModuleOperationFailed",
    "DeployCompleted",
    "RuntimeStarted",
    "RuntimeStopped",
    "ShutdownHookRemoved",
    "reset_listeners_for_tests",
]
