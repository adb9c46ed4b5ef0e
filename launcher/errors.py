"""Central error-code taxonomy.

Codes label failure events and metrics (``error_type``). Exceptions raised
by the launcher live in ``launcher.exceptions``; this module only maps them
onto stable codes.
"""
from __future__ import annotations

from launcher.exceptions import (
    ConfigurationError,
    InstallError,
    OpenError,
)

_ALLOWED_ERROR_TYPES = {
    # configuration
    "config-invalid",
    "config-recursive-variable",
    "config-unreadable",
    # module operations
    "module-open-failed",
    "module-install-failed",
    "module-update-failed",
    "module-uninstall-failed",
    "module-start-failed",
    # lifecycle
    "runtime-init-failed",
    "runtime-start-failed",
    "runtime-stop-failed",
    "shutdown-interrupted",
    # infra
    "event-handler-error",
}


def validate_error_type(code: str) -> str:
    assert (
        code in _ALLOWED_ERROR_TYPES
    ), f"Unknown error_type '{code}' (not in taxonomy)"
    return code


def map_exception(e: BaseException, phase: str) -> str:
    """Classify ``e`` raised during ``phase``.

    phase: config | install | update | uninstall | start | runtime.init |
    runtime.start | runtime.stop
    """
    if isinstance(e, ConfigurationError):
        if e.variable is not None:
            return "config-recursive-variable"
        if isinstance(e.__cause__, OSError):
            return "config-unreadable"
        return "config-invalid"
    if isinstance(e, OpenError):
        return "module-open-failed"
    if isinstance(e, InstallError):
        return "module-install-failed"
    if phase in {"install", "update", "uninstall", "start"}:
        return f"module-{phase}-failed"
    if phase == "runtime.init":
        return "runtime-init-failed"
    if phase == "runtime.start":
        return "runtime-start-failed"
    if phase == "runtime.stop":
        return "runtime-stop-failed"
    if phase == "config":
        return "config-invalid"
    return "event-handler-error"


__all__ = ["validate_error_type", "map_exception"]
