"""Launcher exception hierarchy."""
from __future__ import annotations


class LauncherError(Exception):
    """Base launcher exception."""


class ConfigurationError(LauncherError):
    """Raised when configuration cannot be assembled.

    Typical reasons: malformed properties location, unreadable file,
    recursive variable reference. Fatal for the launch that produced it.
    """

    def __init__(self, message: str, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class ModuleOperationError(LauncherError):
    """Raised when install/update/uninstall/start fails for one module.

    Never fatal inside a batch: callers log it and move on.
    """

    def __init__(self, message: str, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location


class OpenError(ModuleOperationError):
    """Module bytes could not be opened by a ModuleSource."""


class InstallError(ModuleOperationError):
    """Runtime rejected a module install."""


class LifecycleError(LauncherError):
    """Runtime failed to be created, initialised or started."""


class InterruptedWait(LauncherError):
    """Shutdown wait was interrupted; re-raised after cleanup completed."""


__all__ = [
    "LauncherError",
    "ConfigurationError",
    "ModuleOperationError",
    "OpenError",
    "InstallError",
    "LifecycleError",
    "InterruptedWait",
]
