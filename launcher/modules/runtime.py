"""Runtime interface (no built-in implementation).

The runtime is the module container that actually loads and executes module
code. The launcher only drives it through this contract; concrete runtimes
come from a factory (see ``launcher.modules.factory``). Tests implement
their own lightweight fakes.
"""
from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from typing import BinaryIO, Protocol, Sequence, runtime_checkable

# Id reserved for the runtime's own bootstrap module; never uninstalled.
BOOTSTRAP_MODULE_ID = 0


class StopReason(enum.Enum):
    STOPPED = "stopped"
    STOPPED_UPDATE = "stopped_update"  # restart requested
    ERROR = "error"
    WAIT_TIMEDOUT = "wait_timedout"


@runtime_checkable
class ModuleHandle(Protocol):
    """Opaque handle for one installed module, supplied by the runtime."""

    @property
    def module_id(self) -> int:
        ...

    @property
    def location(self) -> str:
        ...

    @property
    def is_fragment(self) -> bool:
        """Attach-only module; never started on its own."""
        ...

    @property
    def is_active(self) -> bool:
        ...


class Runtime(ABC):
    """Contract the launcher drives.

    Module operations raise ``ModuleOperationError`` (``InstallError`` for
    rejected installs); lifecycle operations may raise anything, the
    supervisor wraps them into ``LifecycleError``.
    """

    # --- lifecycle -------------------------------------------------------
    @abstractmethod
    def init(self) -> None:
        """Prepare the runtime without starting modules."""

    @abstractmethod
    def start(self) -> None:
        """Start (or restart after a STOPPED_UPDATE) the runtime."""

    @abstractmethod
    def stop(self) -> None:
        """Request an asynchronous stop."""

    @abstractmethod
    def wait_for_stop(self, timeout: float | None = None) -> StopReason:
        """Block until the runtime reports a stop (None = no timeout)."""

    # --- modules ---------------------------------------------------------
    @abstractmethod
    def install(
        self, location: str, stream: BinaryIO | None = None
    ) -> ModuleHandle:
        """Install from ``stream`` (or the location itself when None).

        Installing an already-installed location returns the existing
        handle.
        """

    @abstractmethod
    def update(self, handle: ModuleHandle) -> None:
        ...

    @abstractmethod
    def uninstall(self, handle: ModuleHandle) -> None:
        ...

    @abstractmethod
    def start_module(self, handle: ModuleHandle) -> None:
        ...

    @abstractmethod
    def installed_modules(self) -> Sequence[ModuleHandle]:
        ...

    # --- start tiers -----------------------------------------------------
    @property
    @abstractmethod
    def initial_start_tier(self) -> int:
        """Tier assigned to modules when nothing else is configured."""

    @abstractmethod
    def set_start_tier(self, handle: ModuleHandle, tier: int) -> None:
        ...


__all__ = ["Runtime", "ModuleHandle", "StopReason", "BOOTSTRAP_MODULE_ID"]
