"""Runtime lifecycle: supervisor, restart loop, shutdown hook, launchers."""

from .state import SupervisorState  # noqa: F401
from .reference import AtomicReference  # noqa: F401
from .shutdown_hook import ShutdownHook  # noqa: F401
from .polling import RestartLoop  # noqa: F401
from .launchers import BaseLauncher, ConsoleLauncher  # noqa: F401
from .supervisor import LifecycleSupervisor  # noqa: F401

__all__ = [
    "SupervisorState",
    "AtomicReference",
    "ShutdownHook",
    "RestartLoop",
    "BaseLauncher",
    "ConsoleLauncher",
    "LifecycleSupervisor",
]
