"""Module runtime contracts and module sources."""

from .runtime import Runtime, ModuleHandle, StopReason, BOOTSTRAP_MODULE_ID  # noqa: F401
from .source import ModuleSource, FileSystemModuleSource  # noqa: F401
from .factory import load_runtime_factory, RuntimeFactory  # noqa: F401

__all__ = [
    "Runtime",
    "ModuleHandle",
    "StopReason",
    "BOOTSTRAP_MODULE_ID",
    "ModuleSource",
    "FileSystemModuleSource",
    "load_runtime_factory",
    "RuntimeFactory",
]
