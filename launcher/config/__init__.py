"""Config subsystem public API.

Provides:
    substitute_vars() / resolve_all() -> ``${name}`` resolution
    parse_properties()                -> key=value text parsing
    ProcessSettings                   -> process-wide settings source
    load_configuration()              -> ConfigurationSet for one launch
    LauncherSettings                  -> typed view (deploy, logging, hook)
"""

from .interpolation import substitute_vars, resolve_all  # noqa: F401
from .properties import parse_properties, parse_for_name  # noqa: F401
from .settings import ProcessSettings  # noqa: F401
from .loader import load_configuration, read_properties  # noqa: F401
from .schemas import LauncherSettings, DeploySettings, LoggingConfig  # noqa: F401

__all__ = [
    "substitute_vars",
    "resolve_all",
    "parse_properties",
    "parse_for_name",
    "ProcessSettings",
    "load_configuration",
    "read_properties",
    "LauncherSettings",
    "DeploySettings",
    "LoggingConfig",
]
