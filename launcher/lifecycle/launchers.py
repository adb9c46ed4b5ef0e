"""Launch strategies: where properties and module bytes come from.

A launcher assembles the process settings and the ConfigurationSet and
hands out the ModuleSource plus the default deploy directory. The
supervisor drives the rest. ``ConsoleLauncher`` reads from the local disk;
the web surface has a resource-tree variant (``modlaunch.api.app``).
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Tuple

from launcher.config import keys
from launcher.config.loader import load_configuration, read_properties
from launcher.config.properties import YAML_SUFFIXES
from launcher.config.settings import ProcessSettings
from launcher.modules.source import FileSystemModuleSource, ModuleSource

logger = logging.getLogger("launcher.lifecycle")


class BaseLauncher(ABC):
    def __init__(
        self,
        source: ModuleSource,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._source = source
        self._environ = environ

    @property
    def module_source(self) -> ModuleSource:
        return self._source

    @property
    @abstractmethod
    def default_deploy_directory(self) -> str:
        """Deploy directory used when configuration names none."""

    @abstractmethod
    def load_system_properties(
        self, settings: ProcessSettings
    ) -> Mapping[str, str] | None:
        """Return raw system properties, None when there are none."""

    @abstractmethod
    def load_config_properties(
        self, settings: ProcessSettings
    ) -> Tuple[Mapping[str, str] | None, str]:
        """Return (raw config properties or None, origin description)."""

    def load_settings(self) -> ProcessSettings:
        settings = ProcessSettings.from_environ(self._environ)
        system = self.load_system_properties(settings)
        if system:
            settings = settings.with_properties(system)
        return settings

    def build_configuration(
        self,
        deploy_dir: str | None = None,
        storage_dir: str | None = None,
    ) -> Dict[str, str]:
        settings = self.load_settings()
        raw, origin = self.load_config_properties(settings)
        return load_configuration(
            raw, settings, deploy_dir, storage_dir, source=origin
        )


class ConsoleLauncher(BaseLauncher):
    """Reads ``conf/`` and deploys from ``modules/`` under a base directory.

    ``modlaunch.config.properties`` / ``modlaunch.system.properties``
    (process settings, e.g. ``MODLAUNCH__CONFIG__PROPERTIES``) point at
    another path or ``file:``/``http(s):`` URL.
    """

    DEFAULT_DEPLOY_DIRECTORY = "modules"

    def __init__(
        self,
        source: ModuleSource | None = None,
        environ: Mapping[str, str] | None = None,
        base_dir: str | Path | None = None,
    ) -> None:
        super().__init__(source or FileSystemModuleSource(), environ)
        self._base_dir = Path(base_dir) if base_dir is not None else Path.cwd()

    @property
    def default_deploy_directory(self) -> str:
        return str(self._base_dir / self.DEFAULT_DEPLOY_DIRECTORY)

    def _locate(
        self, settings: ProcessSettings, key: str, default_name: str
    ) -> str | Path:
        custom = settings.get(key)
        if custom:
            return custom
        conf_dir = self._base_dir / keys.CONFIG_DIRECTORY
        default = conf_dir / default_name
        if not default.exists():
            for suffix in YAML_SUFFIXES:
                candidate = default.with_suffix(suffix)
                if candidate.exists():
                    return candidate
        return default

    def load_system_properties(
        self, settings: ProcessSettings
    ) -> Mapping[str, str] | None:
        location = self._locate(
            settings, keys.SYSTEM_PROPERTIES, keys.SYSTEM_PROPERTIES_FILE
        )
        props = read_properties(location, kind="system")
        if props is None:
            logger.debug("No %s found", keys.SYSTEM_PROPERTIES_FILE)
        return props

    def load_config_properties(
        self, settings: ProcessSettings
    ) -> Tuple[Mapping[str, str] | None, str]:
        location = self._locate(
            settings, keys.CONFIG_PROPERTIES, keys.CONFIG_PROPERTIES_FILE
        )
        return read_properties(location, kind="config"), str(location)


__all__ = ["BaseLauncher", "ConsoleLauncher"]
