"""Process-wide settings source.

A single explicit mapping of process-wide settings, built
once per launch and threaded through the launch sequence. Two inputs:

  - environment variables under a recognised prefix
    (``MODLAUNCH__AUTO__DEPLOY__DIR=x`` → ``modlaunch.auto.deploy.dir=x``)
  - a ``system.properties`` file, resolved against itself and the
    environment-derived values

Precedence (last wins): environment → system.properties file → explicit
``overrides``.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from typing import Dict

from launcher import metrics
from launcher.config import keys
from launcher.config.interpolation import substitute_vars

logger = logging.getLogger("launcher.config")


def settings_from_environ(environ: Mapping[str, str] | None = None) -> Dict[str, str]:
    env = os.environ if environ is None else environ
    out: Dict[str, str] = {}
    for env_key in sorted(env):
        for prefix, dotted in keys.ENV_PREFIXES.items():
            if not env_key.startswith(prefix):
                continue
            parts = env_key[len(prefix):].lower().split("__")
            key = ".".join([dotted, *parts])
            out[key] = env[env_key]
            metrics.inc("config_env_override_total", {"key": key})
            logger.debug("setting %s taken from environment", key)
            break
    return out


class ProcessSettings(Mapping[str, str]):
    """Immutable, ordered process-wide settings."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values: Dict[str, str] = dict(values or {})

    @classmethod
    def from_environ(
        cls, environ: Mapping[str, str] | None = None
    ) -> "ProcessSettings":
        return cls(settings_from_environ(environ))

    def with_properties(self, props: Mapping[str, str]) -> "ProcessSettings":
        """Return a copy extended by ``props`` (placeholders resolved)."""
        merged = dict(self._values)
        for name, value in props.items():
            merged[name] = substitute_vars(value, name, None, props, self._values)
        return ProcessSettings(merged)

    def copy_prefixed(
        self, prefixes: tuple[str, ...] = keys.COPIED_SETTING_PREFIXES
    ) -> Dict[str, str]:
        return {k: v for k, v in self._values.items() if k.startswith(prefixes)}

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:  # pragma: no cover
        return f"ProcessSettings({len(self._values)} keys)"


__all__ = ["ProcessSettings", "settings_from_environ"]
