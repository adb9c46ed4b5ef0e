"""Runtime factory discovery.

Lookup order:
  1. ``modlaunch.runtime.factory`` configuration key ("pkg.module:callable")
  2. first entry point (by name) in the ``modlaunch.runtime_factories`` group

A factory is any callable taking the configuration set and returning a
``Runtime``.
"""
from __future__ import annotations

import importlib
import logging
from importlib.metadata import entry_points
from typing import Callable, Mapping

from launcher.config import keys
from launcher.exceptions import LifecycleError
from .runtime import Runtime

RuntimeFactory = Callable[[Mapping[str, str]], Runtime]

ENTRY_POINT_GROUP = "modlaunch.runtime_factories"

logger = logging.getLogger("launcher.modules")


def _import_factory(spec: str) -> RuntimeFactory:
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise LifecycleError(
            f"invalid runtime factory '{spec}' (expected 'module:callable')"
        )
    try:
        module = importlib.import_module(module_name.strip())
        target = module
        for part in attr.strip().split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as e:
        raise LifecycleError(f"could not load runtime factory '{spec}'") from e
    if not callable(target):
        raise LifecycleError(f"runtime factory '{spec}' is not callable")
    return target  # type: ignore[return-value]


def load_runtime_factory(configuration: Mapping[str, str]) -> RuntimeFactory:
    spec = (configuration.get(keys.RUNTIME_FACTORY) or "").strip()
    if spec:
        logger.debug("runtime factory from configuration: %s", spec)
        return _import_factory(spec)
    candidates = sorted(entry_points(group=ENTRY_POINT_GROUP), key=lambda ep: ep.name)
    for ep in candidates:
        try:
            factory = ep.load()
        except Exception as e:  # noqa: BLE001
            raise LifecycleError(
                f"could not load runtime factory entry point '{ep.name}'"
            ) from e
        logger.debug("runtime factory from entry point %s", ep.name)
        return factory
    raise LifecycleError("could not find runtime factory")


__all__ = ["load_runtime_factory", "RuntimeFactory", "ENTRY_POINT_GROUP"]
