"""One-shot startup deployment: auto-deploy directory, then auto properties."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from launcher.modules.runtime import Runtime
from launcher.modules.source import ModuleSource
from .auto_properties import AutoPropertiesReport, install_from_properties
from .reconciler import ReconcileReport, reconcile


@dataclass
class ProcessReport:
    deploy: ReconcileReport
    auto_properties: AutoPropertiesReport


def process(
    configuration: Mapping[str, str] | None,
    runtime: Runtime,
    default_directory: str,
    source: ModuleSource,
) -> ProcessReport:
    safe_configuration: Mapping[str, str] = configuration or {}
    deploy = reconcile(safe_configuration, runtime, default_directory, source)
    auto = install_from_properties(safe_configuration, runtime)
    return ProcessReport(deploy=deploy, auto_properties=auto)


__all__ = ["process", "ProcessReport"]
