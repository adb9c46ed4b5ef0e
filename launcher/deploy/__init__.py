"""Startup deployment: directory reconciliation + auto properties."""

from .reconciler import (  # noqa: F401
    DeployAction,
    ReconcileReport,
    Reconciler,
    parse_actions,
    reconcile,
)
from .auto_properties import (  # noqa: F401
    AutoPropertiesInstaller,
    AutoPropertiesReport,
    install_from_properties,
    tokenize_locations,
)
from .processor import ProcessReport, process  # noqa: F401

__all__ = [
    "DeployAction",
    "ReconcileReport",
    "Reconciler",
    "parse_actions",
    "reconcile",
    "AutoPropertiesInstaller",
    "AutoPropertiesReport",
    "install_from_properties",
    "tokenize_locations",
    "ProcessReport",
    "process",
]
