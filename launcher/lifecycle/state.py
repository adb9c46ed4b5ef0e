"""Supervisor lifecycle states."""
from __future__ import annotations

import enum


class SupervisorState(enum.Enum):
    CREATED = "created"
    INITIALIZED = "initialized"
    STARTED = "started"
    RESTARTING = "restarting"
    STOPPING = "stopping"
    STOPPED = "stopped"


__all__ = ["SupervisorState"]
