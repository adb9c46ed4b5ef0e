"""Best-effort runtime stop at interpreter exit.

The hook reads the runtime through the supervisor's AtomicReference, so it
sees either no runtime or the current one. Registration goes through
``atexit`` by default; hosts without an exit sequence of their own must
call ``LifecycleSupervisor.stop`` explicitly instead.
"""
from __future__ import annotations

import atexit
import logging
from threading import Lock
from typing import Callable

from launcher.modules.runtime import Runtime
from .reference import AtomicReference

logger = logging.getLogger("launcher.lifecycle")

Registrar = Callable[[Callable[[], None]], object]


class ShutdownHook:
    def __init__(
        self,
        runtime_ref: AtomicReference[Runtime],
        register: Registrar = atexit.register,
        unregister: Registrar = atexit.unregister,
    ) -> None:
        self._runtime_ref = runtime_ref
        self._register = register
        self._unregister = unregister
        self._registered = False
        self._lock = Lock()

    @property
    def registered(self) -> bool:
        with self._lock:
            return self._registered

    def install(self) -> None:
        with self._lock:
            if self._registered:
                return
            self._register(self)
            self._registered = True
        logger.debug("Registered runtime shutdown hook.")

    def remove(self) -> bool:
        """Deregister; False when the hook was already removed."""
        with self._lock:
            if not self._registered:
                return False
            self._unregister(self)
            self._registered = False
            return True

    def __call__(self) -> None:
        with self._lock:
            if not self._registered:
                return
            self._registered = False
        runtime = self._runtime_ref.get()
        if runtime is None:
            return
        try:
            runtime.stop()
            runtime.wait_for_stop(None)
        except Exception:  # noqa: BLE001
            logger.error("Error stopping runtime from shutdown hook", exc_info=True)


__all__ = ["ShutdownHook"]
