"""Background loop restarting the runtime after update stops.

Runs on the supervisor's daemon restart thread. Each iteration blocks (no timeout)
until the runtime reports a stop; STOPPED_UPDATE restarts the runtime and
waits again, any other reason ends the loop. The shutdown hook is removed
when the loop ends, whatever the outcome.
"""
from __future__ import annotations

import logging
from threading import Event
from typing import Callable

from launcher.events import emit, RuntimeStarted, RuntimeStopped, ShutdownHookRemoved
from launcher.exceptions import LifecycleError
from launcher.modules.runtime import Runtime, StopReason
from .shutdown_hook import ShutdownHook
from .state import SupervisorState

logger = logging.getLogger("launcher.lifecycle")


class RestartLoop:
    def __init__(
        self,
        runtime: Runtime,
        shutdown_hook: ShutdownHook | None,
        cancelled: Event,
        on_state: Callable[[SupervisorState], None] | None = None,
    ) -> None:
        self._runtime = runtime
        self._hook = shutdown_hook
        self._cancelled = cancelled
        self._on_state = on_state or (lambda _state: None)

    def __call__(self) -> StopReason:
        try:
            while True:
                reason = self._runtime.wait_for_stop(None)
                logger.debug("Got stop event %s", reason.value)
                emit(RuntimeStopped(reason=reason.value))

                if reason is not StopReason.STOPPED_UPDATE:
                    return reason
                if self._cancelled.is_set():
                    logger.debug("Shutdown in progress; not restarting runtime")
                    return reason

                logger.debug("Restarting runtime")
                self._on_state(SupervisorState.RESTARTING)
                try:
                    self._runtime.start()
                except Exception as e:  # noqa: BLE001
                    raise LifecycleError("runtime restart failed") from e
                emit(RuntimeStarted(restart=True))
                self._on_state(SupervisorState.STARTED)
        finally:
            if self._hook is not None:
                removed = self._hook.remove()
                if removed:
                    logger.debug("Removed shutdown hook.")
                else:
                    logger.debug("Shutdown hook already removed.")
                emit(ShutdownHookRemoved(removed=removed))


__all__ = ["RestartLoop"]
