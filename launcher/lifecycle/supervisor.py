"""LifecycleSupervisor: one launch of one runtime.

CREATED -> INITIALIZED (launch) -> STARTED (start) -> STOPPED (stop).
RESTARTING is entered by the background loop while an update restart is in
flight; STOPPING while ``stop`` tears things down.

Thread-safety: ``launch``/``start``/``stop`` are meant for a single
controlling thread; ``stop`` is additionally safe to call from a second
thread (signal handler, web lifespan) and is idempotent.
"""
from __future__ import annotations

import atexit
import logging
import time
from concurrent.futures import CancelledError, Future
from threading import Event, Lock, Thread
from typing import Callable, Dict, List

from launcher.config.schemas import LauncherSettings
from launcher.deploy.processor import process
from launcher.errors import map_exception
from launcher.events import emit, RuntimeStarted
from launcher.exceptions import InterruptedWait, LifecycleError
from launcher.modules.factory import RuntimeFactory, load_runtime_factory
from launcher.modules.runtime import Runtime, StopReason
from .launchers import BaseLauncher
from .polling import RestartLoop
from .reference import AtomicReference
from .shutdown_hook import Registrar, ShutdownHook
from .state import SupervisorState

logger = logging.getLogger("launcher.lifecycle")


class LifecycleSupervisor:
    def __init__(
        self,
        launcher: BaseLauncher,
        deploy_dir: str | None = None,
        storage_dir: str | None = None,
        runtime_factory: RuntimeFactory | None = None,
        register: Registrar = atexit.register,
        unregister: Registrar = atexit.unregister,
    ) -> None:
        self._launcher = launcher
        self._deploy_dir = deploy_dir
        self._storage_dir = storage_dir
        self._factory = runtime_factory
        self._runtime_ref: AtomicReference[Runtime] = AtomicReference()
        self._hook = ShutdownHook(
            self._runtime_ref, register=register, unregister=unregister
        )
        self._cancelled = Event()
        self._state = SupervisorState.CREATED
        self._state_lock = Lock()
        self._stop_lock = Lock()
        self._stopped = False
        self._thread: Thread | None = None
        self._future: Future[StopReason] | None = None
        self._teardown: List[Callable[[], None]] = []
        self._settings: LauncherSettings | None = None
        self._configuration: Dict[str, str] = {}

    # --- introspection ---------------------------------------------------
    @property
    def state(self) -> SupervisorState:
        with self._state_lock:
            return self._state

    @property
    def runtime(self) -> Runtime | None:
        return self._runtime_ref.get()

    @property
    def settings(self) -> LauncherSettings | None:
        return self._settings

    @property
    def configuration(self) -> Dict[str, str]:
        return dict(self._configuration)

    @property
    def shutdown_hook(self) -> ShutdownHook:
        return self._hook

    def on_teardown(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` at the end of ``stop`` (after the runtime is gone)."""
        self._teardown.append(callback)

    def _set_state(self, state: SupervisorState) -> None:
        with self._state_lock:
            if self._state in (SupervisorState.STOPPING, SupervisorState.STOPPED):
                return
            self._state = state

    def _require(self, expected: SupervisorState, op: str) -> None:
        current = self.state
        if current is not expected:
            raise LifecycleError(
                f"cannot {op} supervisor in state {current.value}"
            )

    # --- lifecycle -------------------------------------------------------
    def launch(self) -> Runtime:
        self._require(SupervisorState.CREATED, "launch")
        configuration = self._launcher.build_configuration(
            self._deploy_dir, self._storage_dir
        )
        self._configuration = configuration
        settings = LauncherSettings.from_configuration(configuration)
        self._settings = settings
        factory = self._factory or load_runtime_factory(configuration)

        if settings.shutdown_hook:
            self._hook.install()
        else:
            logger.debug("Shutdown hook disabled by configuration")

        try:
            try:
                runtime = factory(configuration)
            except Exception as e:  # noqa: BLE001
                raise LifecycleError("could not create runtime") from e
            self._runtime_ref.set(runtime)
            try:
                runtime.init()
            except Exception as e:  # noqa: BLE001
                logger.error(
                    "Runtime init failed (error_type=%s)",
                    map_exception(e, "runtime.init"),
                )
                raise LifecycleError("runtime init failed") from e
        except LifecycleError:
            self._hook.remove()
            self._runtime_ref.set(None)
            with self._state_lock:
                self._state = SupervisorState.STOPPED
            raise

        process(
            configuration,
            runtime,
            self._launcher.default_deploy_directory,
            self._launcher.module_source,
        )
        self._set_state(SupervisorState.INITIALIZED)
        return runtime

    def start(self) -> None:
        self._require(SupervisorState.INITIALIZED, "start")
        runtime = self._runtime_ref.get()
        assert runtime is not None
        try:
            runtime.start()
        except Exception as e:  # noqa: BLE001
            logger.error(
                "Runtime start failed (error_type=%s)",
                map_exception(e, "runtime.start"),
            )
            raise LifecycleError("runtime start failed") from e
        emit(RuntimeStarted(restart=False))
        self._set_state(SupervisorState.STARTED)

        loop = RestartLoop(
            runtime,
            self._hook if self._hook.registered else None,
            self._cancelled,
            on_state=self._set_state,
        )
        # daemon: interpreter exit must not join a loop parked in wait_for_stop
        future: Future[StopReason] = Future()
        self._future = future
        self._thread = Thread(
            target=self._run_loop,
            args=(loop, future),
            name="modlaunch-restart",
            daemon=True,
        )
        self._thread.start()

    @staticmethod
    def _run_loop(loop: RestartLoop, future: Future[StopReason]) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            reason = loop()
        except BaseException as e:  # noqa: BLE001
            future.set_exception(e)
        else:
            future.set_result(reason)

    def wait(self, timeout: float | None = None) -> StopReason:
        """Block until the restart loop ends; return its final StopReason."""
        if self._future is None:
            raise LifecycleError("supervisor was not started")
        return self._future.result(timeout)

    def stop(self) -> None:
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
        with self._state_lock:
            self._state = SupervisorState.STOPPING

        t0 = time.time()
        interrupted: KeyboardInterrupt | None = None
        try:
            self._cancelled.set()
            runtime = self._runtime_ref.get()
            if runtime is not None:
                try:
                    runtime.stop()
                    runtime.wait_for_stop(None)
                except KeyboardInterrupt as e:
                    interrupted = e
                except Exception as e:  # noqa: BLE001
                    logger.error(
                        "Error stopping runtime (error_type=%s)",
                        map_exception(e, "runtime.stop"),
                        exc_info=True,
                    )

            if self._future is not None:
                try:
                    self._future.result()
                except CancelledError:
                    pass
                except KeyboardInterrupt as e:
                    interrupted = interrupted or e
                except Exception:  # noqa: BLE001
                    logger.error("Restart loop ended with error", exc_info=True)

            self._hook.remove()
        finally:
            self._runtime_ref.set(None)
            for callback in list(self._teardown):
                try:
                    callback()
                except Exception:  # noqa: BLE001
                    logger.error("Teardown callback failed", exc_info=True)
            with self._state_lock:
                self._state = SupervisorState.STOPPED
            logger.debug(
                "Supervisor stopped in %d ms", int((time.time() - t0) * 1000)
            )

        if interrupted is not None:
            logger.warning(
                "Shutdown wait interrupted (error_type=shutdown-interrupted)"
            )
            raise InterruptedWait("interrupted while waiting for shutdown") from interrupted


__all__ = ["LifecycleSupervisor"]
