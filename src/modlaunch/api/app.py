"""FastAPI application hosting one module runtime.

The app lifespan owns a LifecycleSupervisor: startup launches and starts
the runtime and publishes it on ``app.state.runtime``; shutdown stops it
and removes the attribute again. Properties and modules come from a
resource tree (``conf/`` and ``modules/`` inside it).
"""
from __future__ import annotations

import asyncio
import atexit
import logging
import os
import time
from contextlib import asynccontextmanager
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Mapping, Tuple

from fastapi import FastAPI, HTTPException, Request
from starlette.routing import Match

from launcher import metrics
from launcher.config import keys
from launcher.config.loader import read_properties
from launcher.config.properties import YAML_SUFFIXES, parse_for_name
from launcher.config.settings import ProcessSettings
from launcher.exceptions import ConfigurationError
from launcher.lifecycle.launchers import BaseLauncher
from launcher.lifecycle.shutdown_hook import Registrar
from launcher.lifecycle.supervisor import LifecycleSupervisor
from launcher.modules.factory import RuntimeFactory
from launcher.observability import setup_logging
from modlaunch.api.resources import ResourceTreeModuleSource

logger = logging.getLogger("modlaunch.api")

ROOT_ENV = "MODLAUNCH_RESOURCE_ROOT"


class ResourceLauncher(BaseLauncher):
    """Reads ``conf/*.properties`` and deploys ``modules/`` from a resource tree."""

    DEFAULT_DEPLOY_DIRECTORY = "modules"

    def __init__(
        self,
        root: Traversable,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(ResourceTreeModuleSource(root), environ)
        self._root = root

    @property
    def default_deploy_directory(self) -> str:
        return self.DEFAULT_DEPLOY_DIRECTORY

    def _read_resource(self, name: str, kind: str) -> Tuple[dict | None, str]:
        conf = self._root.joinpath(keys.CONFIG_DIRECTORY)
        candidates = [name] + [
            name.rsplit(".", 1)[0] + suffix for suffix in YAML_SUFFIXES
        ]
        for candidate in candidates:
            node = conf.joinpath(candidate)
            if not node.is_file():
                continue
            origin = f"{keys.CONFIG_DIRECTORY}/{candidate}"
            try:
                text = node.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigurationError(
                    f"Error loading {kind} properties from {origin}"
                ) from e
            return parse_for_name(candidate, text), origin
        return None, f"{keys.CONFIG_DIRECTORY}/{name}"

    def load_system_properties(
        self, settings: ProcessSettings
    ) -> Mapping[str, str] | None:
        custom = settings.get(keys.SYSTEM_PROPERTIES)
        if custom:
            return read_properties(custom, kind="system")
        props, _ = self._read_resource(keys.SYSTEM_PROPERTIES_FILE, "system")
        return props

    def load_config_properties(
        self, settings: ProcessSettings
    ) -> Tuple[Mapping[str, str] | None, str]:
        custom = settings.get(keys.CONFIG_PROPERTIES)
        if custom:
            return read_properties(custom, kind="config"), custom
        return self._read_resource(keys.CONFIG_PROPERTIES_FILE, "config")


def _route_label(request: Request) -> str:
    """Route template serving the request, ``unmatched`` when none applies."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match is not Match.NONE:
            return getattr(route, "path", "unmatched")
    return "unmatched"


def create_app(
    launcher: BaseLauncher | None = None,
    runtime_factory: RuntimeFactory | None = None,
    deploy_dir: str | None = None,
    storage_dir: str | None = None,
    register: Registrar = atexit.register,
    unregister: Registrar = atexit.unregister,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        active = launcher or ResourceLauncher(
            Path(os.getenv(ROOT_ENV) or Path.cwd())
        )
        supervisor = LifecycleSupervisor(
            active,
            deploy_dir=deploy_dir,
            storage_dir=storage_dir,
            runtime_factory=runtime_factory,
            register=register,
            unregister=unregister,
        )
        try:
            await asyncio.to_thread(supervisor.launch)
            await asyncio.to_thread(supervisor.start)
        except Exception:
            logger.error("Runtime launch failed", exc_info=True)
            await asyncio.to_thread(supervisor.stop)
            raise
        app.state.supervisor = supervisor
        app.state.runtime = supervisor.runtime
        try:
            yield
        finally:
            try:
                await asyncio.to_thread(supervisor.stop)
            finally:
                del app.state.runtime
                del app.state.supervisor

    app = FastAPI(
        title="modlaunch",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    @app.get("/health")
    def health(request: Request):  # noqa: D401
        supervisor = getattr(request.app.state, "supervisor", None)
        return {
            "status": "ok",
            "state": supervisor.state.value if supervisor else None,
        }

    @app.get("/modules")
    def modules(request: Request):  # noqa: D401
        runtime = getattr(request.app.state, "runtime", None)
        if runtime is None:
            raise HTTPException(status_code=503, detail="runtime-unavailable")
        out = []
        for handle in runtime.installed_modules():
            out.append(
                {
                    "id": handle.module_id,
                    "location": handle.location,
                    "fragment": handle.is_fragment,
                    "active": handle.is_active,
                }
            )
        return {"modules": out}

    @app.get("/metrics")
    def metrics_snapshot():  # noqa: D401
        return metrics.snapshot()

    @app.middleware("http")
    async def _metrics_mw(request: Request, call_next):  # noqa: D401
        start = time.time()
        labels = {"route": _route_label(request), "method": request.method}
        try:
            response = await call_next(request)
            if response.status_code >= 400:
                metrics.inc(
                    "api_request_errors_total",
                    labels | {"status": response.status_code},
                )
            return response
        finally:
            metrics.inc("api_request_total", labels)
            metrics.observe(
                "api_request_latency_ms", (time.time() - start) * 1000.0, labels
            )

    return app


app = create_app()


def main() -> None:  # pragma: no cover
    import uvicorn

    uvicorn.run("modlaunch.api.app:app", host="127.0.0.1", port=8000, reload=False)


if __name__ == "__main__":  # pragma: no cover
    main()
