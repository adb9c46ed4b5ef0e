"""Console entry point: ``modlaunch [-b DEPLOY_DIR] [CACHE_DIR]``.

Reads ``conf/`` under the working directory, deploys ``modules/`` (or the
``-b`` directory), starts the runtime and blocks until it stops for good.
Exit codes: 0 normal stop, 1 launch failure, 2 usage error (argparse).
"""
from __future__ import annotations

import argparse
import logging
from typing import Mapping, Sequence

from launcher.exceptions import InterruptedWait, LauncherError
from launcher.lifecycle.launchers import ConsoleLauncher
from launcher.lifecycle.supervisor import LifecycleSupervisor
from launcher.modules.factory import RuntimeFactory
from launcher.observability import setup_logging

logger = logging.getLogger("launcher.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modlaunch",
        description="Launch a module runtime and auto-deploy its modules.",
    )
    parser.add_argument(
        "-b",
        "--deploy-dir",
        dest="deploy_dir",
        metavar="DEPLOY_DIR",
        help="auto-deploy directory (overrides modlaunch.auto.deploy.dir)",
    )
    parser.add_argument(
        "cache_dir",
        nargs="?",
        metavar="CACHE_DIR",
        help="runtime storage directory (overrides runtime.storage)",
    )
    return parser


def main(
    argv: Sequence[str] | None = None,
    runtime_factory: RuntimeFactory | None = None,
    environ: Mapping[str, str] | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    supervisor = LifecycleSupervisor(
        ConsoleLauncher(environ=environ),
        deploy_dir=args.deploy_dir,
        storage_dir=args.cache_dir,
        runtime_factory=runtime_factory,
    )
    try:
        supervisor.launch()
        if supervisor.settings is not None:
            setup_logging(supervisor.settings.logging)
        supervisor.start()
    except LauncherError as e:
        setup_logging()
        logger.error("Could not launch runtime: %s", e, exc_info=True)
        supervisor.stop()
        return 1

    code = 0
    try:
        reason = supervisor.wait()
        logger.info("Runtime stopped (%s)", reason.value)
    except KeyboardInterrupt:
        logger.info("Interrupted; stopping runtime")
    except LauncherError as e:
        logger.error("Runtime supervision failed: %s", e)
        code = 1
    finally:
        try:
            supervisor.stop()
        except InterruptedWait:
            logger.warning("Shutdown interrupted")
            code = 1
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
