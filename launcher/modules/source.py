"""Module sources: where module locations are listed and opened.

A source is a capability with two operations; implementations are swapped,
not subclassed from a shared base. The packaged resource-tree source used by
the web surface lives in ``modlaunch.api.resources``.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, List, Protocol, Sequence, runtime_checkable

from launcher.exceptions import OpenError

logger = logging.getLogger("launcher.modules")

DEFAULT_EXTENSIONS: tuple[str, ...] = (".zip", ".whl")


@runtime_checkable
class ModuleSource(Protocol):
    def list(self, directory: str) -> List[str]:
        """Return module locations under ``directory``, sorted."""
        ...

    def open(self, location: str) -> BinaryIO:
        """Return a byte stream; the caller closes it. Raises OpenError."""
        ...


class FileSystemModuleSource:
    """Lists package files of a local directory by extension."""

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS) -> None:
        self._extensions = tuple(ext.lower() for ext in extensions)

    def list(self, directory: str) -> List[str]:
        root = Path(directory)
        if not root.is_dir():
            logger.debug("deploy directory %s does not exist", directory)
            return []
        found = [
            str(p.resolve())
            for p in root.iterdir()
            if p.is_file() and p.name.lower().endswith(self._extensions)
        ]
        found.sort()
        logger.info("Found %d module(s) in %s", len(found), directory)
        return found

    def open(self, location: str) -> BinaryIO:
        try:
            return Path(location).open("rb")
        except OSError as e:
            raise OpenError(
                f"Unable to open stream for {location}", location=location
            ) from e


__all__ = ["ModuleSource", "FileSystemModuleSource", "DEFAULT_EXTENSIONS"]
