"""Module source backed by a packaged resource tree.

Locations are "/"-joined paths relative to the tree root (``modules/a.zip``),
the tree being anything ``importlib.resources`` hands out as a Traversable
(a package directory, a zip import, a plain ``pathlib.Path``).
"""
from __future__ import annotations

import logging
from importlib.resources.abc import Traversable
from typing import BinaryIO, List, Sequence

from launcher.exceptions import OpenError

logger = logging.getLogger("modlaunch.api")

DEFAULT_EXTENSIONS = (".zip", ".whl", ".war")


def _walk(root: Traversable, path: str) -> Traversable:
    node = root
    for part in path.strip("/").split("/"):
        if part:
            node = node.joinpath(part)
    return node


class ResourceTreeModuleSource:
    def __init__(
        self, root: Traversable, extensions: Sequence[str] = DEFAULT_EXTENSIONS
    ) -> None:
        self._root = root
        self._extensions = tuple(e.lower() for e in extensions)

    @property
    def root(self) -> Traversable:
        return self._root

    def list(self, directory: str) -> List[str]:
        node = _walk(self._root, directory)
        if not node.is_dir():
            return []
        prefix = directory.strip("/")
        found: List[str] = []
        for entry in node.iterdir():
            if not entry.is_file():
                continue
            if not entry.name.lower().endswith(self._extensions):
                logger.debug("Skipping resource %s/%s", prefix, entry.name)
                continue
            found.append(f"{prefix}/{entry.name}" if prefix else entry.name)
        return sorted(found)

    def open(self, location: str) -> BinaryIO:
        node = _walk(self._root, location)
        try:
            if not node.is_file():
                raise FileNotFoundError(location)
            return node.open("rb")  # type: ignore[return-value]
        except OSError as e:
            raise OpenError(
                f"could not open resource '{location}'", location=location
            ) from e


__all__ = ["ResourceTreeModuleSource", "DEFAULT_EXTENSIONS"]
