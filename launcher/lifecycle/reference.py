"""Lock-guarded single-value holder shared between threads."""
from __future__ import annotations

from threading import Lock
from typing import Generic, TypeVar

T = TypeVar("T")


class AtomicReference(Generic[T]):
    __slots__ = ("_value", "_lock")

    def __init__(self, value: T | None = None) -> None:
        self._value = value
        self._lock = Lock()

    def get(self) -> T | None:
        with self._lock:
            return self._value

    def set(self, value: T | None) -> None:
        with self._lock:
            self._value = value


__all__ = ["AtomicReference"]
