"""Pytest configuration: import paths, global state isolation, fakes.

Adds repository root and ``src/`` to sys.path explicitly to avoid
interpreter/path quirks, and resets the in-memory metrics and event
subscribers around every test.

Fakes (exposed through fixtures):
    FakeRuntime  - in-memory Runtime recording every call
    FakeSource   - in-memory ModuleSource tracking opened streams
    FakeAtexit   - register/unregister pair standing in for ``atexit``
"""
from __future__ import annotations

import io
import sys
import threading
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from launcher import metrics  # noqa: E402
from launcher.eventbus import reset_for_tests as _reset_bus  # noqa: E402
from launcher.events import reset_listeners_for_tests  # noqa: E402
from launcher.exceptions import InstallError, OpenError  # noqa: E402
from launcher.modules.runtime import Runtime, StopReason  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_global_state(monkeypatch):  # noqa: D401
    """Reset metrics/event subscribers; drop MODLAUNCH__/RUNTIME__ env."""
    import os

    for name in list(os.environ):
        if name.startswith(("MODLAUNCH__", "RUNTIME__")):
            monkeypatch.delenv(name, raising=False)
    metrics.reset_for_tests()
    _reset_bus()
    reset_listeners_for_tests()
    try:
        yield
    finally:
        metrics.reset_for_tests()
        _reset_bus()
        reset_listeners_for_tests()


class FakeHandle:
    def __init__(self, module_id, location, is_fragment=False):
        self.module_id = module_id
        self.location = location
        self.is_fragment = is_fragment
        self.is_active = False

    def __repr__(self):  # pragma: no cover
        return f"FakeHandle({self.module_id}, {self.location!r})"


class FakeRuntime(Runtime):
    """Runtime double.

    ``fail_on[(op, location)] = exc`` makes that operation raise;
    ``calls`` lists ``(op, location)`` tuples in call order. Stop reasons
    are sticky until the next ``start`` so several threads may wait.
    """

    BOOTSTRAP_LOCATION = "System Module"

    def __init__(self, configuration=None, initial_tier=1, fragments=()):
        self.configuration = dict(configuration or {})
        self.calls = []
        self.tiers = {}
        self.fail_on = {}
        self.fragments = set(fragments)
        self.streams = {}
        self._initial_tier = initial_tier
        self._modules = {
            self.BOOTSTRAP_LOCATION: FakeHandle(0, self.BOOTSTRAP_LOCATION)
        }
        self._next_id = 1
        self._cond = threading.Condition()
        self._reason = None
        self.start_count = 0
        self.stop_count = 0

    # helpers -------------------------------------------------------------
    def ops(self, op):
        return [loc for name, loc in self.calls if name == op]

    def preinstall(self, location, active=False):
        handle = self._new_handle(location)
        handle.is_active = active
        return handle

    def _new_handle(self, location):
        handle = FakeHandle(
            self._next_id, location, is_fragment=location in self.fragments
        )
        self._next_id += 1
        self._modules[location] = handle
        return handle

    def _check(self, op, location):
        self.calls.append((op, location))
        exc = self.fail_on.get((op, location))
        if exc is not None:
            raise exc

    def request_stop(self, reason):
        with self._cond:
            self._reason = reason
            self._cond.notify_all()

    # lifecycle -----------------------------------------------------------
    def init(self):
        self._check("init", None)

    def start(self):
        self._check("start", None)
        with self._cond:
            self._reason = None
            self.start_count += 1

    def stop(self):
        self._check("stop", None)
        self.stop_count += 1
        self.request_stop(StopReason.STOPPED)

    def wait_for_stop(self, timeout=None):
        with self._cond:
            got = self._cond.wait_for(lambda: self._reason is not None, timeout)
            if not got:
                return StopReason.WAIT_TIMEDOUT
            return self._reason

    # modules -------------------------------------------------------------
    def install(self, location, stream=None):
        self._check("install", location)
        if location in self._modules:
            return self._modules[location]
        if stream is not None:
            self.streams[location] = stream.read()
        return self._new_handle(location)

    def update(self, handle):
        self._check("update", handle.location)

    def uninstall(self, handle):
        self._check("uninstall", handle.location)
        self._modules.pop(handle.location, None)

    def start_module(self, handle):
        self._check("start_module", handle.location)
        handle.is_active = True

    def installed_modules(self):
        return list(self._modules.values())

    @property
    def initial_start_tier(self):
        return self._initial_tier

    def set_start_tier(self, handle, tier):
        self.tiers[handle.location] = tier


class _TrackedStream(io.BytesIO):
    def __init__(self, data, owner, location):
        super().__init__(data)
        self._owner = owner
        self._location = location

    def close(self):
        if not self.closed:
            self._owner.closed.append(self._location)
        super().close()


class FakeSource:
    def __init__(self, listing=None, unreadable=()):
        self.listing = {k: list(v) for k, v in (listing or {}).items()}
        self.unreadable = set(unreadable)
        self.listed = []
        self.opened = []
        self.closed = []

    def list(self, directory):
        self.listed.append(directory)
        return list(self.listing.get(directory, []))

    def open(self, location):
        if location in self.unreadable:
            raise OpenError(f"Unable to open stream for {location}", location=location)
        self.opened.append(location)
        return _TrackedStream(location.encode("utf-8"), self, location)


class FakeAtexit:
    def __init__(self):
        self.registered = []
        self.unregister_calls = 0

    def register(self, fn):
        self.registered.append(fn)
        return fn

    def unregister(self, fn):
        self.unregister_calls += 1
        if fn in self.registered:
            self.registered.remove(fn)


@pytest.fixture
def fake_runtime():
    return FakeRuntime()


@pytest.fixture
def runtime_cls():
    return FakeRuntime


@pytest.fixture
def source_cls():
    return FakeSource


@pytest.fixture
def fake_atexit():
    return FakeAtexit()


@pytest.fixture
def install_error():
    def _make(location):
        return InstallError(f"rejected {location}", location=location)

    return _make
