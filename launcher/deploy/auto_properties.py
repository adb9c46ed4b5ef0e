"""Auto-install / auto-start configuration properties.

Keys ``modlaunch.auto.install[.N]`` and ``modlaunch.auto.start[.N]``
(matched case-insensitively) hold space separated module locations; a
location containing spaces is wrapped in double quotes. ``N`` is the start
tier for the listed modules, the runtime's initial tier otherwise.

Processing is two passes: every listed location is installed first, then
the auto-start locations are started, so modules that need each other are
all present before any of them starts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Mapping, Tuple

from launcher.config import keys
from launcher.errors import map_exception
from launcher.events import emit, ModuleInstalled, ModuleOperationFailed, ModuleStarted
from launcher.modules.runtime import Runtime

logger = logging.getLogger("launcher.deploy")

_QUOTE = '"'
_DELIM = " "


def tokenize_locations(value: str) -> List[str]:
    """Split a location list on spaces, honouring double quotes.

    Text between delimiters is trimmed; a quoted section keeps its inner
    spaces. ``'"loc one" loc2'`` → ``["loc one", "loc2"]``.
    """
    out: List[str] = []
    token: List[str] = []
    segment: List[str] = []
    in_quote = False

    def _flush_segment() -> None:
        text = "".join(segment).strip()
        segment.clear()
        if text:
            token.append(text)

    for ch in value:
        if ch == _QUOTE:
            _flush_segment()
            in_quote = not in_quote
        elif ch == _DELIM and not in_quote:
            _flush_segment()
            if token:
                out.append("".join(token))
                token.clear()
        else:
            segment.append(ch)
    _flush_segment()
    if token:
        out.append("".join(token))
    return out


@dataclass
class AutoPropertiesReport:
    installed: List[str] = field(default_factory=list)
    started: List[str] = field(default_factory=list)
    failures: List[Tuple[str, str, BaseException]] = field(default_factory=list)


def _match_prefix(lower_key: str) -> str | None:
    for prefix in (keys.AUTO_INSTALL_PREFIX, keys.AUTO_START_PREFIX):
        if lower_key == prefix or lower_key.startswith(prefix + "."):
            return prefix
    return None


class AutoPropertiesInstaller:
    def _tier_for(self, lower_key: str, prefix: str, default: int) -> int:
        suffix = lower_key[len(prefix):]
        if not suffix:
            return default
        try:
            return int(suffix.rsplit(".", 1)[-1])
        except ValueError:
            logger.warning("Invalid auto property %s; using default tier.", lower_key)
            return default

    def _entries(
        self, configuration: Mapping[str, str], only: str | None = None
    ) -> Iterator[Tuple[str, str, str]]:
        for key, value in configuration.items():
            lower_key = key.lower()
            prefix = _match_prefix(lower_key)
            if prefix is None or (only is not None and prefix != only):
                continue
            yield lower_key, prefix, value

    def _report_failure(
        self,
        report: AutoPropertiesReport,
        operation: str,
        location: str,
        exc: BaseException,
    ) -> None:
        logger.error(
            "Auto-properties %s for %s failed.", operation, location, exc_info=exc
        )
        report.failures.append((operation, location, exc))
        emit(
            ModuleOperationFailed(
                operation=operation,
                location=location,
                error_type=map_exception(exc, operation),
                message=str(exc),
            )
        )

    def install_from_properties(
        self, configuration: Mapping[str, str], runtime: Runtime
    ) -> AutoPropertiesReport:
        report = AutoPropertiesReport()
        default_tier = runtime.initial_start_tier
        known = {h.location for h in runtime.installed_modules()}

        # pass 1: install everything listed under any auto key
        for lower_key, prefix, value in self._entries(configuration):
            tier = self._tier_for(lower_key, prefix, default_tier)
            for location in tokenize_locations(value):
                try:
                    handle = runtime.install(location, None)
                    runtime.set_start_tier(handle, tier)
                except Exception as e:  # noqa: BLE001
                    self._report_failure(report, "install", location, e)
                    continue
                if location not in known:
                    known.add(location)
                    report.installed.append(location)
                    emit(
                        ModuleInstalled(
                            location=location,
                            module_id=handle.module_id,
                            start_tier=tier,
                            origin="auto-properties",
                        )
                    )

        # pass 2: start the auto-start locations
        for _, _, value in self._entries(configuration, only=keys.AUTO_START_PREFIX):
            for location in tokenize_locations(value):
                try:
                    # installing twice returns the same module
                    handle = runtime.install(location, None)
                    if handle.is_active:
                        continue
                    runtime.start_module(handle)
                except Exception as e:  # noqa: BLE001
                    self._report_failure(report, "start", location, e)
                    continue
                report.started.append(location)
                emit(
                    ModuleStarted(
                        location=location,
                        module_id=handle.module_id,
                        origin="auto-properties",
                    )
                )
        return report


def install_from_properties(
    configuration: Mapping[str, str], runtime: Runtime
) -> AutoPropertiesReport:
    return AutoPropertiesInstaller().install_from_properties(configuration, runtime)


__all__ = [
    "tokenize_locations",
    "AutoPropertiesInstaller",
    "AutoPropertiesReport",
    "install_from_properties",
]
