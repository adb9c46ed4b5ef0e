"""``${name}`` placeholder resolution over two layered property sources.

The primary source is the property set being built (configuration file
values); the fallback is the process-wide settings source. Unresolved names
substitute the empty string.
"""
from __future__ import annotations

import logging
from typing import Mapping

from launcher import metrics
from launcher.exceptions import ConfigurationError

DELIM_START = "${"
DELIM_STOP = "}"

logger = logging.getLogger("launcher.config")


def _lookup(
    name: str,
    primary: Mapping[str, str] | None,
    fallback: Mapping[str, str] | None,
) -> str | None:
    if primary is not None and name in primary:
        return primary[name]
    if fallback is not None and name in fallback:
        return fallback[name]
    return None


def substitute_vars(
    value: str,
    current_key: str,
    cycle_map: set[str] | None,
    primary: Mapping[str, str] | None,
    fallback: Mapping[str, str] | None = None,
) -> str:
    """Resolve every placeholder in ``value``.

    The deepest, left-most placeholder is substituted first: the first
    closing delimiter is located, then the last opening delimiter before
    it. Substituted text is resolved recursively, and the whole string is
    re-scanned afterwards so placeholders revealed by the substitution are
    handled too.

    Raises ConfigurationError when a name refers back to a key that is
    already being resolved.
    """
    if cycle_map is None:
        cycle_map = set()
    # Own copy; callers' sets are never mutated.
    cycle_map = set(cycle_map)
    cycle_map.add(current_key)

    stop = value.find(DELIM_STOP)
    if stop < 0:
        return value
    start = value.rfind(DELIM_START, 0, stop)
    if start < 0:
        return value

    name = value[start + len(DELIM_START):stop]
    if name in cycle_map:
        raise ConfigurationError(
            f"recursive variable reference: {name}", variable=name
        )

    raw = _lookup(name, primary, fallback)
    if raw is None:
        logger.debug("unresolved placeholder %s in %s", name, current_key)
        metrics.inc("config_unresolved_placeholder_total", {"name": name})
        raw = ""
    substituted = substitute_vars(raw, name, cycle_map, primary, fallback)

    result = value[:start] + substituted + value[stop + len(DELIM_STOP):]
    # name leaves the cycle set before the re-scan so it may repeat
    cycle_map.discard(name)
    return substitute_vars(result, current_key, cycle_map, primary, fallback)


def resolve_all(
    raw: Mapping[str, str],
    fallback: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Resolve every value of ``raw`` against itself then ``fallback``."""
    return {
        key: substitute_vars(value, key, None, raw, fallback)
        for key, value in raw.items()
    }


__all__ = ["substitute_vars", "resolve_all", "DELIM_START", "DELIM_STOP"]
