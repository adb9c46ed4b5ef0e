"""Line-oriented ``key=value`` properties parsing (+ YAML alternative).

Properties syntax handled:
  - ``#`` / ``!`` comment lines, blank lines
  - ``key=value``, ``key:value`` and ``key value`` separators
  - trailing backslash continues the logical line (leading whitespace of
    the continuation is dropped)
  - escapes ``\\t \\n \\r \\f \\\\ \\uXXXX``; any other escaped char is
    taken literally (``\\=`` → ``=``)

Files ending ``.yaml`` / ``.yml`` are read with PyYAML instead; nested
mappings are flattened to dotted keys and scalars stringified.
"""
from __future__ import annotations

from pathlib import PurePath
from typing import Any, Dict, Iterable, Iterator

import yaml
from yaml import YAMLError

from launcher.exceptions import ConfigurationError

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_SEPARATORS = "=:"
_WHITESPACE = " \t\f"
YAML_SUFFIXES = (".yaml", ".yml")


def _logical_lines(lines: Iterable[str]) -> Iterator[str]:
    buf = ""
    continuing = False
    for raw in lines:
        line = raw.rstrip("\r\n")
        if continuing:
            line = line.lstrip(_WHITESPACE)
        else:
            stripped = line.lstrip(_WHITESPACE)
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped
        # odd number of trailing backslashes → continuation
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            buf += line[:-1]
            continuing = True
            continue
        buf += line
        continuing = False
        yield buf
        buf = ""
    if continuing and buf:
        yield buf


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != "\\" or i + 1 >= n:
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            code = text[i + 2:i + 6]
            try:
                if len(code) != 4:
                    raise ValueError(code)
                out.append(chr(int(code, 16)))
            except ValueError as e:
                raise ConfigurationError(
                    f"malformed \\uXXXX escape: \\u{code}"
                ) from e
            i += 6
            continue
        out.append(_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(_WHITESPACE)
    if rest[:1] and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return _unescape(key), _unescape(rest)


def parse_properties(text: str | Iterable[str]) -> Dict[str, str]:
    """Parse properties text into an insertion-ordered dict (last wins)."""
    lines = text.splitlines() if isinstance(text, str) else text
    props: Dict[str, str] = {}
    for logical in _logical_lines(lines):
        key, value = _split_key_value(logical)
        props[key] = value
    return props


def _flatten(data: Any, prefix: str, out: Dict[str, str]) -> None:
    if isinstance(data, dict):
        for k, v in data.items():
            key = f"{prefix}.{k}" if prefix else str(k)
            _flatten(v, key, out)
        return
    if isinstance(data, (list, tuple)):
        out[prefix] = " ".join(str(item) for item in data)
        return
    if isinstance(data, bool):
        out[prefix] = "true" if data else "false"
        return
    out[prefix] = "" if data is None else str(data)


def parse_yaml_properties(text: str) -> Dict[str, str]:
    """Load YAML text and flatten it to dotted string properties."""
    try:
        data = yaml.safe_load(text) or {}
    except YAMLError as e:
        raise ConfigurationError(f"invalid YAML properties: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("YAML properties root must be a mapping")
    out: Dict[str, str] = {}
    _flatten(data, "", out)
    return out


def parse_for_name(name: str, text: str) -> Dict[str, str]:
    """Pick the parser by file name suffix."""
    if PurePath(name).suffix.lower() in YAML_SUFFIXES:
        return parse_yaml_properties(text)
    return parse_properties(text)


__all__ = [
    "parse_properties",
    "parse_yaml_properties",
    "parse_for_name",
    "YAML_SUFFIXES",
]
