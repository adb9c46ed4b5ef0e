"""Configuration set assembly.

Precedence (last wins):
    config.properties values (placeholders resolved)
    → process settings under recognised prefixes (modlaunch.*, runtime.*)
    → explicit launch arguments (deploy directory, storage location)

A missing properties file is not an error: a warning is logged and the
configuration falls back to defaults (empty). A malformed location or an
unreadable file raises ConfigurationError.
"""
from __future__ import annotations

import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Dict, Mapping
from urllib.parse import urlsplit

from launcher.config import keys
from launcher.config.interpolation import resolve_all
from launcher.config.properties import parse_for_name
from launcher.config.settings import ProcessSettings
from launcher.events import emit, ConfigurationLoaded
from launcher.exceptions import ConfigurationError

logger = logging.getLogger("launcher.config")

_URL_SCHEMES = {"file", "http", "https"}


def _is_windows_drive(scheme: str) -> bool:
    return len(scheme) == 1 and scheme.isalpha()


def read_properties(location: str | Path, kind: str = "config") -> Dict[str, str] | None:
    """Read a properties file from a filesystem path or URL.

    Returns None when the file does not exist.
    """
    text_location = str(location)
    parts = urlsplit(text_location)
    scheme = parts.scheme.lower()
    if scheme and not _is_windows_drive(scheme):
        if scheme not in _URL_SCHEMES:
            raise ConfigurationError(
                f"Error loading {kind} properties from {text_location}: "
                f"unsupported URL scheme '{scheme}'"
            )
        if scheme == "file":
            return read_properties(
                urllib.request.url2pathname(parts.path), kind
            )
        try:
            with urllib.request.urlopen(text_location) as resp:  # noqa: S310
                text = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            if e.code == 404:
                logger.warning("No %s properties found at %s", kind, text_location)
                return None
            raise ConfigurationError(
                f"Error loading {kind} properties from {text_location}"
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Error loading {kind} properties from {text_location}"
            ) from e
        return parse_for_name(parts.path, text)

    path = Path(text_location)
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Error loading {kind} properties from {path}"
        ) from e
    return parse_for_name(path.name, text)


def load_configuration(
    raw: Mapping[str, str] | None,
    settings: ProcessSettings,
    deploy_dir: str | None = None,
    storage_dir: str | None = None,
    source: str = "defaults",
) -> Dict[str, str]:
    """Build the framework ConfigurationSet for one launch."""
    if raw is None:
        logger.warning("No %s found.", keys.CONFIG_PROPERTIES_FILE)
        raw = {}
        source = "defaults"
    configuration = resolve_all(raw, settings)

    copied = settings.copy_prefixed()
    configuration.update(copied)

    # explicit launch arguments beat anything from the file
    if deploy_dir is not None:
        configuration[keys.AUTO_DEPLOY_DIR] = deploy_dir
    if storage_dir is not None:
        configuration[keys.RUNTIME_STORAGE] = storage_dir

    emit(
        ConfigurationLoaded(
            source=source,
            keys=len(configuration),
            copied_settings=len(copied),
        )
    )
    return configuration


__all__ = ["read_properties", "load_configuration"]
