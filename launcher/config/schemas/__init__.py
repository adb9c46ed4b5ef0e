"""Typed views over the string configuration set.

The configuration set itself stays a plain ``dict[str, str]`` (it is
handed to the runtime factory as is); these models only read from it.
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from launcher.config import keys
from launcher.exceptions import ConfigurationError
from .deploy import DeploySettings
from .observability import LoggingConfig


class LauncherSettings(BaseModel):
    deploy: DeploySettings = DeploySettings()
    logging: LoggingConfig = LoggingConfig()
    shutdown_hook: bool = True
    storage: str | None = None
    runtime_factory: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("shutdown_hook", mode="before")
    @classmethod
    def _hook_enabled(cls, v: Any) -> bool:  # noqa: D401
        # enabled unless explicitly "false"
        if v is None or isinstance(v, bool):
            return v is None or v
        return str(v).strip().lower() != "false"

    @classmethod
    def from_configuration(cls, cfg: Mapping[str, str]) -> "LauncherSettings":
        logging_raw = {
            "level": (cfg.get(keys.LOG_LEVEL) or "info").strip().lower(),
            "format": (cfg.get(keys.LOG_FORMAT) or "text").strip().lower(),
        }
        try:
            return cls(
                deploy=DeploySettings.from_configuration(cfg),
                logging=LoggingConfig.model_validate(logging_raw),
                shutdown_hook=cfg.get(keys.SHUTDOWN_HOOK),
                storage=cfg.get(keys.RUNTIME_STORAGE),
                runtime_factory=cfg.get(keys.RUNTIME_FACTORY),
            )
        except Exception as e:  # noqa: BLE001
            raise ConfigurationError(
                f"Validation failed for launcher settings: {e}"
            ) from e


__all__ = ["LauncherSettings", "DeploySettings", "LoggingConfig"]
