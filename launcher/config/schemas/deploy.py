"""Auto-deploy settings view over the configuration set."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, field_validator

from launcher.config import keys

logger = logging.getLogger("launcher.config")


class DeploySettings(BaseModel):
    directory: str | None = None
    action: str = ""
    tier: int | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("tier", mode="before")
    @classmethod
    def _tolerant_tier(cls, v: Any) -> int | None:  # noqa: D401
        # malformed tier keeps the runtime default
        if v is None or isinstance(v, int):
            return v
        try:
            return int(str(v).strip())
        except ValueError:
            logger.warning(
                "Ignoring malformed %s=%r; using default tier",
                keys.AUTO_DEPLOY_TIER,
                v,
            )
            return None

    @classmethod
    def from_configuration(cls, cfg: Mapping[str, str]) -> "DeploySettings":
        return cls(
            directory=cfg.get(keys.AUTO_DEPLOY_DIR),
            action=cfg.get(keys.AUTO_DEPLOY_ACTION) or "",
            tier=cfg.get(keys.AUTO_DEPLOY_TIER),
        )
