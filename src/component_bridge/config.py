"""
Bridge configuration and the on-disk config used by the CLI.
"""

import json
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from component_bridge.saving import DEFAULT_SAVE_DELAY_S

CONFIG_FILE = Path.home() / ".component-bridge" / "config.json"
DEFAULT_PENDING_CALL_MAX_AGE_S = 600.0


class BridgeConfig(BaseModel):
    logging_enabled: bool = False
    accepts_themes: bool = True
    coalesced_saving: bool = True
    coalesced_saving_delay: float = Field(default=DEFAULT_SAVE_DELAY_S, ge=0)
    # None keeps unanswered calls until shutdown
    pending_call_max_age: Optional[float] = Field(default=DEFAULT_PENDING_CALL_MAX_AGE_S, gt=0)


def load_config(path: Path = CONFIG_FILE) -> dict[str, Any]:
    try:
        return json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def save_config(cfg: dict[str, Any], path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(cfg, indent=2))


def bridge_config_from(cfg: dict[str, Any]) -> BridgeConfig:
    """Build a BridgeConfig from the "bridge" section of a config dict."""
    return BridgeConfig.model_validate(cfg.get("bridge") or {})
