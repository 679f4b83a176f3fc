"""Configuration loader for the environment daemon.

Settings come from defaults, then ~/.config/inputactions/environment.json,
then environment variables. CLI flags are applied last by the daemon.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import BusNames, ConfigPaths, DEFAULT_TICK_INTERVAL_MS
from .errors import ConfigLoadError

logger = logging.getLogger(__name__)

ADAPTER_ENV_VAR = "INPUTACTIONS_ENV_ADAPTER"
LOG_LEVEL_ENV_VAR = "LOG_LEVEL"


class DaemonConfig(BaseModel):
    """Runtime settings for the engine, adapters and bus responder."""

    adapter: Literal["auto", "i3", "hyprland"] = Field(default="auto")
    tick_interval_ms: int = Field(default=DEFAULT_TICK_INTERVAL_MS)
    pointer_poll_interval_ms: int = Field(default=100)
    bus_dispatch_interval_ms: int = Field(default=100)
    bus_call_timeout_ms: int = Field(default=1000)
    bus_service: str = Field(default=BusNames.SERVICE)
    bus_path: str = Field(default=BusNames.PATH)
    bus_interface: str = Field(default=BusNames.INTERFACE)
    track_active_window_properties: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    @field_validator(
        "tick_interval_ms",
        "pointer_poll_interval_ms",
        "bus_dispatch_interval_ms",
        "bus_call_timeout_ms",
    )
    @classmethod
    def interval_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive number of milliseconds")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000

    @property
    def pointer_poll_interval(self) -> float:
        return self.pointer_poll_interval_ms / 1000

    @property
    def bus_dispatch_interval(self) -> float:
        return self.bus_dispatch_interval_ms / 1000


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if os.environ.get(ADAPTER_ENV_VAR):
        overrides["adapter"] = os.environ[ADAPTER_ENV_VAR]
    if os.environ.get(LOG_LEVEL_ENV_VAR):
        overrides["log_level"] = os.environ[LOG_LEVEL_ENV_VAR]
    return overrides


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> DaemonConfig:
    """Load daemon configuration.

    Args:
        config_file: JSON file to read (default: ~/.config/inputactions/environment.json)
        **overrides: Values that win over file and environment (CLI flags);
            None values are ignored

    Returns:
        Validated DaemonConfig

    Raises:
        ConfigLoadError: If the file exists but cannot be read or is invalid
    """
    path = config_file or ConfigPaths.CONFIG_FILE
    data: Dict[str, Any] = {}

    if path.exists():
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigLoadError(str(path), str(e)) from e
        if not isinstance(data, dict):
            raise ConfigLoadError(str(path), "top-level value must be an object")
        logger.debug(f"Loaded configuration from {path}")
    else:
        logger.debug(f"No configuration file at {path}, using defaults")

    data.update(_env_overrides())
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return DaemonConfig(**data)
    except ValidationError as e:
        raise ConfigLoadError(str(path), str(e)) from e
