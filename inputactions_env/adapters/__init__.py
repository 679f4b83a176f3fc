"""Window manager adapters.

Each adapter translates one host's IPC into the common WindowManagerAdapter
surface consumed by the engine.
"""

import logging
import os
from typing import Optional

from ..config import DaemonConfig
from ..errors import UnknownAdapterError
from .base import SubscriptionToken, WindowManagerAdapter

logger = logging.getLogger(__name__)

__all__ = ["SubscriptionToken", "WindowManagerAdapter", "create_adapter", "detect_adapter"]


def detect_adapter() -> str:
    """Pick an adapter name from the session environment.

    Raises:
        UnknownAdapterError: If no supported window manager is detected
    """
    if os.environ.get("HYPRLAND_INSTANCE_SIGNATURE"):
        return "hyprland"
    if os.environ.get("SWAYSOCK") or os.environ.get("I3SOCK") or os.environ.get("DISPLAY"):
        return "i3"
    raise UnknownAdapterError("auto")


def create_adapter(name: str, config: Optional[DaemonConfig] = None) -> WindowManagerAdapter:
    """Instantiate the adapter for a window manager.

    Args:
        name: "i3", "hyprland" or "auto"
        config: Daemon configuration (defaults when omitted)

    Returns:
        Unconnected adapter
    """
    config = config or DaemonConfig()
    if name == "auto":
        name = detect_adapter()
        logger.info(f"Detected window manager adapter: {name}")

    # Imported lazily so one host's IPC library is not required by the other
    if name == "i3":
        from .i3 import I3Adapter
        return I3Adapter(pointer_poll_interval=config.pointer_poll_interval)
    if name == "hyprland":
        from .hyprland import HyprlandAdapter
        return HyprlandAdapter(pointer_poll_interval=config.pointer_poll_interval)

    raise UnknownAdapterError(name)
