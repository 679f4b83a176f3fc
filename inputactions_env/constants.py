"""Attribute keys, bus names and paths shared across the daemon.

Single source of truth for every published attribute name. Call sites build
key lists from these constants only, never from ad-hoc strings.
"""

from pathlib import Path
from typing import Final, Tuple


class ConfigPaths:
    """Configuration paths computed once at import time."""

    HOME: Final[Path] = Path.home()
    CONFIG_DIR: Final[Path] = HOME / ".config" / "inputactions"
    CONFIG_FILE: Final[Path] = CONFIG_DIR / "environment.json"


class BusNames:
    """Default D-Bus coordinates of the InputActions client."""

    SERVICE: Final[str] = "org.inputactions"
    PATH: Final[str] = "/"
    INTERFACE: Final[str] = "org.inputactions"
    STATE_METHOD: Final[str] = "environmentState"
    REQUEST_SIGNAL: Final[str] = "environmentStateRequested"


# Active window
ACTIVE_WINDOW_CLASS: Final[str] = "active_window_class"
ACTIVE_WINDOW_FULLSCREEN: Final[str] = "active_window_fullscreen"
ACTIVE_WINDOW_ID: Final[str] = "active_window_id"
ACTIVE_WINDOW_MAXIMIZED: Final[str] = "active_window_maximized"
ACTIVE_WINDOW_NAME: Final[str] = "active_window_name"
ACTIVE_WINDOW_PID: Final[str] = "active_window_pid"
ACTIVE_WINDOW_TITLE: Final[str] = "active_window_title"

# Pointer
POINTER_POSITION_GLOBAL: Final[str] = "pointer_position_global"
POINTER_POSITION_SCREEN_PERCENTAGE: Final[str] = "pointer_position_screen_percentage"

# Window under pointer
WINDOW_UNDER_POINTER_CLASS: Final[str] = "window_under_pointer_class"
WINDOW_UNDER_POINTER_FULLSCREEN: Final[str] = "window_under_pointer_fullscreen"
WINDOW_UNDER_POINTER_GEOMETRY: Final[str] = "window_under_pointer_geometry"
WINDOW_UNDER_POINTER_ID: Final[str] = "window_under_pointer_id"
WINDOW_UNDER_POINTER_MAXIMIZED: Final[str] = "window_under_pointer_maximized"
WINDOW_UNDER_POINTER_NAME: Final[str] = "window_under_pointer_name"
WINDOW_UNDER_POINTER_PID: Final[str] = "window_under_pointer_pid"
WINDOW_UNDER_POINTER_TITLE: Final[str] = "window_under_pointer_title"

ACTIVE_WINDOW_KEYS: Final[Tuple[str, ...]] = (
    ACTIVE_WINDOW_CLASS,
    ACTIVE_WINDOW_FULLSCREEN,
    ACTIVE_WINDOW_ID,
    ACTIVE_WINDOW_MAXIMIZED,
    ACTIVE_WINDOW_NAME,
    ACTIVE_WINDOW_PID,
    ACTIVE_WINDOW_TITLE,
)

WINDOW_UNDER_POINTER_KEYS: Final[Tuple[str, ...]] = (
    WINDOW_UNDER_POINTER_CLASS,
    WINDOW_UNDER_POINTER_FULLSCREEN,
    WINDOW_UNDER_POINTER_GEOMETRY,
    WINDOW_UNDER_POINTER_ID,
    WINDOW_UNDER_POINTER_MAXIMIZED,
    WINDOW_UNDER_POINTER_NAME,
    WINDOW_UNDER_POINTER_PID,
    WINDOW_UNDER_POINTER_TITLE,
)

# Published on every dirty tick, whether or not the hovered window changed
POINTER_TICK_KEYS: Final[Tuple[str, ...]] = (
    POINTER_POSITION_GLOBAL,
    POINTER_POSITION_SCREEN_PERCENTAGE,
    WINDOW_UNDER_POINTER_GEOMETRY,
)

POINTER_KEYS: Final[Tuple[str, ...]] = (
    POINTER_POSITION_GLOBAL,
    POINTER_POSITION_SCREEN_PERCENTAGE,
)

DEFAULT_TICK_INTERVAL_MS: Final[int] = 100
