"""Per-window property subscription bookkeeping.

Owns the map from tracked window to its adapter subscription tokens. Every
role transition and the engine shutdown walk this one map, so no callback
outlives the window's tracked role.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from ..adapters.base import SubscriptionToken, WindowManagerAdapter
from ..models import Window, WindowEvent

logger = logging.getLogger(__name__)

WindowEventHandler = Callable[[Window, WindowEvent], Awaitable[Any]]

LISTENED_EVENTS: Tuple[WindowEvent, ...] = (
    WindowEvent.TITLE,
    WindowEvent.CLASS,
    WindowEvent.MAXIMIZED_HORIZONTALLY,
    WindowEvent.MAXIMIZED_VERTICALLY,
    WindowEvent.FULLSCREEN,
    WindowEvent.CLOSED,
)


class ListenerSet:
    """Window to subscription token map with at most one token per (window, event)."""

    def __init__(self, adapter: WindowManagerAdapter, handler: WindowEventHandler) -> None:
        self.adapter = adapter
        self.handler = handler
        self._tokens: Dict[Window, List[SubscriptionToken]] = {}

    def __contains__(self, window: object) -> bool:
        return window in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def windows(self) -> List[Window]:
        return list(self._tokens)

    def tokens(self, window: Window) -> List[SubscriptionToken]:
        return list(self._tokens.get(window, []))

    def acquire(self, window: Window) -> bool:
        """Subscribe every listened event for a window.

        Returns:
            False if the window already holds subscriptions or is dead
        """
        if window in self._tokens or not window.alive:
            return False
        self._tokens[window] = [
            self.adapter.subscribe(window, event, self.handler) for event in LISTENED_EVENTS
        ]
        logger.debug(f"Acquired listeners for {window!r}")
        return True

    def release(self, window: Window) -> None:
        """Unsubscribe every token of a window. No-op when it holds none."""
        tokens = self._tokens.pop(window, None)
        if not tokens:
            return
        for token in tokens:
            self.adapter.unsubscribe(token)
        logger.debug(f"Released listeners for {window!r}")

    def release_all(self) -> None:
        for window in list(self._tokens):
            self.release(window)
