"""State tracker.

Holds the active window and window under pointer identities, detects role
transitions and owns the listener lifecycle that follows them.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .. import constants as c
from ..adapters.base import WindowManagerAdapter
from ..errors import AdapterError
from ..models import Role, TrackedState, Window, WindowEvent
from .listener_set import ListenerSet

logger = logging.getLogger(__name__)

PublishCallback = Callable[..., Awaitable[bool]]

# Both namespaces are republished together since the roles may coincide
PROPERTY_EVENT_KEYS: Dict[WindowEvent, Tuple[str, ...]] = {
    WindowEvent.TITLE: (c.ACTIVE_WINDOW_TITLE, c.WINDOW_UNDER_POINTER_TITLE),
    WindowEvent.CLASS: (
        c.ACTIVE_WINDOW_CLASS,
        c.ACTIVE_WINDOW_NAME,
        c.WINDOW_UNDER_POINTER_CLASS,
        c.WINDOW_UNDER_POINTER_NAME,
    ),
    WindowEvent.MAXIMIZED_HORIZONTALLY: (c.ACTIVE_WINDOW_MAXIMIZED, c.WINDOW_UNDER_POINTER_MAXIMIZED),
    WindowEvent.MAXIMIZED_VERTICALLY: (c.ACTIVE_WINDOW_MAXIMIZED, c.WINDOW_UNDER_POINTER_MAXIMIZED),
    WindowEvent.FULLSCREEN: (c.ACTIVE_WINDOW_FULLSCREEN, c.WINDOW_UNDER_POINTER_FULLSCREEN),
}

ROLE_KEYS: Dict[Role, Tuple[str, ...]] = {
    Role.ACTIVE: c.ACTIVE_WINDOW_KEYS,
    Role.UNDER_POINTER: c.WINDOW_UNDER_POINTER_KEYS,
}


class StateTracker:
    """Tracks role occupants and binds property listeners to them.

    The under-pointer role always holds listeners. The active role holds them
    only when track_active is set; otherwise focus changes never touch the
    listener set.
    """

    def __init__(
        self,
        adapter: WindowManagerAdapter,
        state: TrackedState,
        publish: PublishCallback,
        track_active: bool = False,
    ) -> None:
        self.adapter = adapter
        self.state = state
        self.publish = publish
        self.track_active = track_active
        self.listeners = ListenerSet(adapter, self._on_window_event)

    def _listening_roles(self, window: Window) -> List[Role]:
        return [
            role for role in self.state.roles_of(window)
            if role is Role.UNDER_POINTER or self.track_active
        ]

    def _rebind(self, previous: Optional[Window], current: Optional[Window]) -> None:
        """Release the previous occupant if it left every listening role, then acquire the new one."""
        if previous is not None and previous is not current and not self._listening_roles(previous):
            self.listeners.release(previous)
        if current is not None:
            self.listeners.acquire(current)

    async def on_focus_changed(self) -> None:
        """Re-read the active window and publish the full active_window_* set.

        Publishes even when the identity did not change; the host
        notification is the rate limiter.
        """
        try:
            window = await self.adapter.get_active_window()
        except AdapterError as e:
            logger.warning(f"Focus change skipped: {e}")
            return

        if window is not None and not window.alive:
            window = None

        previous = self.state.active_window
        if window is not previous:
            self.state.active_window = window
            logger.debug(f"Active window: {window!r}")
            if self.track_active:
                self._rebind(previous, window)

        await self.publish(c.ACTIVE_WINDOW_KEYS)

    def on_pointer_resolved(self, window: Optional[Window]) -> List[str]:
        """Apply a tick's resolution to the under-pointer role.

        Args:
            window: Window under the pointer, or None

        Returns:
            Keys to publish: the pointer tick keys, extended with both full
            window key sets when the occupant changed
        """
        keys = list(c.POINTER_TICK_KEYS)
        previous = self.state.window_under_pointer
        if window is previous:
            return keys

        self.state.window_under_pointer = window
        self._rebind(previous, window)
        logger.debug(f"Window under pointer: {window!r}")

        keys.extend(c.WINDOW_UNDER_POINTER_KEYS)
        keys.extend(c.ACTIVE_WINDOW_KEYS)
        return list(dict.fromkeys(keys))

    async def on_window_closed(self, window: Window) -> None:
        """Drop a closed window from every role it holds."""
        self.listeners.release(window)
        keys: List[str] = []
        if self.state.active_window is window:
            self.state.active_window = None
            keys.extend(ROLE_KEYS[Role.ACTIVE])
        if self.state.window_under_pointer is window:
            self.state.window_under_pointer = None
            # Whatever was beneath the closed window is resolved on the next tick
            self.state.pointer_dirty = True
            keys.extend(ROLE_KEYS[Role.UNDER_POINTER])
        if keys:
            logger.debug(f"Tracked window closed: {window!r}")
            await self.publish(keys)

    async def _on_window_event(self, window: Window, event: WindowEvent) -> None:
        if event is WindowEvent.CLOSED:
            await self.on_window_closed(window)
            return
        if not self.state.roles_of(window):
            return
        await self.publish(PROPERTY_EVENT_KEYS[event])

    def release_all(self) -> None:
        self.listeners.release_all()
