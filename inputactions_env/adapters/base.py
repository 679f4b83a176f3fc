"""Window manager adapter capability surface.

Every host integration presents the same surface to the engine: focus and
pointer-motion notifications, active window and window-at-point queries,
pointer state, and per-window property subscriptions. Handle identity,
subscription bookkeeping and pointer-motion detection live here so the
concrete adapters only translate host IPC.
"""

import asyncio
import inspect
import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import AdapterError
from ..models import PointerState, Rect, Window, WindowEvent, WindowId, WindowProperties

logger = logging.getLogger(__name__)

Callback = Callable[[], Any]
PropertyCallback = Callable[[Window, WindowEvent], Any]


@dataclass(frozen=True)
class SubscriptionToken:
    """Opaque handle returned by subscribe(), consumed by unsubscribe()."""
    window_id: WindowId
    event: WindowEvent
    serial: int


async def invoke(callback: Callable[..., Any], *args: Any) -> None:
    """Call a plain or coroutine callback and wait for it."""
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class WindowManagerAdapter(ABC):
    """Base class for host window manager integrations."""

    name = "base"

    def __init__(self, pointer_poll_interval: float = 0.1) -> None:
        """Initialize adapter bookkeeping.

        Args:
            pointer_poll_interval: Seconds between pointer position polls used
                to synthesize pointer-motion notifications
        """
        self.pointer_poll_interval = pointer_poll_interval
        self.connected = False
        self._windows: Dict[WindowId, Window] = {}
        self._subscriptions: Dict[SubscriptionToken, PropertyCallback] = {}
        self._focus_callbacks: List[Callback] = []
        self._pointer_callbacks: List[Callback] = []
        self._serial = itertools.count(1)
        self._last_pointer: Optional[Tuple[float, float]] = None
        self._pointer_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect to the host and start pointer-motion detection.

        Raises:
            AdapterError: If the host IPC is unreachable
        """
        await self._connect()
        self.connected = True
        self._pointer_task = asyncio.create_task(
            self._pointer_watch_loop(), name=f"{self.name}-pointer-watch"
        )
        logger.info(f"Connected {self.name} adapter")

    async def close(self) -> None:
        """Stop event delivery and release every subscription. Idempotent."""
        if self._pointer_task:
            self._pointer_task.cancel()
            try:
                await self._pointer_task
            except asyncio.CancelledError:
                pass
            self._pointer_task = None

        if self.connected:
            self.connected = False
            await self._close()
            logger.info(f"Closed {self.name} adapter")

        self._subscriptions.clear()
        self._focus_callbacks.clear()
        self._pointer_callbacks.clear()

    @abstractmethod
    async def _connect(self) -> None:
        ...

    @abstractmethod
    async def _close(self) -> None:
        ...

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @abstractmethod
    async def get_active_window(self) -> Optional[Window]:
        """Window holding input focus, or None."""

    @abstractmethod
    async def get_window_at(self, x: float, y: float) -> Optional[Window]:
        """Topmost mapped window on a visible workspace containing the point."""

    @abstractmethod
    async def query_pointer_position(self) -> Tuple[float, float]:
        """Global pointer coordinates."""

    @abstractmethod
    async def query_screens(self) -> List[Rect]:
        """Logical geometry of every active output."""

    async def get_pointer_state(self) -> PointerState:
        """Pointer position plus the output it is on.

        Falls back to the first output when none contains the pointer.
        """
        x, y = await self.query_pointer_position()
        screens = await self.query_screens()
        screen = next((s for s in screens if s.contains(x, y)), screens[0] if screens else None)
        return PointerState(x=x, y=y, screen=screen)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def on_focus_changed(self, callback: Callback) -> None:
        self._focus_callbacks.append(callback)

    def on_pointer_moved(self, callback: Callback) -> None:
        self._pointer_callbacks.append(callback)

    def subscribe(self, window: Window, event: WindowEvent, callback: PropertyCallback) -> SubscriptionToken:
        """Register a property-change callback for one window.

        Returns:
            Token to pass to unsubscribe()
        """
        token = SubscriptionToken(window.id, event, next(self._serial))
        self._subscriptions[token] = callback
        logger.debug(f"Subscribed {event.value} on window {window.id}")
        return token

    def unsubscribe(self, token: SubscriptionToken) -> None:
        """Remove a subscription. Unknown or released tokens are ignored."""
        if self._subscriptions.pop(token, None) is not None:
            logger.debug(f"Unsubscribed {token.event.value} on window {token.window_id}")

    def subscription_count(self, window: Optional[Window] = None) -> int:
        if window is None:
            return len(self._subscriptions)
        return sum(1 for token in self._subscriptions if token.window_id == window.id)

    def subscribed_window_ids(self) -> List[WindowId]:
        return list(dict.fromkeys(token.window_id for token in self._subscriptions))

    # ------------------------------------------------------------------
    # Helpers for concrete adapters
    # ------------------------------------------------------------------

    def _window_for(self, window_id: WindowId, properties: WindowProperties) -> Tuple[Window, List[WindowEvent]]:
        """Get or create the handle for a host window and refresh it.

        Returns:
            The identity-stable handle and the property events the refresh implies
        """
        window = self._windows.get(window_id)
        if window is None:
            window = Window(window_id, properties)
            self._windows[window_id] = window
            return window, []
        return window, window.update(properties)

    async def _notify_focus_changed(self) -> None:
        for callback in list(self._focus_callbacks):
            await self._run_callback(callback)

    def _notify_pointer_moved(self) -> None:
        for callback in list(self._pointer_callbacks):
            callback()

    async def _dispatch_property_events(self, window: Window, events: List[WindowEvent]) -> None:
        for event in events:
            for token, callback in list(self._subscriptions.items()):
                if token.window_id == window.id and token.event is event and token in self._subscriptions:
                    await self._run_callback(callback, window, event)

    async def _handle_window_closed(self, window_id: WindowId) -> None:
        """Mark a handle dead, notify CLOSED subscribers and drop leftovers."""
        window = self._windows.pop(window_id, None)
        if window is None:
            return
        window.mark_closed()
        await self._dispatch_property_events(window, [WindowEvent.CLOSED])
        for token in [t for t in self._subscriptions if t.window_id == window_id]:
            self.unsubscribe(token)

    async def _run_callback(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            await invoke(callback, *args)
        except AdapterError as e:
            logger.warning(f"{self.name} event handler skipped: {e}")
        except Exception as e:
            logger.error(f"{self.name} event handler failed: {e}", exc_info=True)

    async def _pointer_watch_loop(self) -> None:
        """Poll the pointer and notify only when it actually moved."""
        while True:
            await asyncio.sleep(self.pointer_poll_interval)
            try:
                position = await self.query_pointer_position()
            except AdapterError as e:
                logger.debug(f"Pointer poll failed: {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected pointer poll error: {e}", exc_info=True)
                continue
            if position != self._last_pointer:
                self._last_pointer = position
                self._notify_pointer_moved()
