"""In-memory window manager adapter for testing without a compositor."""

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from inputactions_env.adapters.base import PropertyCallback, SubscriptionToken, WindowManagerAdapter
from inputactions_env.errors import AdapterError, ErrorCode
from inputactions_env.models import Rect, Window, WindowEvent, WindowId, WindowProperties

SCREEN = Rect(0, 0, 1920, 1080)


class FakeAdapter(WindowManagerAdapter):
    """Adapter backed by dictionaries the test manipulates directly.

    Host windows live in ``host``; ``stack`` lists ids topmost first. Queries
    refresh handles the way real adapters do, so property diffs observed
    during a query are dispatched to subscribers.
    """

    name = "fake"

    def __init__(self) -> None:
        # Pointer motion is driven by move_pointer(), not by polling
        super().__init__(pointer_poll_interval=3600)
        self.host: Dict[WindowId, WindowProperties] = {}
        self.stack: List[WindowId] = []
        self.active_id: Optional[WindowId] = None
        self.pointer: Tuple[float, float] = (0.0, 0.0)
        self.screens: List[Rect] = [SCREEN]
        self.fail_connect = False
        self.fail_queries = False
        self.connect_calls = 0
        self.close_calls = 0
        self.window_at_calls = 0
        # ("subscribe" | "unsubscribe", window id) in call order
        self.subscription_log: List[Tuple[str, WindowId]] = []

    async def _connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise AdapterError("connect", "compositor not running", ErrorCode.ADAPTER_CONNECT_FAILED)

    async def _close(self) -> None:
        self.close_calls += 1

    def subscribe(self, window: Window, event: WindowEvent, callback: PropertyCallback) -> SubscriptionToken:
        self.subscription_log.append(("subscribe", window.id))
        return super().subscribe(window, event, callback)

    def unsubscribe(self, token: SubscriptionToken) -> None:
        self.subscription_log.append(("unsubscribe", token.window_id))
        super().unsubscribe(token)

    def _check(self, operation: str) -> None:
        if self.fail_queries:
            raise AdapterError(operation, "simulated failure")

    async def _handle(self, window_id: WindowId) -> Window:
        window, events = self._window_for(window_id, self.host[window_id])
        if events:
            await self._dispatch_property_events(window, events)
        return window

    async def get_active_window(self) -> Optional[Window]:
        self._check("get_active_window")
        if self.active_id is None:
            return None
        return await self._handle(self.active_id)

    async def get_window_at(self, x: float, y: float) -> Optional[Window]:
        self._check("get_window_at")
        self.window_at_calls += 1
        for window_id in self.stack:
            geometry = self.host[window_id].geometry
            if geometry is not None and geometry.contains(x, y):
                return await self._handle(window_id)
        return None

    async def query_pointer_position(self) -> Tuple[float, float]:
        self._check("query_pointer_position")
        return self.pointer

    async def query_screens(self) -> List[Rect]:
        self._check("query_screens")
        return list(self.screens)

    # ------------------------------------------------------------------
    # Host simulation
    # ------------------------------------------------------------------

    def add_window(self, window_id: WindowId, **properties) -> None:
        """Map a window on top of the stack."""
        properties.setdefault("geometry", Rect(0, 0, 800, 600))
        self.host[window_id] = WindowProperties(**properties)
        self.stack.insert(0, window_id)

    def handle(self, window_id: WindowId) -> Optional[Window]:
        return self._windows.get(window_id)

    async def focus(self, window_id: Optional[WindowId]) -> None:
        self.active_id = window_id
        await self._notify_focus_changed()

    def move_pointer(self, x: float, y: float) -> None:
        self.pointer = (x, y)
        self._notify_pointer_moved()

    async def change_window(self, window_id: WindowId, **changes) -> None:
        """Mutate a host window and deliver the resulting property events."""
        self.host[window_id] = replace(self.host[window_id], **changes)
        if window_id in self._windows:
            await self._handle(window_id)

    async def close_window(self, window_id: WindowId) -> None:
        self.host.pop(window_id, None)
        if window_id in self.stack:
            self.stack.remove(window_id)
        if self.active_id == window_id:
            self.active_id = None
        await self._handle_window_closed(window_id)
