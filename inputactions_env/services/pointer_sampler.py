"""Pointer sampler.

Collapses any number of pointer-motion notifications between two ticks into
at most one window resolution and one publish per tick.
"""

import logging
from typing import Optional

from ..adapters.base import WindowManagerAdapter
from ..errors import AdapterError
from ..models import TrackedState, Window
from .state_tracker import PublishCallback, StateTracker

logger = logging.getLogger(__name__)


async def resolve_window_under_pointer(adapter: WindowManagerAdapter, state: TrackedState) -> Optional[Window]:
    """Refresh the pointer state and find the window under it.

    A dead window, or one whose frame no longer contains the pointer, counts
    as no window.

    Raises:
        AdapterError: If the host cannot be queried
    """
    pointer = await adapter.get_pointer_state()
    state.pointer = pointer
    window = await adapter.get_window_at(pointer.x, pointer.y)
    if window is None:
        return None
    if not window.alive or window.geometry is None or not window.geometry.contains(pointer.x, pointer.y):
        logger.debug(f"Discarding stale pointer hit {window!r}")
        return None
    return window


class PointerSampler:
    """Debounces pointer motion into per-tick window resolution."""

    def __init__(
        self,
        adapter: WindowManagerAdapter,
        state: TrackedState,
        tracker: StateTracker,
        publish: PublishCallback,
    ) -> None:
        self.adapter = adapter
        self.state = state
        self.tracker = tracker
        self.publish = publish
        self.resolution_count = 0

    def on_pointer_moved(self) -> None:
        """Mark the pointer dirty. Does no other work."""
        self.state.pointer_dirty = True

    async def on_tick(self) -> bool:
        """Resolve and publish if the pointer moved since the last tick.

        Returns:
            True if a resolution happened
        """
        if not self.state.pointer_dirty:
            return False
        self.state.pointer_dirty = False

        try:
            window = await resolve_window_under_pointer(self.adapter, self.state)
        except AdapterError as e:
            logger.warning(f"Pointer tick skipped: {e}")
            return False

        self.resolution_count += 1
        keys = self.tracker.on_pointer_resolved(window)
        await self.publish(keys, refresh_pointer=False)
        return True
