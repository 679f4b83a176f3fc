"""Environment engine.

Wires the adapter, tracker, sampler, registry, publisher and bus together
and owns the enable/disable lifecycle and the periodic tick.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from .adapters.base import WindowManagerAdapter
from .config import DaemonConfig
from .errors import EngineSetupError, EnvironmentDaemonError
from .models import TrackedState
from .services import AttributeRegistry, PointerSampler, SnapshotPublisher, StateTracker
from .services.pointer_sampler import resolve_window_under_pointer

logger = logging.getLogger(__name__)


class Bus(Protocol):
    """What the engine needs from the bus responder."""

    failure_count: int

    def connect(self) -> None:
        ...

    def subscribe_requests(self, callback) -> None:
        ...

    def emit_state(self, payload: str) -> None:
        ...

    def close(self) -> None:
        ...


class EnvironmentEngine:
    """Tracks window manager state and publishes it on change and on request."""

    def __init__(self, adapter: WindowManagerAdapter, bus: Bus, config: Optional[DaemonConfig] = None) -> None:
        self.adapter = adapter
        self.bus = bus
        self.config = config or DaemonConfig()

        self.state = TrackedState()
        self.registry = AttributeRegistry(self.state)
        self.publisher = SnapshotPublisher(self.registry, self.state, adapter, bus)
        self.tracker = StateTracker(
            adapter,
            self.state,
            self.publisher.publish,
            track_active=self.config.track_active_window_properties,
        )
        self.sampler = PointerSampler(adapter, self.state, self.tracker, self.publisher.publish)

        self.enabled = False
        self.tick_count = 0
        self._tick_task: Optional[asyncio.Task] = None
        self._request_tasks: set = set()

    async def enable(self) -> None:
        """Start tracking and publish the initial snapshot.

        Raises:
            EngineSetupError: If the bus, adapter or tick cannot be set up;
                anything already started is torn down first
        """
        if self.enabled:
            return

        step = "bus connect"
        try:
            self.bus.connect()
            step = "bus subscribe"
            self.bus.subscribe_requests(self._on_request_signal)
            step = "adapter connect"
            await self.adapter.connect()
            step = "adapter callbacks"
            self.adapter.on_focus_changed(self.tracker.on_focus_changed)
            self.adapter.on_pointer_moved(self.sampler.on_pointer_moved)
            step = "tick timer"
            self._tick_task = asyncio.create_task(self._tick_loop(), name="environment-tick")
        except Exception as e:
            logger.error(f"Engine setup failed during {step}: {e}")
            await self._teardown()
            raise EngineSetupError(step, e) from e

        self.enabled = True
        logger.info(f"Environment engine enabled ({self.adapter.name} adapter)")

        await self.tracker.on_focus_changed()
        self.sampler.on_pointer_moved()
        await self.on_refresh_requested([])

    async def disable(self) -> None:
        """Stop every subscription, the tick and the adapter. Idempotent."""
        was_enabled = self.enabled
        self.enabled = False
        await self._teardown()
        if was_enabled:
            logger.info("Environment engine disabled")

    async def _teardown(self) -> None:
        self.publisher.close()
        self.bus.close()
        self.tracker.release_all()

        if self._tick_task is not None:
            self._tick_task.cancel()
            try:
                await self._tick_task
            except asyncio.CancelledError:
                pass
            self._tick_task = None

        for task in list(self._request_tasks):
            task.cancel()
        if self._request_tasks:
            await asyncio.gather(*self._request_tasks, return_exceptions=True)

        await self.adapter.close()

    async def on_refresh_requested(self, keys: Iterable[str]) -> bool:
        """Publish the requested keys, or everything for an empty list."""
        return await self.publisher.publish(list(keys))

    def _on_request_signal(self, keys: List[str]) -> None:
        task = asyncio.get_running_loop().create_task(self._handle_request(keys))
        self._request_tasks.add(task)
        task.add_done_callback(self._request_tasks.discard)

    async def _handle_request(self, keys: List[str]) -> None:
        # Requested keys come from another process, so unknown ones are logged here
        try:
            await self.on_refresh_requested(keys)
        except EnvironmentDaemonError as e:
            logger.warning(f"Refresh request rejected: {e}")

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.tick_interval)
            self.tick_count += 1
            try:
                await self.sampler.on_tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Tick failed: {e}", exc_info=True)

    def stats(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "ticks": self.tick_count,
            "resolutions": self.sampler.resolution_count,
            "publishes": self.publisher.publish_count,
            "bus_failures": getattr(self.bus, "failure_count", 0),
            "listened_windows": len(self.tracker.listeners),
            "subscriptions": self.adapter.subscription_count(),
        }


async def capture_snapshot(adapter: WindowManagerAdapter) -> Dict[str, Any]:
    """Read one full snapshot from a connected adapter without any bus."""
    state = TrackedState()
    registry = AttributeRegistry(state)
    state.active_window = await adapter.get_active_window()
    state.window_under_pointer = await resolve_window_under_pointer(adapter, state)
    return registry.snapshot([])
