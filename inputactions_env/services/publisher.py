"""Snapshot publisher.

Builds ordered attribute snapshots from the registry, serializes them to a
JSON object and hands the payload to the bus. Delivery is fire-and-forget.
"""

import json
import logging
from typing import Iterable, Protocol

from ..constants import POINTER_KEYS
from ..errors import AdapterError
from ..models import TrackedState
from ..adapters.base import WindowManagerAdapter
from .attribute_registry import AttributeRegistry

logger = logging.getLogger(__name__)


class StateSink(Protocol):
    """Outbound half of the bus responder."""

    def emit_state(self, payload: str) -> None:
        ...


class SnapshotPublisher:
    """Serializes registry snapshots and emits them on the bus."""

    def __init__(
        self,
        registry: AttributeRegistry,
        state: TrackedState,
        adapter: WindowManagerAdapter,
        sink: StateSink,
    ) -> None:
        self.registry = registry
        self.state = state
        self.adapter = adapter
        self.sink = sink
        self.closed = False
        self.publish_count = 0

    def close(self) -> None:
        """Refuse every publish from now on, including ones already awaiting."""
        self.closed = True

    async def publish(self, keys: Iterable[str] = (), refresh_pointer: bool = True) -> bool:
        """Publish a snapshot of the given keys.

        Args:
            keys: Attribute names to include; empty means every registered key
            refresh_pointer: Re-read the pointer before building when pointer
                keys are requested (callers that just sampled it pass False)

        Returns:
            True if a payload was handed to the bus

        Raises:
            UnknownAttributeError: If any key is not registered
        """
        if self.closed:
            return False

        keys = list(keys) or list(self.registry.keys())
        for key in keys:
            self.registry.accessor(key)

        if refresh_pointer and any(key in POINTER_KEYS for key in keys):
            try:
                self.state.pointer = await self.adapter.get_pointer_state()
            except AdapterError as e:
                logger.debug(f"Using last known pointer position: {e}")

        # The pointer query may have yielded to a shutdown
        if self.closed:
            return False

        snapshot = self.registry.snapshot(keys)
        payload = json.dumps(snapshot)
        self.sink.emit_state(payload)
        self.publish_count += 1
        logger.debug(f"Published {len(snapshot)} attributes: {', '.join(snapshot)}")
        return True
