"""Engine services: attribute registry, listener set, state tracker, pointer sampler and publisher."""

from .attribute_registry import AttributeRegistry
from .listener_set import ListenerSet
from .pointer_sampler import PointerSampler
from .publisher import SnapshotPublisher
from .state_tracker import StateTracker

__all__ = [
    "AttributeRegistry",
    "ListenerSet",
    "PointerSampler",
    "SnapshotPublisher",
    "StateTracker",
]
