"""Attribute registry.

Ordered, immutable table mapping every published attribute name to a
zero-argument accessor over the tracked state. Used both for full refreshes
and for targeted publishes.
"""

import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from .. import constants as c
from ..errors import UnknownAttributeError
from ..models import TrackedState, Window

logger = logging.getLogger(__name__)

Accessor = Callable[[], Any]
Reader = Callable[[Window], Any]


def _geometry(window: Window) -> Optional[list]:
    return window.geometry.as_list() if window.geometry is not None else None


# (key, reader, value when the role is empty)
_ACTIVE_WINDOW_READERS: Tuple[Tuple[str, Reader, Any], ...] = (
    (c.ACTIVE_WINDOW_CLASS, lambda w: w.resource_class, None),
    (c.ACTIVE_WINDOW_FULLSCREEN, lambda w: w.fullscreen, None),
    (c.ACTIVE_WINDOW_ID, lambda w: w.id, None),
    (c.ACTIVE_WINDOW_MAXIMIZED, lambda w: w.maximized, False),
    (c.ACTIVE_WINDOW_NAME, lambda w: w.resource_name, None),
    (c.ACTIVE_WINDOW_PID, lambda w: w.pid, None),
    (c.ACTIVE_WINDOW_TITLE, lambda w: w.title, None),
)

_WINDOW_UNDER_POINTER_READERS: Tuple[Tuple[str, Reader, Any], ...] = (
    (c.WINDOW_UNDER_POINTER_CLASS, lambda w: w.resource_class, None),
    (c.WINDOW_UNDER_POINTER_FULLSCREEN, lambda w: w.fullscreen, None),
    (c.WINDOW_UNDER_POINTER_GEOMETRY, _geometry, None),
    (c.WINDOW_UNDER_POINTER_ID, lambda w: w.id, None),
    (c.WINDOW_UNDER_POINTER_MAXIMIZED, lambda w: w.maximized, False),
    (c.WINDOW_UNDER_POINTER_NAME, lambda w: w.resource_name, None),
    (c.WINDOW_UNDER_POINTER_PID, lambda w: w.pid, None),
    (c.WINDOW_UNDER_POINTER_TITLE, lambda w: w.title, None),
)


class AttributeRegistry:
    """Name to accessor table built once per engine.

    Absent windows read as None, except the maximized flags which read as
    False. Accessors never raise for a missing window.
    """

    def __init__(self, state: TrackedState) -> None:
        self.state = state
        accessors: Dict[str, Accessor] = {}

        for key, reader, default in _ACTIVE_WINDOW_READERS:
            accessors[key] = self._window_accessor(lambda: self.state.active_window, reader, default)
        for key, reader, default in _WINDOW_UNDER_POINTER_READERS:
            accessors[key] = self._window_accessor(lambda: self.state.window_under_pointer, reader, default)

        accessors[c.POINTER_POSITION_GLOBAL] = lambda: self.state.pointer.global_position
        accessors[c.POINTER_POSITION_SCREEN_PERCENTAGE] = lambda: self.state.pointer.screen_percentage

        self._accessors: Mapping[str, Accessor] = MappingProxyType(dict(sorted(accessors.items())))
        logger.debug(f"Attribute registry built with {len(self._accessors)} keys")

    @staticmethod
    def _window_accessor(
        occupant: Callable[[], Optional[Window]],
        reader: Reader,
        default: Any,
    ) -> Accessor:
        def accessor() -> Any:
            window = occupant()
            return reader(window) if window is not None else default
        return accessor

    def __contains__(self, key: object) -> bool:
        return key in self._accessors

    def __len__(self) -> int:
        return len(self._accessors)

    def keys(self) -> Tuple[str, ...]:
        """Every registered key in publish order."""
        return tuple(self._accessors)

    def accessor(self, key: str) -> Accessor:
        """Look up the accessor for a key.

        Raises:
            UnknownAttributeError: If the key is not registered
        """
        try:
            return self._accessors[key]
        except KeyError:
            raise UnknownAttributeError(key) from None

    def snapshot(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Build an ordered snapshot; an empty key list means every key.

        Unknown keys raise before any accessor runs.
        """
        keys = list(dict.fromkeys(keys)) or list(self._accessors)
        accessors = [(key, self.accessor(key)) for key in keys]
        return {key: read() for key, read in accessors}
