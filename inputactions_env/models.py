"""Data models for tracked environment state.

Window handles, pointer state and the property-change vocabulary shared by
the adapters and the engine.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import List, Optional, Tuple, Union

WindowId = Union[int, str]


class WindowEvent(Enum):
    """Per-window property notifications an adapter can deliver."""
    TITLE = "title"
    CLASS = "class"
    MAXIMIZED_HORIZONTALLY = "maximized_horizontally"
    MAXIMIZED_VERTICALLY = "maximized_vertically"
    FULLSCREEN = "fullscreen"
    CLOSED = "closed"


class Role(Enum):
    """Roles a window can occupy in the tracked state."""
    ACTIVE = "active"
    UNDER_POINTER = "under_pointer"


@dataclass(frozen=True)
class Rect:
    """Frame or output geometry in global compositor coordinates."""
    x: float
    y: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        """True if the point lies within the rectangle, edges included."""
        return (
            self.x <= x <= self.x + self.width
            and self.y <= y <= self.y + self.height
        )

    def as_list(self) -> List[float]:
        return [self.x, self.y, self.width, self.height]


@dataclass(frozen=True)
class WindowProperties:
    """Snapshot of the attributes readable through a window handle."""
    resource_class: Optional[str] = None
    resource_name: Optional[str] = None
    title: Optional[str] = None
    pid: Optional[int] = None
    maximized_horizontally: bool = False
    maximized_vertically: bool = False
    fullscreen: bool = False
    geometry: Optional[Rect] = None


# Which notification fires when a snapshot field changes
_FIELD_EVENTS = {
    "title": WindowEvent.TITLE,
    "resource_class": WindowEvent.CLASS,
    "resource_name": WindowEvent.CLASS,
    "maximized_horizontally": WindowEvent.MAXIMIZED_HORIZONTALLY,
    "maximized_vertically": WindowEvent.MAXIMIZED_VERTICALLY,
    "fullscreen": WindowEvent.FULLSCREEN,
}


class Window:
    """Identity-stable handle for one host window.

    Adapters keep exactly one handle per host window id and refresh it in
    place, so role comparisons use ``is``. The engine only holds references;
    it never creates or destroys windows.
    """

    def __init__(self, window_id: WindowId, properties: Optional[WindowProperties] = None):
        self.id = window_id
        self.properties = properties or WindowProperties()
        self.alive = True

    def __repr__(self) -> str:
        state = "" if self.alive else " dead"
        return f"<Window {self.id} {self.properties.resource_class!r}{state}>"

    @property
    def resource_class(self) -> Optional[str]:
        return self.properties.resource_class

    @property
    def resource_name(self) -> Optional[str]:
        return self.properties.resource_name

    @property
    def title(self) -> Optional[str]:
        return self.properties.title

    @property
    def pid(self) -> Optional[int]:
        return self.properties.pid

    @property
    def maximized(self) -> bool:
        """Maximized on both axes."""
        return self.properties.maximized_horizontally and self.properties.maximized_vertically

    @property
    def fullscreen(self) -> bool:
        return self.properties.fullscreen

    @property
    def geometry(self) -> Optional[Rect]:
        return self.properties.geometry

    def update(self, properties: WindowProperties) -> List[WindowEvent]:
        """Replace the snapshot and report which notifications it implies.

        Args:
            properties: Freshly read window properties

        Returns:
            Property events in declaration order, without duplicates
        """
        changed: List[WindowEvent] = []
        for f in fields(WindowProperties):
            event = _FIELD_EVENTS.get(f.name)
            if event is None or event in changed:
                continue
            if getattr(self.properties, f.name) != getattr(properties, f.name):
                changed.append(event)
        self.properties = properties
        return changed

    def mark_closed(self) -> None:
        self.alive = False


@dataclass
class PointerState:
    """Global pointer position and the geometry of the output under it."""
    x: float = 0.0
    y: float = 0.0
    screen: Optional[Rect] = None

    @property
    def global_position(self) -> List[float]:
        return [self.x, self.y]

    @property
    def screen_percentage(self) -> List[float]:
        """Position normalized to the current output, each axis in [0, 1]."""
        if self.screen is None or self.screen.width <= 0 or self.screen.height <= 0:
            return [0.0, 0.0]
        px = (self.x - self.screen.x) / self.screen.width
        py = (self.y - self.screen.y) / self.screen.height
        return [min(max(px, 0.0), 1.0), min(max(py, 0.0), 1.0)]


@dataclass
class TrackedState:
    """The engine-wide tracked identities.

    Exactly one instance exists per engine; it lives from enable to disable.
    """
    active_window: Optional[Window] = None
    window_under_pointer: Optional[Window] = None
    pointer_dirty: bool = False
    pointer: PointerState = field(default_factory=PointerState)

    def occupant(self, role: Role) -> Optional[Window]:
        if role is Role.ACTIVE:
            return self.active_window
        return self.window_under_pointer

    def roles_of(self, window: Window) -> Tuple[Role, ...]:
        return tuple(role for role in Role if self.occupant(role) is window)
