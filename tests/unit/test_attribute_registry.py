"""Unit tests for the attribute registry."""

import pytest

from inputactions_env import constants as c
from inputactions_env.errors import UnknownAttributeError
from inputactions_env.models import PointerState, Rect, TrackedState, Window, WindowProperties
from inputactions_env.services.attribute_registry import AttributeRegistry

ALL_KEYS = [
    "active_window_class",
    "active_window_fullscreen",
    "active_window_id",
    "active_window_maximized",
    "active_window_name",
    "active_window_pid",
    "active_window_title",
    "pointer_position_global",
    "pointer_position_screen_percentage",
    "window_under_pointer_class",
    "window_under_pointer_fullscreen",
    "window_under_pointer_geometry",
    "window_under_pointer_id",
    "window_under_pointer_maximized",
    "window_under_pointer_name",
    "window_under_pointer_pid",
    "window_under_pointer_title",
]


@pytest.fixture
def state():
    return TrackedState()


@pytest.fixture
def registry(state):
    return AttributeRegistry(state)


@pytest.fixture
def firefox():
    return Window(
        "0x55aa",
        WindowProperties(
            resource_class="Firefox",
            resource_name="Navigator",
            title="Example",
            pid=4242,
            maximized_horizontally=True,
            maximized_vertically=True,
            fullscreen=False,
            geometry=Rect(0, 30, 1920, 1050),
        ),
    )


def test_keys_are_complete_and_ordered(registry):
    assert list(registry.keys()) == ALL_KEYS
    assert len(registry) == len(ALL_KEYS)


def test_key_constants_are_registered(registry):
    for key in c.ACTIVE_WINDOW_KEYS + c.WINDOW_UNDER_POINTER_KEYS + c.POINTER_TICK_KEYS:
        assert key in registry


def test_absent_windows_read_as_null_except_maximized(registry):
    snapshot = registry.snapshot([])
    for key in ALL_KEYS:
        if key.startswith(("active_window_", "window_under_pointer_")):
            expected = False if key.endswith("_maximized") else None
            assert snapshot[key] is expected, key


def test_pointer_keys_are_always_populated(registry, state):
    state.pointer = PointerState(x=480, y=540, screen=Rect(0, 0, 1920, 1080))
    snapshot = registry.snapshot([c.POINTER_POSITION_GLOBAL, c.POINTER_POSITION_SCREEN_PERCENTAGE])
    assert snapshot == {
        "pointer_position_global": [480, 540],
        "pointer_position_screen_percentage": [0.25, 0.5],
    }


def test_active_window_accessors(registry, state, firefox):
    state.active_window = firefox
    snapshot = registry.snapshot(c.ACTIVE_WINDOW_KEYS)
    assert snapshot == {
        "active_window_class": "Firefox",
        "active_window_fullscreen": False,
        "active_window_id": "0x55aa",
        "active_window_maximized": True,
        "active_window_name": "Navigator",
        "active_window_pid": 4242,
        "active_window_title": "Example",
    }


def test_window_under_pointer_geometry(registry, state, firefox):
    state.window_under_pointer = firefox
    assert registry.accessor(c.WINDOW_UNDER_POINTER_GEOMETRY)() == [0, 30, 1920, 1050]


def test_accessors_read_state_at_call_time(registry, state, firefox):
    read_title = registry.accessor(c.WINDOW_UNDER_POINTER_TITLE)
    assert read_title() is None
    state.window_under_pointer = firefox
    assert read_title() == "Example"


def test_snapshot_preserves_requested_order(registry):
    keys = [c.WINDOW_UNDER_POINTER_TITLE, c.ACTIVE_WINDOW_CLASS]
    assert list(registry.snapshot(keys)) == keys


def test_unknown_key_fails_loudly(registry):
    with pytest.raises(UnknownAttributeError):
        registry.accessor("window_color")
    with pytest.raises(KeyError):
        registry.snapshot([c.ACTIVE_WINDOW_CLASS, "window_color"])
