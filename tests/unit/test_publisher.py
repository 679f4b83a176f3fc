"""Unit tests for snapshot serialization and delivery."""

import pytest

from inputactions_env import constants as c
from inputactions_env.errors import UnknownAttributeError
from inputactions_env.models import TrackedState
from inputactions_env.services.attribute_registry import AttributeRegistry
from inputactions_env.services.publisher import SnapshotPublisher


@pytest.fixture
def state():
    return TrackedState()


@pytest.fixture
def publisher(adapter, bus, state):
    return SnapshotPublisher(AttributeRegistry(state), state, adapter, bus)


@pytest.mark.asyncio
async def test_empty_keys_publish_everything(publisher, bus):
    assert await publisher.publish([])
    assert list(bus.last) == list(publisher.registry.keys())
    assert publisher.publish_count == 1


@pytest.mark.asyncio
async def test_requested_keys_only(publisher, bus):
    await publisher.publish([c.ACTIVE_WINDOW_TITLE])
    assert bus.last == {"active_window_title": None}


@pytest.mark.asyncio
async def test_pointer_keys_refresh_pointer_state(publisher, adapter, bus):
    adapter.pointer = (960, 270)
    await publisher.publish(c.POINTER_KEYS)
    assert bus.last == {
        "pointer_position_global": [960, 270],
        "pointer_position_screen_percentage": [0.5, 0.25],
    }


@pytest.mark.asyncio
async def test_pointer_refresh_can_be_skipped(publisher, adapter, bus):
    adapter.pointer = (960, 270)
    await publisher.publish(c.POINTER_KEYS, refresh_pointer=False)
    assert bus.last["pointer_position_global"] == [0.0, 0.0]


@pytest.mark.asyncio
async def test_pointer_failure_keeps_last_known_position(publisher, adapter, bus):
    adapter.fail_queries = True
    assert await publisher.publish(c.POINTER_KEYS)
    assert bus.last["pointer_position_global"] == [0.0, 0.0]


@pytest.mark.asyncio
async def test_unknown_key_raises_before_emitting(publisher, bus):
    with pytest.raises(UnknownAttributeError):
        await publisher.publish([c.ACTIVE_WINDOW_TITLE, "window_color"])
    assert bus.payloads == []


@pytest.mark.asyncio
async def test_closed_publisher_emits_nothing(publisher, bus):
    publisher.close()
    assert not await publisher.publish([])
    assert bus.payloads == []
