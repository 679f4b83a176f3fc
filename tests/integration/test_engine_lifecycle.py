"""Integration tests for engine enable/disable and bootstrap."""

import asyncio

import pytest

from inputactions_env import constants as c
from inputactions_env.config import DaemonConfig
from inputactions_env.engine import EnvironmentEngine, capture_snapshot
from inputactions_env.errors import EngineSetupError


@pytest.mark.asyncio
async def test_enable_bootstraps_focus_then_full_publish(engine, desktop, bus):
    desktop.active_id = 2

    await engine.enable()

    assert engine.enabled
    assert bus.connected
    assert desktop.connected
    assert [list(p) for p in bus.payloads] == [list(c.ACTIVE_WINDOW_KEYS), list(engine.registry.keys())]
    assert bus.last["active_window_class"] == "Editor"
    assert engine.state.pointer_dirty


@pytest.mark.asyncio
async def test_first_tick_resolves_pointer(engine, desktop, bus):
    desktop.pointer = (10, 10)
    await engine.enable()
    bus.clear()

    assert await engine.sampler.on_tick()

    assert engine.state.window_under_pointer is desktop.handle(1)
    assert bus.last["window_under_pointer_class"] == "Terminal"


@pytest.mark.asyncio
async def test_tick_task_runs_on_interval(adapter, bus):
    engine = EnvironmentEngine(adapter, bus, DaemonConfig(tick_interval_ms=10))
    await engine.enable()
    try:
        await asyncio.sleep(0.1)
        assert engine.tick_count >= 3
        assert engine.stats()["resolutions"] == 1
    finally:
        await engine.disable()


@pytest.mark.asyncio
async def test_disable_twice_leaves_no_subscriptions(engine, desktop, bus):
    desktop.pointer = (10, 10)
    await engine.enable()
    await engine.sampler.on_tick()
    assert desktop.subscription_count() > 0

    await engine.disable()
    await engine.disable()

    assert not engine.enabled
    assert desktop.subscription_count() == 0
    assert len(engine.tracker.listeners) == 0
    assert bus.callback is None
    assert desktop.close_calls == 1
    assert engine._tick_task is None


@pytest.mark.asyncio
async def test_no_publish_after_disable(engine, desktop, bus):
    await engine.enable()
    await engine.disable()
    bus.clear()

    assert not await engine.on_refresh_requested([])
    engine.sampler.on_pointer_moved()
    await engine.sampler.on_tick()

    assert bus.payloads == []


@pytest.mark.asyncio
async def test_bus_failure_fails_enable(engine, desktop, bus):
    bus.fail_connect = True

    with pytest.raises(EngineSetupError) as exc_info:
        await engine.enable()

    assert exc_info.value.context["step"] == "bus connect"
    assert not engine.enabled
    assert desktop.connect_calls == 0


@pytest.mark.asyncio
async def test_subscribe_failure_fails_enable(engine, bus):
    bus.fail_subscribe = True

    with pytest.raises(EngineSetupError):
        await engine.enable()

    assert bus.closed
    assert bus.payloads == []


@pytest.mark.asyncio
async def test_adapter_failure_tears_down_bus(engine, desktop, bus):
    desktop.fail_connect = True

    with pytest.raises(EngineSetupError) as exc_info:
        await engine.enable()

    assert exc_info.value.context["step"] == "adapter connect"
    assert bus.closed
    assert bus.callback is None
    assert engine._tick_task is None


@pytest.mark.asyncio
async def test_inbound_request_publishes(engine, desktop, bus):
    await engine.enable()
    bus.clear()

    bus.request([c.POINTER_POSITION_GLOBAL])
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert bus.payloads == [{"pointer_position_global": [0.0, 0.0]}]


@pytest.mark.asyncio
async def test_inbound_request_with_unknown_key_is_rejected(engine, bus):
    await engine.enable()
    bus.clear()

    bus.request(["window_color"])
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert bus.payloads == []
    assert engine.enabled


@pytest.mark.asyncio
async def test_focus_notification_publishes_active_keys(engine, desktop, bus):
    await engine.enable()
    bus.clear()

    await desktop.focus(1)

    assert bus.last == {
        "active_window_class": "Terminal",
        "active_window_fullscreen": False,
        "active_window_id": 1,
        "active_window_maximized": False,
        "active_window_name": "terminal",
        "active_window_pid": 100,
        "active_window_title": "~",
    }


@pytest.mark.asyncio
async def test_stats(engine, desktop, bus):
    await engine.enable()
    stats = engine.stats()
    assert stats["enabled"] is True
    assert stats["publishes"] == 2
    assert stats["bus_failures"] == 0


@pytest.mark.asyncio
async def test_capture_snapshot(desktop):
    desktop.active_id = 2
    desktop.pointer = (10, 10)

    snapshot = await capture_snapshot(desktop)

    assert snapshot["active_window_class"] == "Editor"
    assert snapshot["window_under_pointer_class"] == "Terminal"
    assert snapshot["window_under_pointer_geometry"] == [0, 0, 960, 1080]
    assert snapshot["pointer_position_global"] == [10, 10]
