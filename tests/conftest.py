"""Pytest configuration and fixtures for environment daemon tests."""

import pytest
import pytest_asyncio

from inputactions_env.config import DaemonConfig
from inputactions_env.engine import EnvironmentEngine
from inputactions_env.models import Rect

from .fixtures.fake_adapter import FakeAdapter
from .fixtures.fake_bus import FakeBus


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def bus() -> FakeBus:
    return FakeBus()


@pytest.fixture
def config() -> DaemonConfig:
    return DaemonConfig()


@pytest_asyncio.fixture
async def engine(adapter, bus, config):
    """Engine that is always disabled after the test."""
    engine = EnvironmentEngine(adapter, bus, config)
    yield engine
    await engine.disable()


@pytest.fixture
def desktop(adapter) -> FakeAdapter:
    """Two side-by-side windows: Terminal on the left, Editor on the right."""
    adapter.add_window(
        1,
        resource_class="Terminal",
        resource_name="terminal",
        title="~",
        pid=100,
        geometry=Rect(0, 0, 960, 1080),
    )
    adapter.add_window(
        2,
        resource_class="Editor",
        resource_name="editor",
        title="main.py",
        pid=200,
        geometry=Rect(961, 0, 959, 1080),
    )
    return adapter
