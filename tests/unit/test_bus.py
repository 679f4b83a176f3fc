"""Unit tests for the session bus responder."""

from unittest.mock import Mock, patch

import pytest
import pytest_asyncio

pytest.importorskip("gi")
pytest.importorskip("pydbus")

from gi.repository import GLib  # noqa: E402

from inputactions_env.bus import BusResponder  # noqa: E402
from inputactions_env.config import DaemonConfig  # noqa: E402
from inputactions_env.errors import BusError, ErrorCode  # noqa: E402


@pytest.fixture
def session_bus():
    with patch("inputactions_env.bus.SessionBus") as factory:
        yield factory.return_value


@pytest_asyncio.fixture
async def responder(session_bus):
    responder = BusResponder(DaemonConfig())
    responder.connect()
    yield responder
    responder.close()


@pytest.mark.asyncio
async def test_connect_failure_raises(session_bus):
    with patch("inputactions_env.bus.SessionBus", side_effect=GLib.Error("no session bus")):
        with pytest.raises(BusError) as exc_info:
            BusResponder().connect()
    assert exc_info.value.code == ErrorCode.BUS_UNAVAILABLE


@pytest.mark.asyncio
async def test_subscribe_matches_request_signal(responder, session_bus):
    received = []
    responder.subscribe_requests(received.append)

    kwargs = session_bus.subscribe.call_args.kwargs
    assert kwargs["iface"] == "org.inputactions"
    assert kwargs["signal"] == "environmentStateRequested"
    assert kwargs["object"] == "/"

    on_signal = kwargs["signal_fired"]
    on_signal(":1.42", "/", "org.inputactions", "environmentStateRequested", (["active_window_class"],))
    on_signal(":1.42", "/", "org.inputactions", "environmentStateRequested", ([],))
    assert received == [["active_window_class"], []]


@pytest.mark.asyncio
async def test_subscribe_requires_connection():
    with pytest.raises(BusError) as exc_info:
        BusResponder().subscribe_requests(Mock())
    assert exc_info.value.code == ErrorCode.BUS_SUBSCRIBE_FAILED


@pytest.mark.asyncio
async def test_close_unsubscribes(responder, session_bus):
    responder.subscribe_requests(Mock())
    subscription = session_bus.subscribe.return_value

    responder.close()
    responder.close()

    subscription.unsubscribe.assert_called_once()
    assert not responder.connected


@pytest.mark.asyncio
async def test_emit_state_calls_client_method(responder, session_bus):
    responder.emit_state('{"active_window_title": null}')

    args = session_bus.con.call.call_args.args
    assert args[:4] == ("org.inputactions", "/", "org.inputactions", "environmentState")
    assert args[4].unpack() == ('{"active_window_title": null}',)
    assert args[7] == 1000
    assert responder.sent_count == 1


@pytest.mark.asyncio
async def test_emit_state_without_bus_is_noop():
    responder = BusResponder()
    responder.emit_state("{}")
    assert responder.sent_count == 0


@pytest.mark.asyncio
async def test_delivery_failures_are_counted(responder):
    connection = Mock()
    connection.call_finish.side_effect = GLib.Error("org.freedesktop.DBus.Error.ServiceUnknown")

    responder._on_call_finished(connection, Mock(), None)

    assert responder.failure_count == 1


@pytest.mark.asyncio
async def test_successful_delivery_is_not_counted(responder):
    responder._on_call_finished(Mock(), Mock(), None)
    assert responder.failure_count == 0

