"""Session bus responder.

Receives environmentStateRequested signals and sends environmentState calls
to the InputActions client over the D-Bus session bus.

pydbus dispatches through the GLib main context, so the responder pumps the
default context from the asyncio loop at a fixed interval instead of running
a GLib.MainLoop.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional

from gi.repository import Gio, GLib
from pydbus import SessionBus

from .config import DaemonConfig
from .constants import BusNames
from .errors import BusError, ErrorCode

logger = logging.getLogger(__name__)

RequestCallback = Callable[[List[str]], Any]


class BusResponder:
    """Inbound request subscription and outbound state delivery."""

    def __init__(self, config: Optional[DaemonConfig] = None) -> None:
        self.config = config or DaemonConfig()
        self.bus: Optional[SessionBus] = None
        self._subscription = None
        self._pump_handle: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.sent_count = 0
        self.failure_count = 0

    @property
    def connected(self) -> bool:
        return self.bus is not None

    def connect(self) -> None:
        """Open the session bus and start pumping its main context.

        Raises:
            BusError: If no session bus is reachable
        """
        try:
            self.bus = SessionBus()
        except GLib.Error as e:
            raise BusError("connect", e.message) from e
        self._loop = asyncio.get_running_loop()
        self._schedule_pump()
        logger.info("Connected to session bus")

    def subscribe_requests(self, callback: RequestCallback) -> None:
        """Deliver every environmentStateRequested signal to callback(keys).

        Raises:
            BusError: If not connected or the match rule cannot be added
        """
        if self.bus is None:
            raise BusError("subscribe", "not connected", ErrorCode.BUS_SUBSCRIBE_FAILED)

        def on_signal(sender, object_path, interface, signal, params) -> None:
            keys = list(params[0]) if params else []
            logger.debug(f"Refresh requested by {sender}: {keys or 'all'}")
            callback(keys)

        try:
            self._subscription = self.bus.subscribe(
                iface=self.config.bus_interface,
                signal=BusNames.REQUEST_SIGNAL,
                object=self.config.bus_path,
                signal_fired=on_signal,
            )
        except GLib.Error as e:
            raise BusError("subscribe", e.message, ErrorCode.BUS_SUBSCRIBE_FAILED) from e
        logger.info(f"Subscribed to {self.config.bus_interface}.{BusNames.REQUEST_SIGNAL}")

    def unsubscribe_requests(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Unsubscribed from refresh requests")

    def emit_state(self, payload: str) -> None:
        """Send one environmentState call without waiting for the reply."""
        if self.bus is None:
            return
        self.bus.con.call(
            self.config.bus_service,
            self.config.bus_path,
            self.config.bus_interface,
            BusNames.STATE_METHOD,
            GLib.Variant("(s)", (payload,)),
            None,
            Gio.DBusCallFlags.NO_AUTO_START,
            self.config.bus_call_timeout_ms,
            None,
            self._on_call_finished,
            None,
        )
        self.sent_count += 1

    def _on_call_finished(self, connection, result, user_data) -> None:
        try:
            connection.call_finish(result)
        except GLib.Error as e:
            self.failure_count += 1
            logger.debug(f"environmentState not delivered: {e.message}")

    def _schedule_pump(self) -> None:
        if self._loop is None:
            return
        self._pump_handle = self._loop.call_later(self.config.bus_dispatch_interval, self._pump)

    def _pump(self) -> None:
        context = GLib.MainContext.default()
        while context.pending():
            context.iteration(False)
        self._schedule_pump()

    def close(self) -> None:
        """Unsubscribe and stop pumping. Idempotent."""
        self.unsubscribe_requests()
        if self._pump_handle is not None:
            self._pump_handle.cancel()
            self._pump_handle = None
        # Flush completions of calls already in flight
        if self.bus is not None:
            context = GLib.MainContext.default()
            while context.pending():
                context.iteration(False)
        self._loop = None
        self.bus = None

