"""Hyprland window manager adapter.

Talks to the compositor over its two unix sockets: `.socket.sock` for JSON
requests and `.socket2.sock` for the `EVENT>>DATA` line stream.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..errors import AdapterError, ErrorCode
from ..models import Rect, Window, WindowProperties
from .base import WindowManagerAdapter

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 1.0

# Events after which tracked windows are re-read and diffed
MUTATION_EVENTS = frozenset({
    "windowtitle",
    "windowtitlev2",
    "fullscreen",
    "changefloatingmode",
    "movewindow",
    "movewindowv2",
})

FOCUS_EVENTS = frozenset({"activewindowv2"})


def hyprland_socket_dir(signature: Optional[str] = None) -> Path:
    """Resolve the instance socket directory.

    Hyprland >= 0.40 uses $XDG_RUNTIME_DIR/hypr/<signature>, older releases /tmp/hypr/<signature>.
    """
    signature = signature or os.environ.get("HYPRLAND_INSTANCE_SIGNATURE")
    if not signature:
        raise AdapterError(
            "connect", "HYPRLAND_INSTANCE_SIGNATURE is not set", ErrorCode.ADAPTER_CONNECT_FAILED
        )

    runtime_dir = os.environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        candidate = Path(runtime_dir) / "hypr" / signature
        if candidate.exists():
            return candidate
    return Path("/tmp/hypr") / signature


def normalize_address(address: str) -> str:
    """Event payloads omit the 0x prefix that j/clients uses."""
    address = address.strip()
    return address if address.startswith("0x") else f"0x{address}"


# Bits of the client fullscreen state; 3 is maximized and fullscreen at once
FULLSCREEN_MAXIMIZED = 1
FULLSCREEN_FULL = 2


def fullscreen_state(client: Dict[str, Any]) -> int:
    """Fullscreen state bitmask: 0 = none, 1 = maximized, 2 = fullscreen, 3 = both.

    Before 0.42 `fullscreen` was a bool with `fullscreenMode` 0 (fullscreen) or 1 (maximized).
    """
    value = client.get("fullscreen", 0)
    if isinstance(value, bool):
        if not value:
            return 0
        return 1 if client.get("fullscreenMode", 0) == 1 else 2
    return int(value)


def client_properties(client: Dict[str, Any]) -> WindowProperties:
    state = fullscreen_state(client)
    x, y = client.get("at", [0, 0])
    width, height = client.get("size", [0, 0])
    pid = client.get("pid")
    return WindowProperties(
        resource_class=client.get("class") or None,
        resource_name=client.get("initialClass") or None,
        title=client.get("title"),
        pid=pid if isinstance(pid, int) and pid > 0 else None,
        maximized_horizontally=bool(state & FULLSCREEN_MAXIMIZED),
        maximized_vertically=bool(state & FULLSCREEN_MAXIMIZED),
        fullscreen=bool(state & FULLSCREEN_FULL),
        geometry=Rect(x, y, width, height),
    )


def monitor_rect(monitor: Dict[str, Any]) -> Rect:
    """Logical monitor geometry (pixels divided by scale, swapped when rotated)."""
    scale = monitor.get("scale") or 1.0
    width = monitor["width"] / scale
    height = monitor["height"] / scale
    if monitor.get("transform", 0) % 2 == 1:
        width, height = height, width
    return Rect(monitor["x"], monitor["y"], width, height)


def visible_workspace_ids(monitors: List[Dict[str, Any]]) -> set:
    ids = set()
    for monitor in monitors:
        ids.add(monitor.get("activeWorkspace", {}).get("id"))
        special = monitor.get("specialWorkspace", {}).get("id")
        if special:
            ids.add(special)
    ids.discard(None)
    return ids


def stacking_key(client: Dict[str, Any]) -> Tuple[bool, bool, bool, int]:
    """Sort key placing the topmost client first.

    Special workspaces overlay regular ones, fullscreen covers floating,
    floating covers tiled, and within a layer the most recently focused wins.
    """
    on_special = client.get("workspace", {}).get("id", 0) < 0
    return (
        not on_special,
        not (fullscreen_state(client) & FULLSCREEN_FULL),
        not client.get("floating", False),
        client.get("focusHistoryID", 0),
    )


class HyprlandAdapter(WindowManagerAdapter):
    """Adapter for Hyprland through its IPC sockets."""

    name = "hyprland"

    def __init__(self, signature: Optional[str] = None, pointer_poll_interval: float = 0.1) -> None:
        super().__init__(pointer_poll_interval=pointer_poll_interval)
        self.signature = signature
        self.socket_dir: Optional[Path] = None
        self._event_task: Optional[asyncio.Task] = None
        self._event_writer: Optional[asyncio.StreamWriter] = None

    async def _connect(self) -> None:
        self.socket_dir = hyprland_socket_dir(self.signature)
        try:
            reader, writer = await asyncio.open_unix_connection(str(self.socket_dir / ".socket2.sock"))
        except OSError as e:
            raise AdapterError("connect", str(e), ErrorCode.ADAPTER_CONNECT_FAILED) from e

        self._event_writer = writer
        self._event_task = asyncio.create_task(self._read_events(reader), name="hyprland-events")
        logger.info(f"Listening to Hyprland events in {self.socket_dir}")

    async def _close(self) -> None:
        if self._event_task:
            self._event_task.cancel()
            try:
                await self._event_task
            except asyncio.CancelledError:
                pass
            self._event_task = None
        if self._event_writer:
            self._event_writer.close()
            self._event_writer = None

    async def request(self, command: str) -> Any:
        """Send one `j/<command>` request and decode the JSON reply.

        Raises:
            AdapterError: On socket failure, timeout or malformed reply
        """
        if self.socket_dir is None:
            raise AdapterError(command, "not connected", ErrorCode.ADAPTER_NOT_CONNECTED)

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_unix_connection(str(self.socket_dir / ".socket.sock")),
                timeout=REQUEST_TIMEOUT,
            )
            try:
                writer.write(f"j/{command}".encode())
                await writer.drain()
                data = await asyncio.wait_for(reader.read(), timeout=REQUEST_TIMEOUT)
            finally:
                writer.close()
        except (OSError, asyncio.TimeoutError) as e:
            raise AdapterError(command, str(e) or type(e).__name__) from e

        try:
            return json.loads(data.decode() or "null")
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise AdapterError(command, f"invalid reply: {e}") from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_active_window(self) -> Optional[Window]:
        client = await self.request("activewindow")
        if not client or not client.get("address"):
            return None
        return await self._handle(client)

    async def get_window_at(self, x: float, y: float) -> Optional[Window]:
        visible = visible_workspace_ids(await self.request("monitors"))
        clients = await self.request("clients") or []
        candidates = [
            c for c in clients
            if c.get("mapped", True)
            and not c.get("hidden", False)
            and c.get("workspace", {}).get("id") in visible
        ]
        for client in sorted(candidates, key=stacking_key):
            if client_properties(client).geometry.contains(x, y):
                return await self._handle(client)
        return None

    async def query_pointer_position(self) -> Tuple[float, float]:
        position = await self.request("cursorpos")
        try:
            return float(position["x"]), float(position["y"])
        except (TypeError, KeyError, ValueError) as e:
            raise AdapterError("cursorpos", f"unexpected reply: {position!r}") from e

    async def query_screens(self) -> List[Rect]:
        monitors = await self.request("monitors") or []
        return [monitor_rect(m) for m in monitors if not m.get("disabled", False)]

    # ------------------------------------------------------------------
    # Event stream
    # ------------------------------------------------------------------

    async def _read_events(self, reader: asyncio.StreamReader) -> None:
        while True:
            line = await reader.readline()
            if not line:
                logger.error("Hyprland event socket closed")
                return
            name, _, data = line.decode(errors="ignore").rstrip("\n").partition(">>")
            await self.handle_event(name, data)

    async def handle_event(self, name: str, data: str) -> None:
        """Translate one Hyprland event into adapter notifications."""
        if name in FOCUS_EVENTS:
            await self._notify_focus_changed()
        elif name == "closewindow":
            await self._handle_window_closed(normalize_address(data))
        elif name in MUTATION_EVENTS:
            await self._refresh_subscribed()

    async def _refresh_subscribed(self) -> None:
        window_ids = set(self.subscribed_window_ids())
        if not window_ids:
            return
        try:
            clients = await self.request("clients") or []
        except AdapterError as e:
            logger.warning(f"Skipping window refresh: {e}")
            return
        for client in clients:
            if client.get("address") in window_ids:
                await self._handle(client)

    async def _handle(self, client: Dict[str, Any]) -> Window:
        window, events = self._window_for(client["address"], client_properties(client))
        if events:
            await self._dispatch_property_events(window, events)
        return window
