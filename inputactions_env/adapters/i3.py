"""i3/Sway window manager adapter.

Uses the i3ipc.aio connection for the window tree and event stream, and
xdotool for the pointer position (i3 exposes no pointer over IPC).
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Tuple

from i3ipc import Event
from i3ipc.aio import Con, Connection

from ..errors import AdapterError, ErrorCode
from ..models import Rect, Window, WindowProperties
from .base import WindowManagerAdapter

logger = logging.getLogger(__name__)

XDOTOOL_TIMEOUT = 0.5


def get_window_class(container) -> Optional[str]:
    """Get window class in a Sway/i3-compatible way.

    For Sway/Wayland: app_id first (native Wayland), then window_properties.class (XWayland).
    For i3/X11: window_class (always from window_properties).
    """
    app_id = getattr(container, "app_id", None)
    if app_id:
        return app_id

    if getattr(container, "window_class", None):
        return container.window_class

    properties = getattr(container, "window_properties", None)
    if isinstance(properties, dict):
        return properties.get("class")

    return None


def get_window_instance(container) -> Optional[str]:
    """Get window instance (X11 WM_CLASS instance), falling back to app_id."""
    if getattr(container, "window_instance", None):
        return container.window_instance

    properties = getattr(container, "window_properties", None)
    if isinstance(properties, dict) and properties.get("instance"):
        return properties["instance"]

    return getattr(container, "app_id", None) or None


def is_window(container) -> bool:
    """True for leaf containers that hold an application window."""
    if container.type not in ("con", "floating_con") or container.nodes:
        return False
    return bool(
        container.window
        or getattr(container, "app_id", None)
        or getattr(container, "pid", None)
    )


def _rect(rect) -> Rect:
    return Rect(rect.x, rect.y, rect.width, rect.height)


def container_properties(container, pid: Optional[int] = None) -> WindowProperties:
    """Read a window snapshot from a container that is attached to the tree.

    Maximized on an axis means the window spans its workspace on that axis.
    """
    geometry = _rect(container.rect)
    maximized_h = maximized_v = False
    workspace = container.workspace()
    if workspace is not None and workspace.rect is not None:
        maximized_h = geometry.width >= workspace.rect.width
        maximized_v = geometry.height >= workspace.rect.height

    return WindowProperties(
        resource_class=get_window_class(container),
        resource_name=get_window_instance(container),
        title=container.name,
        pid=getattr(container, "pid", None) or pid,
        maximized_horizontally=maximized_h,
        maximized_vertically=maximized_v,
        fullscreen=bool(container.fullscreen_mode),
        geometry=geometry,
    )


def visible_leaves(container) -> Iterable:
    """Yield windows that can be seen, skipping hidden tabbed/stacked children."""
    if is_window(container):
        yield container
        return

    children = list(container.nodes)
    if container.layout in ("tabbed", "stacked") and children:
        focused_id = container.focus[0] if container.focus else children[0].id
        children = [c for c in children if c.id == focused_id] or children[:1]

    for child in children:
        yield from visible_leaves(child)


def stacking_order(workspace) -> List:
    """Windows of a workspace from topmost to bottommost.

    Fullscreen windows first, then floating windows by focus recency, then
    tiled windows.
    """
    focus_rank = {con_id: index for index, con_id in enumerate(workspace.focus or [])}
    floating = sorted(
        workspace.floating_nodes,
        key=lambda c: focus_rank.get(c.id, len(focus_rank)),
    )
    floating_leaves = [leaf for con in floating for leaf in visible_leaves(con)]
    tiled_leaves = [leaf for con in workspace.nodes for leaf in visible_leaves(con)]

    ordered = floating_leaves + tiled_leaves
    fullscreen = [c for c in ordered if c.fullscreen_mode]
    return fullscreen + [c for c in ordered if not c.fullscreen_mode]


class I3Adapter(WindowManagerAdapter):
    """Adapter for i3 (X11) and Sway (Wayland) through i3ipc."""

    name = "i3"

    def __init__(self, socket_path: Optional[str] = None, pointer_poll_interval: float = 0.1) -> None:
        super().__init__(pointer_poll_interval=pointer_poll_interval)
        self.socket_path = socket_path
        self.conn: Optional[Connection] = None
        self._main_task: Optional[asyncio.Task] = None
        self._x11_pids: dict = {}

    async def _connect(self) -> None:
        try:
            self.conn = await Connection(socket_path=self.socket_path, auto_reconnect=True).connect()
            version = await self.conn.get_version()
            self.conn.on(Event.WINDOW, self._on_window)
            self.conn.on(Event.WORKSPACE_FOCUS, self._on_workspace_focus)
            await self.conn.subscribe([Event.WINDOW, Event.WORKSPACE])
        except Exception as e:
            await self._close()
            raise AdapterError("connect", str(e), ErrorCode.ADAPTER_CONNECT_FAILED) from e

        logger.info(f"Connected to {version.human_readable}")
        self._main_task = asyncio.create_task(self.conn.main(), name="i3-event-loop")

    async def _close(self) -> None:
        if self.conn:
            self.conn.off(self._on_window)
            self.conn.off(self._on_workspace_focus)
            self.conn.main_quit()
        if self._main_task:
            self._main_task.cancel()
            try:
                await self._main_task
            except (asyncio.CancelledError, Exception) as e:
                logger.debug(f"i3 event loop stopped: {e!r}")
            self._main_task = None
        self.conn = None

    def _require_conn(self) -> Connection:
        if self.conn is None:
            raise AdapterError("query", "not connected", ErrorCode.ADAPTER_NOT_CONNECTED)
        return self.conn

    async def _get_tree(self) -> Con:
        try:
            return await self._require_conn().get_tree()
        except AdapterError:
            raise
        except Exception as e:
            raise AdapterError("get_tree", str(e)) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_active_window(self) -> Optional[Window]:
        tree = await self._get_tree()
        focused = tree.find_focused()
        if focused is None or not is_window(focused):
            return None
        return await self._handle(focused)

    async def get_window_at(self, x: float, y: float) -> Optional[Window]:
        tree = await self._get_tree()
        try:
            workspaces = await self._require_conn().get_workspaces()
        except Exception as e:
            raise AdapterError("get_workspaces", str(e)) from e
        visible = {ws.name for ws in workspaces if ws.visible}

        for workspace in tree.workspaces():
            if workspace.name not in visible:
                continue
            for container in stacking_order(workspace):
                if _rect(container.rect).contains(x, y):
                    return await self._handle(container)
        return None

    async def query_pointer_position(self) -> Tuple[float, float]:
        output = await self._run_xdotool("getmouselocation", "--shell")
        coords = {}
        for line in output.strip().split("\n"):
            if "=" in line:
                key, value = line.split("=", 1)
                coords[key] = value
        try:
            return float(coords["X"]), float(coords["Y"])
        except (KeyError, ValueError) as e:
            raise AdapterError("getmouselocation", f"invalid xdotool output: {output!r}") from e

    async def query_screens(self) -> List[Rect]:
        try:
            outputs = await self._require_conn().get_outputs()
        except AdapterError:
            raise
        except Exception as e:
            raise AdapterError("get_outputs", str(e)) from e
        return [_rect(o.rect) for o in outputs if o.active]

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    async def _on_window(self, conn, event) -> None:
        change = event.change
        if change == "focus":
            await self._notify_focus_changed()
            return
        if change == "close":
            self._x11_pids.pop(event.container.id, None)
            await self._handle_window_closed(event.container.id)
        # Any other change, including a sibling opening or closing, can
        # resize or retitle a tracked window
        await self._refresh_subscribed()

    async def _on_workspace_focus(self, conn, event) -> None:
        await self._notify_focus_changed()

    async def _refresh_subscribed(self) -> None:
        window_ids = self.subscribed_window_ids()
        if not window_ids:
            return
        try:
            tree = await self._get_tree()
        except AdapterError as e:
            logger.warning(f"Skipping window refresh: {e}")
            return
        for window_id in window_ids:
            container = tree.find_by_id(window_id)
            if container is not None:
                await self._handle(container)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _handle(self, container) -> Window:
        pid = None
        if not getattr(container, "pid", None) and container.window:
            pid = await self._x11_pid(container)
        window, events = self._window_for(container.id, container_properties(container, pid))
        if events:
            await self._dispatch_property_events(window, events)
        return window

    async def _x11_pid(self, container) -> Optional[int]:
        """Look up _NET_WM_PID once per window."""
        if container.id in self._x11_pids:
            return self._x11_pids[container.id]
        try:
            pid: Optional[int] = int((await self._run_xdotool("getwindowpid", str(container.window))).strip())
        except (AdapterError, ValueError) as e:
            logger.debug(f"No pid for window {container.id}: {e}")
            pid = None
        self._x11_pids[container.id] = pid
        return pid

    async def _run_xdotool(self, *args: str) -> str:
        try:
            process = await asyncio.create_subprocess_exec(
                "xdotool",
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise AdapterError("xdotool", "xdotool not found in PATH") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=XDOTOOL_TIMEOUT)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise AdapterError("xdotool", f"timed out after {XDOTOOL_TIMEOUT}s") from e

        if process.returncode != 0:
            raise AdapterError("xdotool", f"exit {process.returncode}: {stderr.decode().strip()}")
        return stdout.decode("utf-8", errors="ignore")
