"""Main daemon entry point with systemd integration.

This module provides the main event loop and systemd integration
(sd_notify, watchdog, journald logging).
"""

import argparse
import asyncio
import contextlib
import json
import logging
import os
import signal
import sys
from pathlib import Path
from typing import List, Optional

try:
    from systemd import journal, daemon as sd_daemon
    SYSTEMD_AVAILABLE = True
except ImportError:
    SYSTEMD_AVAILABLE = False

from . import __version__
from .adapters import create_adapter
from .bus import BusResponder
from .config import DaemonConfig, load_config
from .engine import EnvironmentEngine, capture_snapshot
from .errors import EnvironmentDaemonError

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT = 5.0


@contextlib.contextmanager
def _suppress_stderr_fd():
    """Suppress stderr at the file descriptor level.

    systemd-python writes warnings straight to file descriptor 2, bypassing
    sys.stderr.
    """
    stderr_fd = sys.stderr.fileno()
    saved_stderr_fd = os.dup(stderr_fd)

    devnull_fd = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull_fd, stderr_fd)
    os.close(devnull_fd)

    try:
        yield
    finally:
        os.dup2(saved_stderr_fd, stderr_fd)
        os.close(saved_stderr_fd)


class DaemonHealthMonitor:
    """Manages systemd health notifications and watchdog pings."""

    def __init__(self) -> None:
        self.watchdog_interval: Optional[float] = None
        self._setup_watchdog()

    def _setup_watchdog(self) -> None:
        """Detect watchdog interval from systemd environment."""
        if not SYSTEMD_AVAILABLE:
            return

        watchdog_usec = os.environ.get("WATCHDOG_USEC")
        if watchdog_usec:
            # Ping at a third of the timeout
            self.watchdog_interval = int(watchdog_usec) / 3_000_000
            logger.info(f"Systemd watchdog enabled: {self.watchdog_interval:.1f}s interval")
        else:
            logger.debug("Systemd watchdog not configured")

    def notify(self, state: str) -> None:
        """Send one sd_notify state line (READY=1, WATCHDOG=1, STOPPING=1)."""
        if not SYSTEMD_AVAILABLE:
            return
        with _suppress_stderr_fd():
            sd_daemon.notify(state)
        logger.log(logging.DEBUG if state == "WATCHDOG=1" else logging.INFO, f"Sent {state} to systemd")

    async def watchdog_loop(self) -> None:
        """Background task that sends watchdog pings."""
        if not self.watchdog_interval:
            return

        while True:
            await asyncio.sleep(self.watchdog_interval)
            self.notify("WATCHDOG=1")


class EnvironmentDaemon:
    """Runs one environment engine until a shutdown signal arrives."""

    def __init__(self, config: DaemonConfig) -> None:
        self.config = config
        self.engine: Optional[EnvironmentEngine] = None
        self.health_monitor = DaemonHealthMonitor()
        self.shutdown_event = asyncio.Event()

    async def initialize(self) -> None:
        adapter = create_adapter(self.config.adapter, self.config)
        self.engine = EnvironmentEngine(adapter, BusResponder(self.config), self.config)
        await self.engine.enable()

    async def run(self) -> None:
        """Wait for shutdown while keeping the watchdog fed."""
        self.health_monitor.notify("READY=1")
        watchdog_task = asyncio.create_task(self.health_monitor.watchdog_loop(), name="watchdog")
        try:
            await self.shutdown_event.wait()
        finally:
            watchdog_task.cancel()
            try:
                await watchdog_task
            except asyncio.CancelledError:
                pass

    async def shutdown(self) -> None:
        """Disable the engine, bounded by a timeout."""
        logger.info("Shutting down daemon...")
        self.health_monitor.notify("STOPPING=1")

        if self.engine:
            try:
                await asyncio.wait_for(self.engine.disable(), timeout=SHUTDOWN_TIMEOUT)
            except asyncio.TimeoutError:
                logger.warning(f"Engine shutdown timed out after {SHUTDOWN_TIMEOUT}s (continuing)")
            except Exception as e:
                logger.error(f"Error disabling engine: {e}")

        logger.info("Daemon shutdown complete")

    def log_stats(self) -> None:
        logger.info("=== DEBUG INFO (USR1) ===")
        logger.info(f"PID: {os.getpid()}")
        if self.engine:
            for name, value in self.engine.stats().items():
                logger.info(f"  {name}: {value}")
        logger.info("======================")

    def setup_signal_handlers(self) -> None:
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def shutdown_handler(signum: int) -> None:
            logger.info(f"Received signal {signum}, initiating shutdown...")
            self.shutdown_event.set()

        loop.add_signal_handler(signal.SIGTERM, shutdown_handler, signal.SIGTERM)
        loop.add_signal_handler(signal.SIGINT, shutdown_handler, signal.SIGINT)
        loop.add_signal_handler(signal.SIGUSR1, self.log_stats)


def setup_logging(log_level: str = "INFO") -> None:
    """Setup logging to systemd journal or stderr."""
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if SYSTEMD_AVAILABLE:
        with _suppress_stderr_fd():
            handler = journal.JournalHandler(SYSLOG_IDENTIFIER="inputactions-env")
    else:
        handler = logging.StreamHandler(sys.stderr)

    formatter = logging.Formatter(
        "%(levelname)s [%(name)s] %(message)s"
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger.info(f"Logging configured: level={log_level}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="inputactions-env",
        description="Publish window manager state to InputActions over D-Bus",
    )
    parser.add_argument(
        "--adapter",
        choices=["auto", "i3", "hyprland"],
        help="Window manager adapter (default: auto-detect)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file (default: ~/.config/inputactions/environment.json)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print one full snapshot as JSON and exit without using the bus",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


async def run_once(config: DaemonConfig) -> int:
    """Print a single full snapshot to stdout."""
    adapter = create_adapter(config.adapter, config)
    try:
        await adapter.connect()
        snapshot = await capture_snapshot(adapter)
    finally:
        await adapter.close()
    print(json.dumps(snapshot, indent=2))
    return 0


async def main_async(config: DaemonConfig) -> int:
    """Async main function.

    Returns:
        Exit code (0 = success, non-zero = error)
    """
    daemon = EnvironmentDaemon(config)

    try:
        daemon.setup_signal_handlers()
        await daemon.initialize()
        await daemon.run()
        return 0

    except EnvironmentDaemonError as e:
        logger.error(f"{e}", extra={"error": e.to_dict()})
        if e.suggestion:
            logger.error(f"Suggestion: {e.suggestion}")
        return 1

    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1

    finally:
        await daemon.shutdown()


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config, adapter=args.adapter, log_level=args.log_level)
    except EnvironmentDaemonError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.log_level)

    try:
        if args.once:
            sys.exit(asyncio.run(run_once(config)))

        logger.info(f"InputActions environment daemon {__version__} starting...")
        logger.info(f"PID: {os.getpid()}")
        sys.exit(asyncio.run(main_async(config)))

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)

    except EnvironmentDaemonError as e:
        logger.error(f"{e}")
        sys.exit(1)
