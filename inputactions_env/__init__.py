"""InputActions environment daemon

Event-driven desktop environment state publisher.

This package provides a long-running daemon that:
- Tracks the active window and the window under the pointer
- Coalesces pointer motion into bounded-rate samples
- Publishes minimal attribute snapshots to InputActions over D-Bus
- Answers environmentStateRequested refresh signals

License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
