"""
Real-time event stream handling.

This package provides:
- The WebSocket session reading frames from the MiniParse endpoint
- Delivery of notifications to Pushover
"""

from .notifier import PushoverNotifier
from .session import (
    ConnectError,
    SessionOutcome,
    SessionStatus,
    StreamSession,
    install_interrupt_handler,
    run_bridge,
)

__all__ = [
    "PushoverNotifier",
    "ConnectError",
    "SessionOutcome",
    "SessionStatus",
    "StreamSession",
    "install_interrupt_handler",
    "run_bridge",
]
