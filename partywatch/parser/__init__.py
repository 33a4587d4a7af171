"""
Parsing of MiniParse frames into party events.

This package provides:
- Envelope decoding for raw stream frames
- Tokenizing of pipe-delimited chat log lines
- Classification of log lines into notifications
"""

from .messages import ChatMessage, OtherMessage, Envelope, DecodeError, decode_message
from .tokenizer import LineTokenizer, LogLine, EMPTY_LOG_LINE, read_log_line
from .categorizer import (
    Notification,
    NotificationToggles,
    add_space_after_capitals,
    build_notification,
)

__all__ = [
    "ChatMessage",
    "OtherMessage",
    "Envelope",
    "DecodeError",
    "decode_message",
    "LineTokenizer",
    "LogLine",
    "EMPTY_LOG_LINE",
    "read_log_line",
    "Notification",
    "NotificationToggles",
    "add_space_after_capitals",
    "build_notification",
]
