"""
Event categorization: maps decoded log lines to outbound notifications.
"""

import re
from typing import Optional
from dataclasses import dataclass

from .tokenizer import LogLine

# Chat codes as they appear (in hex) in the third field of a log line
PARTY_STATUS_CODE = 57  # 0x0039: party filled / disbanded
PARTY_MEMBER_CODE = 8761  # 0x2239: member joins / leaves / returns

SPACE_CAPITAL_PATTERN = re.compile(r"([a-z'])([A-Z])")


@dataclass(frozen=True)
class Notification:
    """An alert destined for the push service."""

    title: str
    message: str
    sound: str = "none"


@dataclass(frozen=True)
class NotificationToggles:
    """Which party events produce a notification."""

    fill: bool = True
    disband: bool = False
    join: bool = False
    leave: bool = False


def add_space_after_capitals(text: str) -> str:
    """
    Split words the game glues together, e.g. ``"PlayerNameJoins"`` becomes
    ``"PlayerName Joins"``.
    """
    return SPACE_CAPITAL_PATTERN.sub(r"\1 \2", text)


def build_notification(
    log_line: LogLine, toggles: NotificationToggles
) -> Optional[Notification]:
    """
    Build the notification for a log line, if any.

    Args:
        log_line: Decoded chat record
        toggles: Enabled event categories

    Returns:
        A Notification, or None when the line is not an enabled party event
    """
    text = log_line.line

    if log_line.code == PARTY_STATUS_CODE:
        if toggles.fill and "have been filled" in text:
            return Notification(
                title="Your Party Has Filled",
                message=text,
                sound="gamelan",
            )
        elif toggles.disband and "has been disbanded" in text:
            return Notification(
                title="Your Party Has Disbanded",
                message=text,
                sound="none",
            )

    elif log_line.code == PARTY_MEMBER_CODE:
        if toggles.join and "joins the party" in text:
            return Notification(
                title="Player Joined Your Party",
                message=add_space_after_capitals(text),
                sound="none",
            )
        elif toggles.leave and "left the party" in text:
            return Notification(
                title="Player Left Your Party",
                message=add_space_after_capitals(text),
                sound="none",
            )

    return None
