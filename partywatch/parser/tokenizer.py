"""
Line tokenizer for the pipe-delimited log lines carried by chat frames.
"""

import re
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)

INT64_MASK = (1 << 64) - 1


@dataclass(frozen=True)
class LogLine:
    """
    A decoded chat log record.

    The default instance is the "no event" record returned for anything that
    is not a well-formed chat line.
    """

    time: Optional[datetime] = None
    code: int = 0
    name: str = ""
    line: str = ""

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_LOG_LINE


EMPTY_LOG_LINE = LogLine()


def to_int64(value: int) -> int:
    """Narrow an arbitrary-precision integer to a wrapped signed 64-bit value."""
    bits = abs(value) & INT64_MASK
    if value < 0:
        bits = -bits & INT64_MASK
    return bits - (1 << 64) if bits >= (1 << 63) else bits


class LineTokenizer:
    """
    Tokenizes chat log lines of the form
    ``00|<RFC3339 timestamp>|<hex code>|<name>|<line>[|...]``.

    Fields past the fifth (ACT appends a checksum) are ignored.
    """

    DELIMITER = "|"
    CHAT_MARKER = "00"
    FIELD_COUNT = 5

    # RFC3339 with any number of fraction digits, "." or "," separated,
    # e.g. 2024-01-01T20:15:03.1234567-04:00
    TIMESTAMP_PATTERN = re.compile(
        r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:[.,](\d+))?(Z|[+-]\d{2}:\d{2})$"
    )

    HEX_CODE_PATTERN = re.compile(r"^[+-]?[0-9a-fA-F]+$")

    def __init__(self):
        self.line_count = 0
        self.error_count = 0

    def parse_line(self, data: str) -> LogLine:
        """
        Parse a chat payload into a LogLine.

        Args:
            data: Raw payload of a chat frame

        Returns:
            The decoded LogLine, or the empty LogLine if the payload is not a
            chat record or cannot be parsed
        """
        self.line_count += 1

        fields = data.split(self.DELIMITER)
        if fields[0] != self.CHAT_MARKER:
            return EMPTY_LOG_LINE

        if len(fields) < self.FIELD_COUNT:
            logger.debug(f"Chat line has {len(fields)} fields, expected {self.FIELD_COUNT}")
            self.error_count += 1
            return EMPTY_LOG_LINE

        try:
            timestamp = self.parse_timestamp(fields[1])
        except ValueError as e:
            logger.warning(f"time: {e}")
            self.error_count += 1
            return EMPTY_LOG_LINE

        try:
            code = self.parse_code(fields[2])
        except ValueError as e:
            logger.warning(f"code: {e}")
            self.error_count += 1
            return EMPTY_LOG_LINE

        return LogLine(time=timestamp, code=code, name=fields[3], line=fields[4])

    def parse_timestamp(self, value: str) -> datetime:
        """
        Parse an RFC3339 timestamp, truncating fractions to microseconds.

        Raises:
            ValueError: If the value is not a valid RFC3339 timestamp
        """
        match = self.TIMESTAMP_PATTERN.fullmatch(value)
        if not match:
            raise ValueError(f"cannot parse {value!r} as RFC3339")

        clock, fraction, offset = match.groups()
        timestamp = datetime.strptime(clock, "%Y-%m-%dT%H:%M:%S")

        if fraction:
            timestamp = timestamp.replace(microsecond=int(fraction[:6].ljust(6, "0")))

        if offset == "Z":
            tzinfo = timezone.utc
        else:
            sign = -1 if offset[0] == "-" else 1
            hours, minutes = int(offset[1:3]), int(offset[4:6])
            tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))

        return timestamp.replace(tzinfo=tzinfo)

    def parse_code(self, value: str) -> int:
        """
        Parse a hexadecimal event code and narrow it to a signed 64-bit int.

        Raises:
            ValueError: If the value is not a hexadecimal number
        """
        if not self.HEX_CODE_PATTERN.fullmatch(value):
            raise ValueError(f"cannot parse {value!r} as a hex code")
        return to_int64(int(value, 16))


def read_log_line(data: str) -> LogLine:
    """Parse a single chat payload with a throwaway tokenizer."""
    return LineTokenizer().parse_line(data)
