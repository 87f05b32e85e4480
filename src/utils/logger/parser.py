"""Parse log lines written by :class:`utils.logger.logger.Logger` back into fields."""

import re
from dataclasses import dataclass
from datetime import datetime

from utils.logger.config import LogLevel
from utils.misc import str_to_datetime

LINE_PATTERN = re.compile(
    r"^(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6}) "
    r"\[(?P<level>[A-Za-z]+)\] "
    r"\[(?P<thread>.*?)\] "
    r"(?P<text>.*)$"
)


@dataclass(frozen=True)
class ParsedLogLine:
    """Fields recovered from the header line of a log entry."""

    timestamp: datetime
    level: LogLevel
    thread_name: str
    text: str


def parse_log_line(line: str) -> ParsedLogLine:
    """Split a log header line into timestamp, level, thread name and text.

    Only the first line of an entry is parsed; exception blocks that follow it
    are not log headers.

    :param line: A single line, with or without its trailing newline.
    :return: The parsed fields.
    :raises ValueError: If ``line`` is not a log header.
    """
    match = LINE_PATTERN.match(line.rstrip("\r\n"))
    if match is None:
        raise ValueError(f"Not a log line: {line!r}")
    return ParsedLogLine(
        timestamp=str_to_datetime(match.group("timestamp")),
        level=LogLevel.parse(match.group("level")),
        thread_name=match.group("thread"),
        text=match.group("text"),
    )
