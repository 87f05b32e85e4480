"""Time and formatting utilities used across the project."""

from __future__ import annotations

import datetime

import ciso8601


def time_now() -> datetime.datetime:
    """Return the current local wall-clock time.

    All log timestamps are taken from here so that every line uses the same
    (local, naive) clock.
    """

    return datetime.datetime.now()


def datetime_to_str(dt: datetime.datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """Convert a datetime object into a formatted string.

    :param dt: Datetime instance to format.
    :param fmt: ``strftime``-compatible format string.
    :return: Formatted datetime string.
    """

    return dt.strftime(fmt)


def str_to_datetime(value: str) -> datetime.datetime:
    """Parse an ISO-8601 style timestamp (``T`` or space separated).

    :param value: Timestamp such as ``2025-01-01 12:00:00.123456``.
    :return: Parsed datetime.
    :raises ValueError: If the string cannot be parsed into a datetime.
    """

    try:
        return ciso8601.parse_datetime(value)
    except ValueError as exc:
        raise ValueError(f"Invalid datetime string: {value}") from exc
