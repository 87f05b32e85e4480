"""Configuration objects and enums used by the logging subsystem."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Optional, Union

from utils.misc import time_now


class LogLevel(IntEnum):
    """Severity levels, ordered from most restrictive to most permissive.

    A message is emitted when ``message.level <= logger.level``.
    """

    NONE = 0
    CRITICAL = 1
    ERROR = 2
    WARNING = 3
    INFORMATION = 4
    DEBUG = 5

    def __str__(self) -> str:
        return self.name.capitalize()

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)

    @classmethod
    def parse(cls, value: Union["LogLevel", int, str]) -> "LogLevel":
        """Coerce a level, an integer or a level name into a :class:`LogLevel`.

        :param value: Level instance, integer value or case-insensitive name.
        :return: Matching :class:`LogLevel`.
        :raises ValueError: If ``value`` does not name a known level.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid log level: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "INFO":
                name = "INFORMATION"
            try:
                return cls[name]
            except KeyError:
                raise ValueError(f"Invalid log level: {value!r}") from None
        raise ValueError(f"Invalid log level: {value!r}")


class LogType(Enum):
    """Destination backend of a logger."""

    CONSOLE = "console"
    FILE = "file"


@dataclass(frozen=True)
class LogMessage:
    """A single log event, created at the call site and never persisted."""

    level: LogLevel
    text: str
    exception: Optional[BaseException] = None
    timestamp: datetime = field(default_factory=time_now)


class LoggerConfig:
    """Runtime configuration for :class:`utils.logger.logger.Logger`."""

    def __init__(
        self,
        log_type: LogType = LogType.CONSOLE,
        base_level: LogLevel = LogLevel.INFORMATION,
        time_format: str = "%Y-%m-%d %H:%M:%S.%f",
    ):
        """Initialise configuration defaults for a :class:`Logger`.

        :param log_type: Destination backend the logger writes to.
        :param base_level: Most permissive severity that will be recorded.
        :param time_format: ``strftime`` format used for the timestamp column.
        :raises ValueError: If validation of supplied values fails.
        """
        if not isinstance(log_type, LogType):
            raise ValueError(f"Invalid log type; expected LogType but got {type(log_type)}")

        self.log_type = log_type
        self.base_level = LogLevel.parse(base_level)
        self.time_format = time_format

        if not self.time_format:
            raise ValueError("Time format must not be empty")
