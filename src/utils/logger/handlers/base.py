"""Abstract base class for log sinks."""

from abc import ABC, abstractmethod

from utils.logger.config import LogLevel


class BaseLogHandler(ABC):
    """A text destination accepting sequential line writes and an explicit flush.

    Handlers are not thread-safe on their own; :class:`utils.logger.logger.Logger`
    serialises every ``write``/``flush`` pair under its lock.
    """

    def __init__(self) -> None:
        """Initialise the handler base class."""
        pass

    @abstractmethod
    def write(self, text: str, level: LogLevel) -> None:
        """Write one formatted log entry, followed by a line terminator."""
        raise NotImplementedError

    @abstractmethod
    def flush(self) -> None:
        """Push everything written so far to the underlying destination."""
        raise NotImplementedError

    def close(self) -> None:
        """Release the destination. The default implementation only flushes."""
        self.flush()
