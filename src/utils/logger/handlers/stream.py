"""Handler writing log entries to any text stream."""

from typing import TextIO

from utils.logger.config import LogLevel
from utils.logger.handlers.base import BaseLogHandler


class StreamHandler(BaseLogHandler):
    """Write log entries to an object exposing ``write`` and ``flush``.

    The stream belongs to the caller; ``close`` only flushes it.
    """

    def __init__(self, stream: TextIO) -> None:
        """Wrap ``stream``.

        :param stream: Text stream (``io.StringIO``, an open file, ``sys.stderr``...).
        :raises TypeError: If ``stream`` lacks ``write`` or ``flush``.
        """
        super().__init__()
        if not (callable(getattr(stream, "write", None)) and callable(getattr(stream, "flush", None))):
            raise TypeError(f"Invalid stream; expected write() and flush() but got {type(stream)}")
        self.stream = stream

    def write(self, text: str, level: LogLevel) -> None:
        self.stream.write(text + "\n")

    def flush(self) -> None:
        self.stream.flush()
