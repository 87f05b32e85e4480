"""Handler that appends log entries to a single UTF-8 file."""

import os
from pathlib import Path
from typing import Optional, TextIO, Union

from utils.logger.config import LogLevel
from utils.logger.handlers.base import BaseLogHandler


class FileHandler(BaseLogHandler):
    """Append log entries to one file, kept open for the handler's lifetime."""

    def __init__(self, path: Union[str, Path], create: bool = True) -> None:
        """Open ``path`` for appending.

        :param path: Log file location.
        :param create: Whether missing parent directories should be created.
        :raises OSError: If the file cannot be opened.
        """
        super().__init__()
        self.path = Path(path)
        if create and self.path.parent != Path(""):
            os.makedirs(self.path.parent, exist_ok=True)
        self._file: Optional[TextIO] = open(self.path, "a", encoding="utf-8")

    @property
    def closed(self) -> bool:
        return self._file is None

    def write(self, text: str, level: LogLevel) -> None:
        if self._file is None:
            raise ValueError(f"Log file already closed: {self.path}")
        self._file.write(text + "\n")

    def flush(self) -> None:
        if self._file is None:
            raise ValueError(f"Log file already closed: {self.path}")
        self._file.flush()

    def close(self) -> None:
        if self._file is None:
            return
        try:
            self._file.flush()
        finally:
            self._file.close()
            self._file = None
