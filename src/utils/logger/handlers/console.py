"""Console handler with per-level colors."""

import sys
from typing import Optional, TextIO

from colorama import Fore, Style, just_fix_windows_console

from utils.logger.config import LogLevel
from utils.logger.handlers.stream import StreamHandler

just_fix_windows_console()


LOG_COLORS = {
    LogLevel.NONE: "",
    LogLevel.CRITICAL: Fore.RED + Style.BRIGHT,
    LogLevel.ERROR: Fore.RED + Style.BRIGHT,
    LogLevel.WARNING: Fore.YELLOW,
    LogLevel.INFORMATION: Fore.GREEN,
    LogLevel.DEBUG: Fore.LIGHTBLACK_EX,
}


class ConsoleHandler(StreamHandler):
    """Write log entries to stdout/stderr, colored when attached to a terminal."""

    def __init__(self, stream: Optional[TextIO] = None, colorize: Optional[bool] = None) -> None:
        """Initialise the handler.

        :param stream: Target stream; defaults to ``sys.stdout`` looked up at
            construction time.
        :param colorize: Force coloring on or off. ``None`` colors only TTYs.
        """
        super().__init__(stream if stream is not None else sys.stdout)
        if colorize is None:
            isatty = getattr(self.stream, "isatty", None)
            colorize = bool(isatty and isatty())
        self.colorize = colorize

    def write(self, text: str, level: LogLevel) -> None:
        color = LOG_COLORS.get(level, "") if self.colorize else ""
        if color:
            text = color + text + Style.RESET_ALL
        super().write(text, level)
