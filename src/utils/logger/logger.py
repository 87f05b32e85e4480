"""Thread-safe leveled logger writing formatted lines to a single sink."""

import threading
import traceback
from typing import Any, Iterator, Optional, TextIO, Union

from core.exceptions import LoggerConstructionError, LogSinkWriteError
from utils.logger.config import LogLevel, LogMessage, LoggerConfig, LogType
from utils.logger.handlers.base import BaseLogHandler
from utils.logger.handlers.stream import StreamHandler
from utils.misc import datetime_to_str


class Logger:
    """Leveled logger that writes each accepted message to its sink and flushes it.

    Every ``write`` + ``flush`` pair happens under one lock, so concurrent
    callers never see interleaved lines and a returned logging call has
    already reached the sink.
    """

    def __init__(
        self,
        handler: Union[BaseLogHandler, TextIO],
        config: Optional[LoggerConfig] = None,
    ):
        """Initialise the logger with its sink and configuration.

        :param handler: A :class:`BaseLogHandler`, or any object with
            ``write``/``flush`` which is then wrapped in a :class:`StreamHandler`.
        :param config: Level, type and time format; defaults to :class:`LoggerConfig`.
        :raises LoggerConstructionError: If ``handler`` is ``None``.
        :raises TypeError: If ``handler`` is neither a handler nor a stream.
        """
        if handler is None:
            raise LoggerConstructionError("handler")
        if not isinstance(handler, BaseLogHandler):
            handler = StreamHandler(handler)

        self._handler = handler
        self._config = config if config is not None else LoggerConfig()
        self._lock = threading.Lock()
        self._closed = False

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def level(self) -> LogLevel:
        """Most permissive level currently written."""
        return self._config.base_level

    @level.setter
    def level(self, value: Union[LogLevel, int, str]) -> None:
        self._config.base_level = LogLevel.parse(value)

    @property
    def log_type(self) -> LogType:
        return self._config.log_type

    @property
    def handler(self) -> BaseLogHandler:
        return self._handler

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Return whether a message at ``level`` passes the filter."""
        return level <= self._config.base_level

    def log(self, message: LogMessage) -> None:
        """Write ``message`` if its level passes the filter.

        :param message: Event to record.
        :raises LogSinkWriteError: If the sink rejects the write or the flush.
        """
        if not self.is_enabled_for(message.level):
            return
        self._write(self.format_message(message), message.level)

    def warning(self, fmt: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        """Emit a warning-level log message.

        :param fmt: Message template, formatted with ``str.format`` when ``args`` are given.
        :param exc: Optional exception that caused the message.
        """
        self._emit(LogLevel.WARNING, fmt, args, exc)

    def message(self, fmt: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        """Emit an information-level log message."""
        self._emit(LogLevel.INFORMATION, fmt, args, exc)

    info = message

    def error(self, fmt: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        """Emit an error-level log message."""
        self._emit(LogLevel.ERROR, fmt, args, exc)

    def critical(self, fmt: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        """Emit a critical-level log message."""
        self._emit(LogLevel.CRITICAL, fmt, args, exc)

    def debug(self, fmt: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        """Emit a debug-level log message."""
        self._emit(LogLevel.DEBUG, fmt, args, exc)

    def flush(self) -> None:
        """Wait for any in-flight write and flush the sink."""
        with self._lock:
            self._check_open()
            try:
                self._handler.flush()
            except Exception as exc:
                raise LogSinkWriteError(f"Failed to flush {type(self._handler).__name__}") from exc

    def close(self) -> None:
        """Flush and release the sink. Further writes raise :class:`LogSinkWriteError`."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                self._handler.close()
            except Exception as exc:
                raise LogSinkWriteError(f"Failed to close {type(self._handler).__name__}") from exc

    def format_message(self, message: LogMessage) -> str:
        """Render ``message`` as a log line, followed by its exception block if any."""
        formatted = "{0} [{1}] [{2}] {3}".format(
            datetime_to_str(message.timestamp, self._config.time_format),
            message.level,
            threading.current_thread().name,
            message.text,
        )
        if message.exception is not None:
            formatted += "\n" + format_exception(message.exception, self._config.base_level)
        return formatted

    def _emit(self, level: LogLevel, fmt: str, args: tuple, exc: Optional[BaseException]) -> None:
        if not self.is_enabled_for(level):
            return
        text = fmt.format(*args) if args else fmt
        self._write(self.format_message(LogMessage(level, text, exc)), level)

    def _write(self, text: str, level: LogLevel) -> None:
        with self._lock:
            self._check_open()
            try:
                self._handler.write(text, level)
                self._handler.flush()
            except Exception as exc:
                raise LogSinkWriteError(f"Failed to write log entry to {type(self._handler).__name__}") from exc

    def _check_open(self) -> None:
        if self._closed:
            raise LogSinkWriteError("Logger is closed")


def format_exception(exc: BaseException, log_level: LogLevel) -> str:
    """Render ``exc`` and its causal chain; the stack trace only at DEBUG.

    :param exc: Outermost exception.
    :param log_level: Level of the logger doing the rendering.
    :return: Multi-line block without a trailing newline.
    """
    site, source = _origin(exc)
    lines = [
        "Exception: " + _describe(exc),
        "  Message: " + str(exc),
        "  Site   : " + site,
        "  Source : " + source,
    ]
    for inner in iter_causes(exc):
        lines.append("Inner Exception:")
        lines.append("\t" + _describe(inner))
        lines.append("\t Message: " + str(inner))
    if log_level == LogLevel.DEBUG:
        lines.append("Stack Trace:")
        lines.append("".join(traceback.format_tb(exc.__traceback__)).rstrip("\n"))
    return "\n".join(lines)


def iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Yield the errors that caused ``exc``, outermost first, stopping on cycles."""
    seen = {id(exc)}
    inner = _cause_of(exc)
    while inner is not None and id(inner) not in seen:
        seen.add(id(inner))
        yield inner
        inner = _cause_of(inner)


def _cause_of(exc: BaseException) -> Optional[BaseException]:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__


def _describe(exc: BaseException) -> str:
    return "".join(traceback.format_exception_only(type(exc), exc)).strip()


def _origin(exc: BaseException) -> tuple:
    # Innermost traceback frame is where the exception was raised.
    tb = exc.__traceback__
    if tb is None:
        return "", ""
    while tb.tb_next is not None:
        tb = tb.tb_next
    code = tb.tb_frame.f_code
    site = f"{code.co_name} ({code.co_filename}:{tb.tb_lineno})"
    source = tb.tb_frame.f_globals.get("__name__", "")
    return site, source
