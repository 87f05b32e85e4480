"""Factories for application loggers and helper utilities."""

from pathlib import Path
from typing import Optional, TextIO, Union

from model.app_config import Configuration
from utils.logger.config import LogLevel, LoggerConfig, LogType
from utils.logger.handlers.console import ConsoleHandler
from utils.logger.handlers.file import FileHandler
from utils.logger.logger import Logger


class LoggerFactory:
    """Convenience constructors for the console and file loggers."""

    @staticmethod
    def create_console_logger(log_level: LogLevel = LogLevel.DEBUG,
                              stream: Optional[TextIO] = None,
                              colorize: Optional[bool] = None) -> Logger:
        """Create a logger writing to the console.

        :param log_level: Most permissive level written.
        :param stream: Console stream; ``sys.stdout`` when omitted.
        :param colorize: Force coloring on or off; ``None`` colors TTYs only.
        :return: Configured :class:`Logger` instance.
        """
        config = LoggerConfig(log_type=LogType.CONSOLE, base_level=log_level)
        return Logger(ConsoleHandler(stream, colorize=colorize), config)

    @staticmethod
    def create_file_logger(path: Union[str, Path],
                           log_level: LogLevel = LogLevel.WARNING) -> Logger:
        """Create a logger appending to ``path``.

        :param path: Log file, parent directories are created.
        :param log_level: Most permissive level written.
        :return: Configured :class:`Logger` instance.
        :raises OSError: If the file cannot be opened.
        """
        config = LoggerConfig(log_type=LogType.FILE, base_level=log_level)
        return Logger(FileHandler(path), config)

    @staticmethod
    def create_from_configuration(configuration: Configuration,
                                  stream: Optional[TextIO] = None) -> Logger:
        """Create the logger described by the loaded configuration.

        :param configuration: Process-wide configuration.
        :param stream: Console stream used when the configuration asks for one.
        :return: Console or file :class:`Logger`.
        """
        if configuration.log_type is LogType.FILE:
            return LoggerFactory.create_file_logger(configuration.log_file, configuration.log_level)
        return LoggerFactory.create_console_logger(configuration.log_level, stream=stream)


def log_exception(logger: Logger, exc: BaseException, context: str = ""):
    """Log an exception, with its causes, using the provided logger.

    :param logger: Logger instance used for reporting the failure.
    :param exc: Exception that should be logged.
    :param context: Optional textual context describing the failure.
    """
    logger.error("EXCEPTION in {0}: {1}: {2}", context, type(exc).__name__, exc, exc=exc)
