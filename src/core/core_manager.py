"""Process bootstrap: logger and configuration setup, virtualized process lifecycle."""

from __future__ import annotations

import atexit
import sys
import threading
import traceback
from enum import Enum
from typing import Callable, List, Optional, TextIO

from configs.env_config import Env, Environment
from configs.loader import load_configuration
from core.exceptions import (
    BootstrapLoadError,
    BootstrapStateError,
    ConfigurationLoadError,
    LogSinkWriteError,
    ProcessAlreadyActiveError,
)
from model.app_config import Configuration
from model.application_data import ApplicationData, load_application_data
from utils.logger.config import LogLevel
from utils.logger.logger import Logger
from utils.logger_factory import LoggerFactory, log_exception
from virtualization.engine import (
    SubprocessEngine,
    VirtualizationEngine,
    VirtualizedProcess,
    VirtualProcessStartInfo,
)

ExitHandler = Callable[["CoreManager"], None]


class BootstrapState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PROCESS_ACTIVE = "process_active"
    EXIT_NOTIFYING = "exit_notifying"
    TERMINATED = "terminated"


class CoreManager:
    """Owns the process-wide logger, configuration and virtualized process handle.

    Build exactly one per program and hand it to the components that need the
    logger or the configuration. The exit signal is subscribed to on
    construction; :meth:`initialize` must run before anything else.
    """

    def __init__(
        self,
        *,
        environment: Optional[Environment] = None,
        config_loader: Callable[[], Configuration] = load_configuration,
        data_loader: Callable[[str], Optional[ApplicationData]] = load_application_data,
        engine: Optional[VirtualizationEngine] = None,
        exit_hook: Callable[[Callable[[], None]], object] = atexit.register,
        bootstrap_stream: Optional[TextIO] = None,
    ) -> None:
        """Wire the collaborators and subscribe to the exit signal.

        :param environment: Decides the logger policy; defaults to ``Env.environment()``.
        :param config_loader: Loads the process-wide configuration.
        :param data_loader: Loads application data; returns ``None`` on failure.
        :param engine: Engine spawning virtualized processes.
        :param exit_hook: Registers a callback for the "process is exiting" signal.
        :param bootstrap_stream: Console stream of the configuration-free
            logger used while configuration loads; ``sys.stderr`` when omitted.
        """
        self._environment = environment if environment is not None else Env.environment()
        self._config_loader = config_loader
        self._data_loader = data_loader
        self._engine = engine if engine is not None else SubprocessEngine()
        self._bootstrap_stream = bootstrap_stream

        self._state = BootstrapState.UNINITIALIZED
        self._state_lock = threading.RLock()
        self._logger: Optional[Logger] = None
        self._configuration: Optional[Configuration] = None
        self._process: Optional[VirtualizedProcess] = None

        self._exit_handlers: List[ExitHandler] = []
        self._exit_lock = threading.Lock()
        self._exit_notified = False

        exit_hook(self.notify_exit)

    @property
    def state(self) -> BootstrapState:
        return self._state

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def logger(self) -> Logger:
        """The published logger.

        :raises BootstrapStateError: Before :meth:`initialize` succeeded.
        """
        if self._logger is None:
            raise BootstrapStateError("CoreManager is not initialized")
        return self._logger

    @property
    def configuration(self) -> Configuration:
        """The published configuration.

        :raises BootstrapStateError: Before :meth:`initialize` succeeded.
        """
        if self._configuration is None:
            raise BootstrapStateError("CoreManager is not initialized")
        return self._configuration

    @property
    def process(self) -> Optional[VirtualizedProcess]:
        """The active process handle, if one was started."""
        return self._process

    def initialize(self) -> None:
        """Select the logger and load the configuration, then publish both.

        Development and testing use a console logger at DEBUG straight away.
        Production logs through a configuration-free console logger (WARNING,
        on the bootstrap stream) while loading, then publishes the logger the
        configuration asks for.

        :raises BootstrapStateError: If called more than once.
        :raises ConfigurationLoadError: If the configuration cannot be loaded.
        """
        with self._state_lock:
            if self._state is not BootstrapState.UNINITIALIZED:
                raise BootstrapStateError(f"CoreManager already initialized (state={self._state.value})")

            stream = self._bootstrap_stream if self._bootstrap_stream is not None else sys.stderr
            if self._environment is Environment.PRODUCTION:
                bootstrap_logger = LoggerFactory.create_console_logger(LogLevel.WARNING, stream=stream)
            else:
                bootstrap_logger = LoggerFactory.create_console_logger(LogLevel.DEBUG, stream=stream)

            try:
                configuration = self._config_loader()
            except ConfigurationLoadError as e:
                bootstrap_logger.critical("Unable to load configuration", exc=e)
                raise
            except Exception as e:
                bootstrap_logger.critical("Unable to load configuration", exc=e)
                raise ConfigurationLoadError(f"Unable to load configuration: {e}") from e

            if self._environment is Environment.PRODUCTION:
                try:
                    logger = LoggerFactory.create_from_configuration(configuration, stream=stream)
                except OSError as e:
                    bootstrap_logger.critical("Unable to open the configured log destination", exc=e)
                    raise ConfigurationLoadError(
                        f"Unable to open log file {configuration.log_file}: {e}",
                        source=configuration.log_file,
                    ) from e
            else:
                logger = bootstrap_logger

            self._logger = logger
            self._configuration = configuration
            self._state = BootstrapState.INITIALIZED
            logger.debug("Core initialized ({0}, log level {1})", self._environment.value, logger.level)

    def start_process(self, source: Optional[str] = None) -> VirtualizedProcess:
        """Start a virtualized process from application data.

        :param source: Application data file; the configured default when ``None``.
        :return: Handle of the started process, now the active one.
        :raises BootstrapStateError: If not initialized, or exit has been signalled.
        :raises ProcessAlreadyActiveError: If the active process is still running.
        :raises BootstrapLoadError: If the application data is missing or invalid.
        :raises ProcessStartError: If the engine cannot spawn the process.
        """
        with self._state_lock:
            if self._state not in (BootstrapState.INITIALIZED, BootstrapState.PROCESS_ACTIVE):
                raise BootstrapStateError(f"Cannot start a process in state {self._state.value}")

            if source is None:
                source = self._configuration.app_config.default_application_data_file
                if not source:
                    raise BootstrapLoadError(source, "No default application data file configured")

            if self._process is not None:
                if self._process.is_running():
                    raise ProcessAlreadyActiveError(self._process.pid)
                self._logger.warning(
                    "Replacing exited process (pid={0}, exit code {1})",
                    self._process.pid,
                    self._process.exit_code,
                )

            data = self._data_loader(source)
            if data is None:
                raise BootstrapLoadError(source)

            start_info = VirtualProcessStartInfo.from_application_data(data, self._configuration.app_config)
            self._logger.message("Starting {0} from {1}", start_info.name, source)
            process = self._engine.start(start_info)

            self._process = process
            self._state = BootstrapState.PROCESS_ACTIVE
            self._logger.debug("Started process pid={0}", process.pid)
            return process

    def add_exit_handler(self, handler: ExitHandler) -> None:
        """Register ``handler(manager)`` to run when the process is exiting.

        Handlers run synchronously, in registration order, and must return quickly.
        """
        with self._exit_lock:
            self._exit_handlers.append(handler)

    def remove_exit_handler(self, handler: ExitHandler) -> None:
        with self._exit_lock:
            self._exit_handlers.remove(handler)

    def notify_exit(self) -> None:
        """Deliver the exit event to every handler, once per process lifetime.

        Waits for an in-flight :meth:`start_process` and pending log writes
        before notifying. A failing handler is logged and the remaining
        handlers still run.
        """
        with self._exit_lock:
            if self._exit_notified:
                return
            self._exit_notified = True
            handlers = list(self._exit_handlers)

        with self._state_lock:
            self._state = BootstrapState.EXIT_NOTIFYING

        logger = self._logger
        if logger is not None:
            try:
                logger.flush()
            except LogSinkWriteError:
                traceback.print_exc(file=sys.stderr)
                logger = None

        try:
            for handler in handlers:
                try:
                    handler(self)
                except Exception as e:
                    self._report_handler_failure(logger, handler, e)
        finally:
            self._state = BootstrapState.TERMINATED

    @staticmethod
    def _report_handler_failure(logger: Optional[Logger], handler: ExitHandler, exc: Exception) -> None:
        name = getattr(handler, "__qualname__", repr(handler))
        if logger is not None:
            try:
                log_exception(logger, exc, context=f"exit handler {name}")
                return
            except LogSinkWriteError:
                pass
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
