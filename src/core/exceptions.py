"""Custom exceptions for the bootstrap and logging core."""

from typing import Optional


class CoreError(Exception):
    """Base exception for all core errors."""

    pass


class LoggerConstructionError(CoreError, ValueError):
    """Raised when a Logger is constructed without a sink to write to."""

    pass


class LogSinkWriteError(CoreError):
    """Raised when the logging sink cannot accept a write or a flush.

    Logging failures are never dropped; the caller of the logging operation
    receives this error with the sink's own error chained as its cause.
    """

    pass


class ConfigurationLoadError(CoreError):
    """Raised when the process-wide configuration cannot be loaded.

    This is fatal to bootstrap: no other core operation is defined afterwards.
    """

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        self.source = source
        super().__init__(message)


class BootstrapLoadError(CoreError):
    """Raised when application data is missing or invalid while starting a process."""

    def __init__(self, source: str, message: Optional[str] = None) -> None:
        self.source = source
        if message is None:
            message = (
                f"{source} could not be found or contains invalid data while trying"
                f" to start a new process based on this file."
            )
        super().__init__(message)


class BootstrapStateError(CoreError):
    """Raised when an operation is not allowed in the bootstrap's current state."""

    pass


class ProcessAlreadyActiveError(BootstrapStateError):
    """Raised when starting a process while the active one is still running."""

    def __init__(self, pid: Optional[int]) -> None:
        self.pid = pid
        super().__init__(f"A virtualized process is already running (pid={pid})")


class ProcessStartError(CoreError):
    """Raised when the virtualization engine fails to spawn a process."""

    pass
