from dataclasses import dataclass, field
from typing import Optional, Tuple

from utils.logger.config import LogLevel, LogType


@dataclass(frozen=True)
class AppConfig:
    """Libraries the virtualized process is set up with."""

    lib_to_inject: str = ""
    libs_to_register: Tuple[str, ...] = ()
    default_application_data_file: str = ""


@dataclass(frozen=True)
class Configuration:
    """Process-wide configuration, loaded once during bootstrap."""

    app_config: AppConfig = field(default_factory=AppConfig)
    log_type: LogType = LogType.CONSOLE
    log_level: LogLevel = LogLevel.WARNING
    log_file: Optional[str] = None
