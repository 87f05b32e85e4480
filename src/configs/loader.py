"""Load the process-wide :class:`model.app_config.Configuration` from YAML."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from configs.env_config import Env
from core.exceptions import ConfigurationLoadError
from model.app_config import AppConfig, Configuration
from utils.logger.config import LogLevel, LogType


def load_configuration(path: Optional[Union[str, Path]] = None) -> Configuration:
    """Read and validate the configuration file.

    :param path: Configuration file; defaults to ``Env.APPSTRACT_CONFIG``.
    :return: The loaded :class:`Configuration`.
    :raises ConfigurationLoadError: If the file is missing, unreadable or invalid.
    """
    path = Path(path if path is not None else Env.APPSTRACT_CONFIG)
    if not path.exists():
        raise ConfigurationLoadError(f"Configuration file not found: {path}", source=str(path))

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationLoadError(f"Unable to read configuration file {path}: {e}", source=str(path)) from e

    try:
        return parse_configuration(data, base_dir=path.parent)
    except (TypeError, ValueError) as e:
        raise ConfigurationLoadError(f"Invalid configuration in {path}: {e}", source=str(path)) from e


def parse_configuration(data: Dict[str, Any], base_dir: Optional[Path] = None) -> Configuration:
    """Build a :class:`Configuration` from the mapping stored in the YAML file.

    :param data: Parsed document with optional ``app`` and ``log`` sections.
    :param base_dir: Directory relative application-data paths resolve against.
    :raises TypeError: If a section or value has the wrong type.
    :raises ValueError: If a value is out of range.
    """
    if not isinstance(data, dict):
        raise TypeError(f"expected a mapping at the top level but got {type(data).__name__}")

    app = _section(data, "app")
    log = _section(data, "log")

    libs = app.get("libs_to_register") or []
    if not isinstance(libs, list) or not all(isinstance(lib, str) for lib in libs):
        raise TypeError("app.libs_to_register must be a list of strings")

    default_file = str(app.get("default_application_data_file") or "")
    if default_file and base_dir is not None and not Path(default_file).is_absolute():
        default_file = str(base_dir / default_file)

    app_config = AppConfig(
        lib_to_inject=str(app.get("lib_to_inject") or ""),
        libs_to_register=tuple(libs),
        default_application_data_file=default_file,
    )

    log_type = LogType(str(log.get("type", LogType.CONSOLE.value)).lower())
    level = Env.APPSTRACT_LOG_LEVEL or log.get("level", LogLevel.WARNING.name)
    log_file = log.get("file")
    if log_type is LogType.FILE and not log_file:
        raise ValueError("log.file is required when log.type is 'file'")
    if log_file and base_dir is not None and not Path(log_file).is_absolute():
        log_file = str(base_dir / log_file)

    return Configuration(
        app_config=app_config,
        log_type=log_type,
        log_level=LogLevel.parse(level),
        log_file=log_file,
    )


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise TypeError(f"'{key}' must be a mapping")
    return section
