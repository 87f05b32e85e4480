"""Application data describing what the virtualized process runs."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml


@dataclass(frozen=True)
class ApplicationData:
    """Executable, arguments and environment of one virtualized application."""

    executable: str
    name: str = ""
    arguments: Tuple[str, ...] = ()
    working_directory: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)


def load_application_data(source: Union[str, Path, None]) -> Optional[ApplicationData]:
    """Load application data from a YAML file.

    :param source: Path of the application data file.
    :return: Parsed :class:`ApplicationData`, or ``None`` when the file is
        missing, unreadable or structurally invalid.
    """
    if not source:
        return None
    path = Path(source)
    if not path.is_file():
        return None

    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return None

    return parse_application_data(data, base_dir=path.parent)


def parse_application_data(data: Any, base_dir: Optional[Path] = None) -> Optional[ApplicationData]:
    """Validate a parsed document; ``None`` if it does not describe an application."""
    if not isinstance(data, dict):
        return None

    executable = data.get("executable")
    if not isinstance(executable, str) or not executable:
        return None

    arguments = data.get("arguments") or []
    if not isinstance(arguments, list):
        return None

    environment = data.get("environment") or {}
    if not isinstance(environment, dict):
        return None

    working_directory = data.get("working_directory")
    if working_directory is not None:
        if not isinstance(working_directory, str):
            return None
        if base_dir is not None and not Path(working_directory).is_absolute():
            working_directory = str(base_dir / working_directory)

    return ApplicationData(
        executable=executable,
        name=str(data.get("name") or Path(executable).stem),
        arguments=tuple(str(arg) for arg in arguments),
        working_directory=working_directory,
        environment={str(k): str(v) for k, v in environment.items()},
    )
