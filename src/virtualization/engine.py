"""Boundary to the engine that spawns virtualized processes."""

from __future__ import annotations

import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from core.exceptions import ProcessStartError
from model.app_config import AppConfig
from model.application_data import ApplicationData

LIB_TO_INJECT_ENV = "APPSTRACT_LIB_TO_INJECT"
LIBS_TO_REGISTER_ENV = "APPSTRACT_LIBS_TO_REGISTER"


@dataclass(frozen=True)
class VirtualProcessStartInfo:
    """Everything the engine needs to launch one virtualized process."""

    name: str
    command: Tuple[str, ...]
    working_directory: Optional[str] = None
    environment: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_application_data(
        cls, data: ApplicationData, app_config: Optional[AppConfig] = None
    ) -> "VirtualProcessStartInfo":
        """Combine application data with the libraries the child must load.

        :param data: Loaded application data.
        :param app_config: Injection settings; library names are handed to the
            child through its environment.
        """
        app_config = app_config or AppConfig()
        environment = dict(data.environment)
        if app_config.lib_to_inject:
            environment[LIB_TO_INJECT_ENV] = app_config.lib_to_inject
        if app_config.libs_to_register:
            environment[LIBS_TO_REGISTER_ENV] = os.pathsep.join(app_config.libs_to_register)
        return cls(
            name=data.name,
            command=(data.executable,) + tuple(data.arguments),
            working_directory=data.working_directory,
            environment=environment,
        )


class VirtualizedProcess(ABC):
    """Opaque handle to a running virtualized process."""

    @property
    @abstractmethod
    def pid(self) -> Optional[int]:
        raise NotImplementedError

    @property
    @abstractmethod
    def exit_code(self) -> Optional[int]:
        """Exit status, or ``None`` while the process is still running."""
        raise NotImplementedError

    def is_running(self) -> bool:
        return self.exit_code is None

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def terminate(self) -> None:
        raise NotImplementedError


class VirtualizationEngine(ABC):
    """Base class for engines able to launch a virtualized process."""

    @abstractmethod
    def start(self, start_info: VirtualProcessStartInfo) -> VirtualizedProcess:
        """Launch the process described by ``start_info``.

        :raises ProcessStartError: If the process cannot be spawned.
        """
        raise NotImplementedError


class SubprocessHandle(VirtualizedProcess):
    """Handle backed by a :class:`subprocess.Popen` child."""

    def __init__(self, popen: subprocess.Popen, start_info: VirtualProcessStartInfo) -> None:
        self._popen = popen
        self.start_info = start_info

    @property
    def pid(self) -> Optional[int]:
        return self._popen.pid

    @property
    def exit_code(self) -> Optional[int]:
        return self._popen.poll()

    def wait(self, timeout: Optional[float] = None) -> int:
        return self._popen.wait(timeout=timeout)

    def terminate(self) -> None:
        if self._popen.poll() is None:
            self._popen.terminate()


class SubprocessEngine(VirtualizationEngine):
    """Spawn the application directly as a child process of the host."""

    def __init__(self, inherit_environment: bool = True) -> None:
        """
        :param inherit_environment: Start from the host's environment before
            applying the start info's variables.
        """
        self.inherit_environment = inherit_environment

    def start(self, start_info: VirtualProcessStartInfo) -> VirtualizedProcess:
        env = dict(os.environ) if self.inherit_environment else {}
        env.update(start_info.environment)
        try:
            popen = subprocess.Popen(
                list(start_info.command),
                cwd=start_info.working_directory,
                env=env,
            )
        except (OSError, ValueError) as e:
            raise ProcessStartError(f"Unable to start {start_info.name or start_info.command[0]}: {e}") from e
        return SubprocessHandle(popen, start_info)
