import io
import sys
from typing import List, Optional

import pytest
import yaml

from configs.env_config import Env, Environment
from core.core_manager import CoreManager
from model.app_config import AppConfig, Configuration
from utils.logger.config import LogLevel
from utils.logger.handlers.base import BaseLogHandler
from virtualization.engine import VirtualizationEngine, VirtualizedProcess


@pytest.fixture(autouse=True)
def no_log_level_override(monkeypatch):
    monkeypatch.setattr(Env, "APPSTRACT_LOG_LEVEL", None)


class RecordingHandler(BaseLogHandler):
    """Keeps every write and flush so tests can inspect the call sequence."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list = []
        self.closed = False

    def write(self, text: str, level: LogLevel) -> None:
        self.calls.append(("write", text, level))

    def flush(self) -> None:
        self.calls.append(("flush",))

    def close(self) -> None:
        self.closed = True

    @property
    def lines(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "write"]


@pytest.fixture
def recording_handler() -> RecordingHandler:
    return RecordingHandler()


class DummyProcess(VirtualizedProcess):
    def __init__(self, pid: int, start_info) -> None:
        self._pid = pid
        self._exit_code: Optional[int] = None
        self.start_info = start_info
        self.terminated = False

    @property
    def pid(self):
        return self._pid

    @property
    def exit_code(self):
        return self._exit_code

    def finish(self, code: int = 0) -> None:
        self._exit_code = code

    def wait(self, timeout=None) -> int:
        if self._exit_code is None:
            self._exit_code = 0
        return self._exit_code

    def terminate(self) -> None:
        self.terminated = True
        self._exit_code = -15


class DummyEngine(VirtualizationEngine):
    def __init__(self) -> None:
        self.started: List[DummyProcess] = []

    def start(self, start_info) -> DummyProcess:
        process = DummyProcess(1000 + len(self.started), start_info)
        self.started.append(process)
        return process


@pytest.fixture
def dummy_engine() -> DummyEngine:
    return DummyEngine()


@pytest.fixture
def app_data_file(tmp_path):
    path = tmp_path / "app.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "name": "notepad",
                "executable": sys.executable,
                "arguments": ["-c", "pass"],
                "environment": {"GREETING": "hello"},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def configuration(app_data_file) -> Configuration:
    return Configuration(
        app_config=AppConfig(
            lib_to_inject="AppStract.Inject.dll",
            libs_to_register=("AppStract.Core.dll", "AppStract.Hooks.dll"),
            default_application_data_file=str(app_data_file),
        ),
    )


@pytest.fixture
def exit_hooks() -> list:
    return []


@pytest.fixture
def bootstrap_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def make_manager(configuration, dummy_engine, exit_hooks, bootstrap_stream):
    def _factory(**overrides) -> CoreManager:
        kwargs = {
            "environment": Environment.TESTING,
            "config_loader": lambda: configuration,
            "engine": dummy_engine,
            "exit_hook": exit_hooks.append,
            "bootstrap_stream": bootstrap_stream,
        }
        kwargs.update(overrides)
        return CoreManager(**kwargs)

    return _factory
