import io
import threading

import pytest

from configs.env_config import Environment
from core.core_manager import BootstrapState
from core.exceptions import (
    BootstrapLoadError,
    BootstrapStateError,
    ConfigurationLoadError,
    ProcessAlreadyActiveError,
    ProcessStartError,
)
from model.app_config import AppConfig, Configuration
from utils.logger.config import LogLevel, LogType
from utils.logger.parser import parse_log_line
from virtualization.engine import LIB_TO_INJECT_ENV


def test_construction_subscribes_to_exit_signal_once(make_manager, exit_hooks):
    manager = make_manager()
    assert exit_hooks == [manager.notify_exit]
    assert manager.state is BootstrapState.UNINITIALIZED


def test_singletons_unavailable_before_initialize(make_manager):
    manager = make_manager()
    with pytest.raises(BootstrapStateError):
        manager.logger
    with pytest.raises(BootstrapStateError):
        manager.configuration
    assert manager.process is None


def test_initialize_development_uses_debug_console_logger(make_manager, configuration, bootstrap_stream):
    manager = make_manager(environment=Environment.DEVELOPMENT)
    manager.initialize()

    assert manager.state is BootstrapState.INITIALIZED
    assert manager.configuration is configuration
    assert manager.logger.log_type is LogType.CONSOLE
    assert manager.logger.level is LogLevel.DEBUG
    assert "Core initialized (development" in bootstrap_stream.getvalue()


def test_initialize_production_publishes_configured_logger(make_manager, tmp_path, bootstrap_stream):
    log_file = tmp_path / "logs" / "core.log"
    configuration = Configuration(log_type=LogType.FILE, log_level=LogLevel.INFORMATION, log_file=str(log_file))
    manager = make_manager(environment=Environment.PRODUCTION, config_loader=lambda: configuration)

    manager.initialize()
    try:
        assert manager.logger.log_type is LogType.FILE
        assert manager.logger.level is LogLevel.INFORMATION
        manager.logger.message("to the file")
        assert parse_log_line(log_file.read_text(encoding="utf-8")).text == "to the file"
        assert bootstrap_stream.getvalue() == ""
    finally:
        manager.logger.close()


def test_initialize_production_console_logger_uses_configured_level(make_manager, bootstrap_stream):
    manager = make_manager(
        environment=Environment.PRODUCTION,
        config_loader=lambda: Configuration(log_level=LogLevel.ERROR),
    )
    manager.initialize()

    manager.logger.warning("filtered")
    manager.logger.error("kept")
    assert [parse_log_line(line).text for line in bootstrap_stream.getvalue().splitlines()] == ["kept"]


def test_initialize_twice_is_rejected(make_manager):
    manager = make_manager()
    manager.initialize()
    logger = manager.logger

    with pytest.raises(BootstrapStateError):
        manager.initialize()
    assert manager.logger is logger


@pytest.mark.parametrize("environment", [Environment.DEVELOPMENT, Environment.PRODUCTION])
def test_configuration_failure_is_fatal_and_logged(make_manager, bootstrap_stream, environment):
    def failing_loader():
        raise ConfigurationLoadError("Configuration file not found: appstract.yaml", source="appstract.yaml")

    manager = make_manager(environment=environment, config_loader=failing_loader)

    with pytest.raises(ConfigurationLoadError):
        manager.initialize()

    assert manager.state is BootstrapState.UNINITIALIZED
    with pytest.raises(BootstrapStateError):
        manager.logger
    header = bootstrap_stream.getvalue().splitlines()[0]
    assert parse_log_line(header).level is LogLevel.CRITICAL
    assert "Configuration file not found" in bootstrap_stream.getvalue()


def test_unexpected_loader_error_is_wrapped(make_manager):
    def failing_loader():
        raise KeyError("app")

    manager = make_manager(config_loader=failing_loader)
    with pytest.raises(ConfigurationLoadError) as info:
        manager.initialize()
    assert isinstance(info.value.__cause__, KeyError)


def test_unopenable_log_file_is_a_configuration_error(make_manager, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    configuration = Configuration(log_type=LogType.FILE, log_file=str(blocker / "core.log"))
    manager = make_manager(environment=Environment.PRODUCTION, config_loader=lambda: configuration)

    with pytest.raises(ConfigurationLoadError):
        manager.initialize()
    assert manager.state is BootstrapState.UNINITIALIZED


def test_start_process_requires_initialize(make_manager, dummy_engine):
    manager = make_manager()
    with pytest.raises(BootstrapStateError):
        manager.start_process()
    assert dummy_engine.started == []


def test_start_process_missing_file(make_manager, dummy_engine):
    manager = make_manager()
    manager.initialize()

    with pytest.raises(BootstrapLoadError) as info:
        manager.start_process("missing-file")

    assert info.value.source == "missing-file"
    assert "missing-file could not be found" in str(info.value)
    assert manager.process is None
    assert manager.state is BootstrapState.INITIALIZED
    assert dummy_engine.started == []


def test_start_process_invalid_data(make_manager, tmp_path):
    broken = tmp_path / "broken.yaml"
    broken.write_text("name: no executable\n", encoding="utf-8")
    manager = make_manager()
    manager.initialize()

    with pytest.raises(BootstrapLoadError):
        manager.start_process(str(broken))
    assert manager.process is None


def test_start_process_uses_default_application_data(make_manager, dummy_engine, app_data_file):
    manager = make_manager()
    manager.initialize()

    process = manager.start_process()

    assert dummy_engine.started == [process]
    assert manager.process is process
    assert manager.state is BootstrapState.PROCESS_ACTIVE
    assert process.start_info.name == "notepad"
    assert process.start_info.command[1:] == ("-c", "pass")
    assert process.start_info.environment["GREETING"] == "hello"
    assert process.start_info.environment[LIB_TO_INJECT_ENV] == "AppStract.Inject.dll"


def test_start_process_without_default_file(make_manager, dummy_engine):
    manager = make_manager(config_loader=lambda: Configuration(app_config=AppConfig()))
    manager.initialize()

    with pytest.raises(BootstrapLoadError) as info:
        manager.start_process()
    assert "No default application data file configured" in str(info.value)
    assert dummy_engine.started == []


def test_start_process_rejected_while_running(make_manager, dummy_engine, app_data_file):
    manager = make_manager()
    manager.initialize()
    first = manager.start_process(str(app_data_file))

    with pytest.raises(ProcessAlreadyActiveError) as info:
        manager.start_process(str(app_data_file))

    assert info.value.pid == first.pid
    assert manager.process is first
    assert len(dummy_engine.started) == 1


def test_start_process_replaces_exited_process(make_manager, dummy_engine, bootstrap_stream):
    manager = make_manager()
    manager.initialize()
    first = manager.start_process()
    first.finish(0)

    second = manager.start_process()

    assert second is not first
    assert manager.process is second
    assert manager.state is BootstrapState.PROCESS_ACTIVE
    assert f"Replacing exited process (pid={first.pid}, exit code 0)" in bootstrap_stream.getvalue()


def test_engine_failure_leaves_no_handle(make_manager):
    class FailingEngine:
        def start(self, start_info):
            raise ProcessStartError("Unable to start notepad")

    manager = make_manager(engine=FailingEngine())
    manager.initialize()

    with pytest.raises(ProcessStartError):
        manager.start_process()
    assert manager.process is None
    assert manager.state is BootstrapState.INITIALIZED


def test_concurrent_start_process_yields_one_handle(make_manager, dummy_engine):
    manager = make_manager()
    manager.initialize()
    barrier = threading.Barrier(4)
    outcomes = []

    def worker():
        barrier.wait()
        try:
            manager.start_process()
            outcomes.append("started")
        except ProcessAlreadyActiveError:
            outcomes.append("rejected")

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["rejected", "rejected", "rejected", "started"]
    assert len(dummy_engine.started) == 1


def test_bootstrap_stream_defaults_to_stderr(make_manager, capsys):
    manager = make_manager(bootstrap_stream=None)
    manager.initialize()
    manager.logger.warning("on stderr")
    assert "on stderr" in capsys.readouterr().err


def test_manager_uses_real_configuration_file(tmp_path, app_data_file, dummy_engine, exit_hooks):
    from configs.loader import load_configuration
    from core.core_manager import CoreManager

    config_file = tmp_path / "appstract.yaml"
    config_file.write_text(
        "app:\n"
        "  lib_to_inject: AppStract.Inject.dll\n"
        f"  default_application_data_file: {app_data_file.name}\n"
        "log:\n"
        "  level: information\n",
        encoding="utf-8",
    )
    manager = CoreManager(
        environment=Environment.PRODUCTION,
        config_loader=lambda: load_configuration(config_file),
        engine=dummy_engine,
        exit_hook=exit_hooks.append,
        bootstrap_stream=io.StringIO(),
    )
    manager.initialize()

    assert manager.start_process().start_info.name == "notepad"
