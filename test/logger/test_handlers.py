import io

import pytest
from colorama import Fore, Style

from utils.logger.config import LogLevel
from utils.logger.handlers.console import ConsoleHandler
from utils.logger.handlers.file import FileHandler
from utils.logger.handlers.stream import StreamHandler


def test_stream_handler_writes_lines():
    stream = io.StringIO()
    handler = StreamHandler(stream)
    handler.write("first", LogLevel.DEBUG)
    handler.write("second", LogLevel.ERROR)
    handler.flush()
    assert stream.getvalue() == "first\nsecond\n"


def test_stream_handler_requires_write_and_flush():
    with pytest.raises(TypeError):
        StreamHandler(object())


def test_console_handler_plain_for_non_tty():
    stream = io.StringIO()
    handler = ConsoleHandler(stream)
    handler.write("quiet", LogLevel.ERROR)
    assert handler.colorize is False
    assert stream.getvalue() == "quiet\n"


def test_console_handler_colors_by_level():
    stream = io.StringIO()
    handler = ConsoleHandler(stream, colorize=True)
    handler.write("careful", LogLevel.WARNING)
    assert stream.getvalue() == Fore.YELLOW + "careful" + Style.RESET_ALL + "\n"


def test_console_handler_close_leaves_stream_open():
    stream = io.StringIO()
    ConsoleHandler(stream).close()
    assert not stream.closed


def test_file_handler_creates_directories_and_appends(tmp_path):
    path = tmp_path / "logs" / "nested" / "core.log"

    handler = FileHandler(path)
    handler.write("one", LogLevel.WARNING)
    handler.flush()
    handler.close()

    handler = FileHandler(path)
    handler.write("two", LogLevel.ERROR)
    handler.close()

    assert path.read_text(encoding="utf-8") == "one\ntwo\n"


def test_file_handler_flush_makes_data_visible(tmp_path):
    path = tmp_path / "core.log"
    handler = FileHandler(path)
    handler.write("visible", LogLevel.INFORMATION)
    handler.flush()
    try:
        assert path.read_text(encoding="utf-8") == "visible\n"
    finally:
        handler.close()


def test_file_handler_rejects_writes_after_close(tmp_path):
    handler = FileHandler(tmp_path / "core.log")
    handler.close()
    handler.close()
    assert handler.closed
    with pytest.raises(ValueError):
        handler.write("late", LogLevel.ERROR)
