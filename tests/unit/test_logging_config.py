import logging

import pytest

from kubecost_exporter import logging_config
from kubecost_exporter.logging_config import ColoredFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_level_and_handler():
    setup_logging("debug", use_color=False)
    root = logging.getLogger()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_unknown_level_falls_back_to_info():
    setup_logging("chatty", use_color=False)
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "exporter.log"
    setup_logging("INFO", log_file=log_file, format_style="simple", use_color=False)

    logging.getLogger("kubecost_exporter.test").info("Updated 3 gauges")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "INFO - Updated 3 gauges" in log_file.read_text(encoding="utf-8")


class _Terminal:
    def isatty(self):
        return True


def test_colored_formatter_leaves_record_untouched(monkeypatch):
    monkeypatch.setattr(logging_config.sys, "stdout", _Terminal())
    record = logging.LogRecord("x", logging.ERROR, __file__, 1, "boom", None, None)

    output = ColoredFormatter("%(levelname)s %(message)s").format(record)

    assert output == "\033[31mERROR\033[0m boom"
    assert record.levelname == "ERROR"
