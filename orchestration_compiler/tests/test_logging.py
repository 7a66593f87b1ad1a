from __future__ import annotations

import logging

from shared.logger import ColoredFormatter, get_logger


def test_get_logger_configures_once() -> None:
    first = get_logger("orchestration_compiler.tests.logging", level=logging.DEBUG)
    second = get_logger("orchestration_compiler.tests.logging", level=logging.ERROR)

    assert first is second
    assert first.level == logging.DEBUG
    assert first.propagate is False
    assert len(first.handlers) == 1


def test_colored_formatter_leaves_record_untouched() -> None:
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "careful", None, None)

    line = ColoredFormatter(fmt="%(levelname)s | %(message)s").format(record)

    assert line == "\033[33mWARNING\033[0m | careful"
    assert record.levelname == "WARNING"
