"""Unit tests for logging helpers."""

import logging
from datetime import date
from pathlib import Path

from suibhne.utils.logs import log_file_for, setup_logging, tail_lines


def test_log_file_for_day(tmp_path: Path) -> None:
    """Log files are named after the day."""
    assert log_file_for(tmp_path, date(2024, 1, 15)) == tmp_path / "2024-01-15.log"


def test_tail_lines(tmp_path: Path) -> None:
    """tail_lines returns the last non-empty lines."""
    path = tmp_path / "today.log"
    path.write_text("one\n\ntwo\nthree\n", encoding="utf-8")
    assert tail_lines(path, 2) == ["two", "three"]
    assert tail_lines(path, 10) == ["one", "two", "three"]


def test_setup_logging_writes_daily_file(tmp_path: Path) -> None:
    """setup_logging creates the log directory and today's file."""
    log_dir = tmp_path / "logs"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(log_dir, "DEBUG")
        logging.getLogger("suibhne.test").debug("hello from the test")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "hello from the test" in log_file_for(log_dir).read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = saved_handlers
        root.setLevel(saved_level)
