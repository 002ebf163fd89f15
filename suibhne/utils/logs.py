"""Logging setup for the daemon and log file lookup for the CLI."""

import logging
import sys
from datetime import date
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_for(log_dir: Path, day: date | None = None) -> Path:
    """Get the daily log file path, e.g. ``logs/2024-01-15.log``."""
    day = day or date.today()
    return log_dir / f"{day.isoformat()}.log"


def setup_logging(log_dir: Path | None = None, level: str = "INFO", verbose: bool = False) -> None:
    """Configure logging for the daemon.

    Logs go to stderr and, when ``log_dir`` is given, to today's log file.

    Args:
        log_dir: Directory for daily log files.
        level: Log level name from the config.
        verbose: Force DEBUG level.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file_for(log_dir), encoding="utf-8"))
        except OSError as e:
            print(f"Warning: cannot write logs to {log_dir}: {e}", file=sys.stderr)

    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def tail_lines(path: Path, count: int) -> list[str]:
    """Return the last ``count`` non-empty lines of a log file."""
    with open(path, encoding="utf-8", errors="replace") as f:
        lines = [line.rstrip("\n") for line in f if line.strip()]
    return lines[-count:] if count > 0 else []
