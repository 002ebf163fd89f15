"""Utility functions."""

from suibhne.utils.logs import log_file_for, setup_logging, tail_lines

__all__ = ["log_file_for", "setup_logging", "tail_lines"]
