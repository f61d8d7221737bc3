"""Colored output utilities and logging."""

from __future__ import annotations

import logging
import sys

# ANSI color codes
RED = "\033[31m"
YELLOW = "\033[33m"
CYAN = "\033[36m"
DIM = "\033[2m"
BOLD = "\033[1m"
NC = "\033[0m"  # No color / reset

_logger = logging.getLogger("essh")


class ColoredFormatter(logging.Formatter):
    """Formatter that colors records by level when stderr is a TTY."""

    def format(self, record: logging.LogRecord) -> str:
        msg = super().format(record)
        if not _supports_color():
            return msg
        if record.levelno >= logging.ERROR:
            return f"{RED}{msg}{NC}"
        elif record.levelno >= logging.WARNING:
            return f"{YELLOW}{msg}{NC}"
        elif record.levelno <= logging.DEBUG:
            return f"{DIM}{msg}{NC}"
        return msg


def setup_logging(debug: bool = False) -> None:
    """Configure the essh logger.

    Args:
        debug: If True, log at DEBUG level. Otherwise, WARNING.
    """
    level = logging.DEBUG if debug else logging.WARNING
    _logger.setLevel(level)

    if not _logger.handlers:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(ColoredFormatter("%(message)s"))
        _logger.addHandler(stream_handler)
    else:
        for h in _logger.handlers:
            h.setLevel(level)


def get_logger() -> logging.Logger:
    return _logger


def debug(msg: str) -> None:
    """Log debug message (only shown with --debug)."""
    _logger.debug(msg)


def _supports_color(stream: object = None) -> bool:
    if stream is None:
        stream = sys.stderr
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not callable(isatty):
        return False
    return bool(isatty())


def _colorize(color: str, text: str, stream: object = None) -> str:
    if _supports_color(stream):
        return f"{color}{text}{NC}"
    return text


def error(msg: str) -> None:
    """Print error message to stderr."""
    print(_colorize(RED, f"error: {msg}"), file=sys.stderr)


def warn(msg: str) -> None:
    """Print warning message to stderr."""
    print(_colorize(YELLOW, f"warning: {msg}"), file=sys.stderr)


def info(msg: str) -> None:
    print(_colorize(CYAN, msg), file=sys.stderr)


def format_row(name: str, description: str, extra: list[str], hidden: bool = False) -> str:
    """Format one line of a host or task listing (for stdout).

    Hidden entries are dimmed, extra columns (tags, targets) are
    bracketed after the description.
    """
    name_col = _colorize(DIM if hidden else BOLD, name, sys.stdout)
    line = f"{name_col}  {description}" if description else name_col
    if extra:
        line += "  " + _colorize(CYAN, "[" + ", ".join(extra) + "]", sys.stdout)
    return line
