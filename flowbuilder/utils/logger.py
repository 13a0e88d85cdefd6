"""Project logging setup.

``init_logger`` (re)configures the ``flowbuilder`` logger; modules grab a
child with ``get_logger(__name__)``. Both the engine and the server log
under that one tree, so a single LOG_LEVEL controls everything.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

ROOT_LOGGER = "flowbuilder"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ANSI colours, checked from the most severe level down
_COLOURS = (
    (logging.ERROR, "\033[91m"),
    (logging.WARNING, "\033[93m"),
    (logging.INFO, "\033[92m"),
)


def _env_level(default: str = "INFO") -> int:
    """LOG_LEVEL from env as a logging level; unknown names fall back to INFO."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", default).strip().upper())
    return level if isinstance(level, int) else logging.INFO


class _ColourFormatter(logging.Formatter):
    """Colours whole lines by level when writing to a terminal."""

    def __init__(self, stream, **kwargs) -> None:
        super().__init__(**kwargs)
        self.enabled = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.enabled:
            return text
        for threshold, colour in _COLOURS:
            if record.levelno >= threshold:
                return f"{colour}{text}\033[0m"
        return text


def _file_handler(log_dir: Path, file_name: str, max_mb: int, backups: int) -> RotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_dir / file_name),
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def init_logger(
    level: int | None = None,
    log_dir: str | Path | None = None,
    file_name: str = "flowbuilder.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """Configure the project logger and return it.

    Args:
        level: logging level; LOG_LEVEL from env when None
        log_dir: directory for a rotating log file; LOG_DIR from env when None,
            no file when neither is set
        file_name: name of the log file inside ``log_dir``
        file_max_mb: size at which the file rotates
        file_backup: rotated files to keep

    Calling it again replaces (and closes) the handlers of the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False
    logger.setLevel(level if level is not None else _env_level())

    stream = logging.StreamHandler(sys.stdout)
    stream.setFormatter(_ColourFormatter(sys.stdout, fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(stream)

    log_dir = log_dir or os.getenv("LOG_DIR")
    if log_dir:
        logger.addHandler(_file_handler(Path(log_dir), file_name, file_max_mb, file_backup))

    return logger


def get_logger(child: str) -> logging.Logger:
    """Child of the project logger.

    Accepts a dotted module name; a leading ``flowbuilder.`` is stripped.
    """
    prefix = ROOT_LOGGER + "."
    if child.startswith(prefix):
        child = child[len(prefix):]
    return logging.getLogger(ROOT_LOGGER).getChild(child)
