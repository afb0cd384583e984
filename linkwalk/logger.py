# === FILE: linkwalk/logger.py ===
"""Logging for LinkWalk.

One project logger, ``"LinkWalk"``, shared by every module::

    from linkwalk.logger import logger
    logger.info("Traversal started")

Diagnostics go to stderr because stdout carries the event lines of a run.
The CLI calls :func:`init_logging` to apply ``--log-level``, ``--log-file``
and ``--log-format``; the file handler rotates at 5 MiB.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Union

LOGGER_NAME: Final[str] = "LinkWalk"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _handlers(log_file: Union[str, Path, None], fmt: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(RotatingFileHandler(str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"))
    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Drop the current handlers of the project logger and install fresh ones."""
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    for old in list(lg.handlers):
        lg.removeHandler(old)
        old.close()
    for handler in _handlers(log_file, log_format):
        lg.addHandler(handler)
    lg.propagate = False
    return lg


logger: logging.Logger = init_logging()

__all__ = ["logger", "init_logging", "LOGGER_NAME"]
