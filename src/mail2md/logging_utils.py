#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mail2md/logging_utils.py
"""Logging setup for the ``mail2md`` command line.

The library modules only create ``logging.getLogger(__name__)`` loggers and
never attach handlers; handlers are installed here, once, by the CLI.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

PLAIN_FORMAT = "%(levelname)s: %(message)s"
TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] %(message)s"
TRACE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Encoding detectors used by BeautifulSoup log every candidate charset at DEBUG
NOISY_LOGGERS = ("charset_normalizer", "chardet")


def resolve_level(log_level: int | str) -> int:
    """Map a level name such as ``"info"`` to its numeric value.

    Unknown names fall back to ``logging.INFO``.
    """
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _make_handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
) -> logging.Logger:
    """Configure the root logger for a CLI run.

    Existing root handlers are replaced by a stderr handler and, when
    ``log_file`` is given, an append-mode file handler sharing its format.

    Parameters
    ----------
    log_level : int | str
        Numeric level or level name, e.g. ``"WARNING"``
    log_file : str, optional
        File that receives a copy of the log output
    trace_mode : bool, default False
        Use the trace format with timestamps, logger names and line numbers,
        and let the encoding detectors log below WARNING as well.

    Returns
    -------
    logging.Logger
        The root logger

    """
    level = resolve_level(log_level)
    if trace_mode:
        formatter = logging.Formatter(TRACE_FORMAT, datefmt=TRACE_DATE_FORMAT)
    else:
        formatter = logging.Formatter(PLAIN_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_make_handler(logging.StreamHandler(sys.stderr), level, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if trace_mode else max(level, logging.WARNING))

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as e:
            root_logger.warning("Cannot write log file %s: %s", log_file, e)
        else:
            root_logger.addHandler(_make_handler(file_handler, level, formatter))
            root_logger.debug("Also logging to %s", log_file)

    return root_logger
