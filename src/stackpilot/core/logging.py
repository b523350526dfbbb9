"""
structlog setup.

The terminal belongs to the UI while a deployment runs, so log records go to
a file as JSON lines rather than to stdout/stderr.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TextIO

import structlog

_log_file: TextIO | None = None


def configure_logging(level: str = "INFO", path: Path | None = None) -> None:
    """
    Route structlog (and stdlib ``logging``) output to ``path``.

    With ``path=None`` records are discarded, which is what tests and
    non-interactive callers usually want.
    """
    global _log_file

    if _log_file is not None:
        _log_file.close()
        _log_file = None

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO

    logger_factory: structlog.ReturnLoggerFactory | structlog.WriteLoggerFactory
    if path is None:
        logger_factory = structlog.ReturnLoggerFactory()
        logging.basicConfig(handlers=[logging.NullHandler()], level=numeric, force=True)
    else:
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        _log_file = path.open("a", encoding="utf-8")
        logger_factory = structlog.WriteLoggerFactory(file=_log_file)
        logging.basicConfig(
            stream=_log_file,
            level=numeric,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            force=True,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=logger_factory,
        cache_logger_on_first_use=False,
    )
