# -*- coding: utf-8 -*-
"""pandas-ta-live -- loguru setup.

The library logs through loguru but stays silent until an application
calls :func:`setup_logger` (``logger.disable`` in the package __init__).
"""
from __future__ import annotations

import os
import sys
from typing import Optional

from loguru import logger

LOG_LEVEL_ENV = "PANDAS_TA_LIVE_LOG_LEVEL"

_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def resolve_level(
        verbose: bool = False, quiet: bool = False, level_override: Optional[str] = None
) -> str:
    """override > quiet > verbose > $PANDAS_TA_LIVE_LOG_LEVEL > WARNING"""
    if level_override:
        return level_override.upper()
    if quiet:
        return "ERROR"
    if verbose:
        return "DEBUG"
    return (os.getenv(LOG_LEVEL_ENV) or "WARNING").upper()


def setup_logger(
        verbose: bool = False, quiet: bool = False, level_override: Optional[str] = None
) -> int:
    """Route pandas-ta-live logs to stderr.  Returns the loguru handler id."""
    level = resolve_level(verbose, quiet, level_override)
    logger.remove()
    handler_id = logger.add(
        sys.stderr,
        level=level,
        format=_FORMAT,
        colorize=True,
        backtrace=False,
        diagnose=False,
    )
    logger.enable("pandas_ta_live")
    logger.debug("Logger initialized - Level: {}", level)
    return handler_id
