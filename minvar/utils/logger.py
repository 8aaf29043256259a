"""Logging configuration for minvar."""

import logging
import os
import sys

from minvar.config import SETTINGS


def _default_level() -> str:
    return os.getenv("MINVAR_LOG_LEVEL") or SETTINGS.get("app", {}).get("log_level", "INFO")


def setup_logger(name: str = "minvar", level: str | None = None) -> logging.Logger:
    """Create a stderr logger namespaced under ``minvar.``.

    The level comes from MINVAR_LOG_LEVEL, then ``app.log_level`` in
    settings.yaml, unless given explicitly.
    """
    logger = logging.getLogger(name if name.startswith("minvar") else f"minvar.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-24s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.propagate = False
    level = level or _default_level()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
