"""Logging setup shared by every rewriter module.

Modules use::

    from rewriter.logging import get_logger
    logger = get_logger(__name__)

Configuration happens once, in ``create_app()``.
"""
from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int | str = logging.INFO, fmt: str = DEFAULT_FORMAT, stream=sys.stderr) -> None:
    """Install a single stream handler on the root logger; repeated calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(fmt))
        root.addHandler(handler)

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
