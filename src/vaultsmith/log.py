"""Logging setup: one stderr handler under the ``vaultsmith`` namespace."""

from __future__ import annotations

import logging
import sys

_ROOT = "vaultsmith"


def setup_logging(verbose: bool = False) -> None:
    """Configure the vaultsmith logger.  Safe to call more than once."""
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("vaultsmith: %(message)s"))
        logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a vaultsmith submodule (e.g. ``"git"``)."""
    return logging.getLogger(f"{_ROOT}.{name}")
