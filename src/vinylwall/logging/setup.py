"""Structured logging configuration."""

import logging
import sys

from vinylwall.logging.formatter import JSONLogFormatter


def configure_logging(level: str | int = logging.INFO, service: str = "vinylwall") -> None:
    """Set up structured JSON logging on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper() if isinstance(level, str) else level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONLogFormatter(service=service))
    root.addHandler(handler)
