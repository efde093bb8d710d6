"""Structured logging — JSON formatter and setup."""

from vinylwall.logging.formatter import JSONLogFormatter
from vinylwall.logging.setup import configure_logging

__all__ = ["JSONLogFormatter", "configure_logging"]
