"""Utility modules for the tilebot project."""

from .logger import get_logger, setup_logging, LogLevel
from .scheduler import IntervalTimer

__all__ = ['get_logger', 'setup_logging', 'LogLevel', 'IntervalTimer']
