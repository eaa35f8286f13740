"""
Utility modules for gtcall.

Provides logging, timing, and other shared utilities.
"""

from .logging import console, get_logger, log_call, setup_logging, timed

__all__ = [
    "console",
    "get_logger",
    "log_call",
    "setup_logging",
    "timed",
]
