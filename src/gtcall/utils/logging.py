"""
Logging setup and timing helpers shared by the pipeline stages.

Log records go to a rich console on stderr (the same console that draws
progress bars) and, for batch runs, optionally to a plain-text file.
"""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps
from typing import Any

import pysam
from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "console",
    "setup_logging",
    "get_logger",
    "timed",
    "log_call",
]

# Shared by log records and progress bars
console = Console(stderr=True)

FILE_LOG_FORMAT = "%(asctime)s %(processName)s %(name)s %(levelname)s: %(message)s"


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """
    Route log records to the console, and to ``log_file`` if given.

    Verbose runs log at DEBUG and let htslib print its own warnings (stale
    index files, missing EOF markers); otherwise htslib is silenced.
    """
    handlers: list[logging.Handler] = [
        RichHandler(console=console, rich_tracebacks=True, markup=True, show_path=verbose)
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    pysam.set_verbosity(3 if verbose else 0)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def timed(stage: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """Log the wall time of a pipeline stage at DEBUG."""
    log = logger or logging.getLogger(__name__)
    start = time.perf_counter()
    try:
        yield
    finally:
        log.debug("%s took %.3fs", stage, time.perf_counter() - start)


def log_call(logger: logging.Logger | None = None) -> Callable:
    """
    Decorate a unit of work (e.g. one window of reads).

    Its duration is logged at DEBUG. A failure is logged with its traceback
    and re-raised, so the run still aborts.
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log = logger or logging.getLogger(func.__module__)
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception:
                log.exception("%s failed after %.3fs", func.__name__, time.perf_counter() - start)
                raise
            log.debug("%s finished in %.3fs", func.__name__, time.perf_counter() - start)
            return result

        return wrapper

    return decorator
