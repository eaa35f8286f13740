"""Parallel processing of independent work units with joblib."""

import logging
import os
from collections.abc import Callable, Sequence
from typing import Any

from joblib import Parallel, delayed
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

logger = logging.getLogger(__name__)


class ParallelProcessor:
    """Maps a function over work units in parallel, with an optional progress bar."""

    def __init__(
        self,
        n_jobs: int = -1,
        backend: str = "loky",
        console: Console | None = None,
    ):
        """
        Initialize parallel processor.

        Args:
            n_jobs: Number of parallel jobs (-1 for all CPUs)
            backend: joblib backend ('loky' for processes, 'threading' for threads)
            console: Console to draw progress on
        """
        self.n_jobs = n_jobs if n_jobs > 0 else (os.cpu_count() or 1)
        self.backend = backend
        self.console = console

    def map(
        self,
        func: Callable,
        items: Sequence[Any],
        description: str = "Processing",
        show_progress: bool = True,
    ) -> list[Any]:
        """
        Map function over items in parallel.

        Results are returned in the order of ``items``. Work units run in
        their own process or thread and must not share mutable state.

        Args:
            func: Function to apply
            items: Items to process
            description: Description for progress bar
            show_progress: Whether to show progress bar

        Returns:
            List of results
        """
        logger.debug(
            "Mapping %s over %d items with %d %s workers",
            getattr(func, "__name__", repr(func)), len(items), self.n_jobs, self.backend,
        )

        if self.n_jobs == 1:
            return self._map_serial(func, items, description, show_progress)

        if not show_progress:
            return Parallel(n_jobs=self.n_jobs, backend=self.backend)(
                delayed(func)(item) for item in items
            )

        with self._progress() as progress:
            task = progress.add_task(f"[cyan]{description}...", total=len(items))
            results = []
            with Parallel(n_jobs=self.n_jobs, backend=self.backend, return_as="generator") as parallel:
                for result in parallel(delayed(func)(item) for item in items):
                    results.append(result)
                    progress.update(task, advance=1)
            return results

    def _map_serial(
        self,
        func: Callable,
        items: Sequence[Any],
        description: str,
        show_progress: bool,
    ) -> list[Any]:
        if not show_progress:
            return [func(item) for item in items]

        with self._progress() as progress:
            task = progress.add_task(f"[cyan]{description}...", total=len(items))
            results = []
            for item in items:
                results.append(func(item))
                progress.update(task, advance=1)
            return results

    def _progress(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
            transient=True,
        )
