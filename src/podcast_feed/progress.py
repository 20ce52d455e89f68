"""Pluggable progress reporting for feed downloads.

The downloader only knows the ``ProgressReporter`` protocol. Front ends decide
how progress is shown by registering a factory; the CLI installs a tqdm bar,
library callers get a silent reporter.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol


class ProgressReporter(Protocol):
    """Receives the number of bytes read since the previous call."""

    def update(self, advance: int) -> None: ...


ProgressFactory = Callable[[Optional[int], str], ContextManager[ProgressReporter]]


class SilentProgress:
    """Reporter that only counts what it is told."""

    def __init__(self) -> None:
        self.completed = 0

    def update(self, advance: int) -> None:
        self.completed += advance


@contextmanager
def silent_progress(total: Optional[int], description: str) -> Iterator[ProgressReporter]:
    yield SilentProgress()


_factory: ProgressFactory = silent_progress


def set_progress_factory(factory: Optional[ProgressFactory]) -> None:
    """Register the factory used for every subsequent download.

    Passing None restores the silent default.
    """
    global _factory
    _factory = factory or silent_progress


@contextmanager
def progress_context(total: Optional[int], description: str) -> Iterator[ProgressReporter]:
    """Open a reporter from the registered factory.

    Args:
        total: Expected number of bytes, or None when the size is unknown
        description: Short label shown next to the progress display
    """
    with _factory(total, description) as reporter:
        yield reporter


__all__ = [
    "ProgressFactory",
    "ProgressReporter",
    "SilentProgress",
    "progress_context",
    "set_progress_factory",
    "silent_progress",
]
