"""Batch progress hook.

``run_batch`` opens one tracker per batch and reports every settled item with
its result. Front ends such as the CLI register a tracker factory (a tqdm bar
showing ok/failed counts) with ``set_tracker_factory``; by default nothing is
displayed.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Optional, Protocol


class BatchTracker(Protocol):
    """Receives one call per settled batch item."""

    def settled(self, title: str, ok: bool) -> None: ...


TrackerFactory = Callable[[int, str], ContextManager[BatchTracker]]


class _SilentTracker:
    def settled(self, title: str, ok: bool) -> None:
        return None


@contextmanager
def _silent_tracker(total: int, description: str) -> Iterator[BatchTracker]:
    yield _SilentTracker()


_tracker_factory: TrackerFactory = _silent_tracker


def set_tracker_factory(factory: Optional[TrackerFactory]) -> None:
    """Install the factory used for later batches; None restores silent tracking."""
    global _tracker_factory
    _tracker_factory = factory or _silent_tracker


@contextmanager
def track_batch(total: int, description: str) -> Iterator[BatchTracker]:
    with _tracker_factory(total, description) as tracker:
        yield tracker


__all__ = ["BatchTracker", "TrackerFactory", "set_tracker_factory", "track_batch"]
