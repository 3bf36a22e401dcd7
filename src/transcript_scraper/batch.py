"""Concurrent fan-out of per-episode operations with partial-failure reporting.

``run_batch`` launches one operation per item, waits for every one of them to
settle and partitions the results into a ``BatchReport``. One item failing (by
returning a ``Failure`` or by raising) never stops the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Sequence, Tuple, TypeVar, Union

from . import progress
from .outcome import Failure, Outcome

logger = logging.getLogger(__name__)

P = TypeVar("P")
T = TypeVar("T")

Operation = Callable[[str, P], Awaitable[Outcome[T]]]


@dataclass(frozen=True)
class BatchSuccess(Generic[T]):
    title: str
    value: T


@dataclass(frozen=True)
class BatchFailure:
    title: str
    cause: Failure


BatchItem = Union[BatchSuccess[Any], BatchFailure]


@dataclass(frozen=True)
class BatchReport(Generic[T]):
    """Aggregated outcome of one batch run.

    Every input item appears in exactly one of ``succeeded`` or ``failed``,
    in input order.
    """

    succeeded: Tuple[BatchSuccess[T], ...] = ()
    failed: Tuple[BatchFailure, ...] = ()

    @property
    def succeeded_titles(self) -> Tuple[str, ...]:
        return tuple(item.title for item in self.succeeded)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def has_failures(self) -> bool:
        return bool(self.failed)

    def format_summary(self) -> str:
        """Render the human-readable report.

        Example output::

            === Error List 1/3 ===
            Season 1 Specials
              pdf_saver error: Season 1 Specials
            === Succeeded 2/3 ===
            1x01 - Pilot
            1x02 - The Return
        """
        lines = [f"=== Error List {self.failure_count}/{self.total} ==="]
        for item in self.failed:
            lines.append(item.title)
            lines.extend(f"  {frame}" for frame in item.cause.trace.splitlines())
            lines.append(f"  cause: {item.cause.cause}")
        lines.append(f"=== Succeeded {self.success_count}/{self.total} ===")
        lines.extend(self.succeeded_titles)
        return "\n".join(lines)


async def _settle(
    title: str,
    payload: P,
    operation: Operation[P, T],
    semaphore: Optional[asyncio.Semaphore],
) -> BatchItem:
    try:
        if semaphore is None:
            result = await operation(title, payload)
        else:
            async with semaphore:
                result = await operation(title, payload)
    # An operation that raises is recorded like one that returned a Failure
    except Exception as exc:
        logger.warning(f"Operation raised for {title}: {exc}")
        return BatchFailure(title, Failure.from_exception(f"unexpected error: {title}", exc))

    if isinstance(result, Failure):
        logger.warning(f"Failed: {title}: {result.describe()}")
        return BatchFailure(title, result)
    return BatchSuccess(title, result.value)


async def run_batch(
    items: Sequence[Tuple[str, P]],
    operation: Operation[P, T],
    *,
    max_concurrency: Optional[int] = None,
    description: str = "Processing",
) -> BatchReport[T]:
    """Run ``operation(title, payload)`` for every item concurrently.

    Args:
        items: ``(title, payload)`` pairs. Titles label report entries.
        operation: Coroutine function returning an ``Outcome``.
        max_concurrency: Bound on operations in flight; None runs all at once.
        description: Label for the progress reporter.

    Returns:
        BatchReport with one entry per item. Never raises for item failures.
    """
    if max_concurrency is not None and max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got: {max_concurrency}")
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    with progress.track_batch(len(items), description) as tracker:

        async def _tracked(title: str, payload: P) -> BatchItem:
            settled = await _settle(title, payload, operation, semaphore)
            tracker.settled(title, isinstance(settled, BatchSuccess))
            return settled

        results = await asyncio.gather(*(_tracked(title, payload) for title, payload in items))

    succeeded = tuple(r for r in results if isinstance(r, BatchSuccess))
    failed = tuple(r for r in results if isinstance(r, BatchFailure))
    logger.debug(
        "Batch %r settled: %s succeeded, %s failed", description, len(succeeded), len(failed)
    )
    return BatchReport(succeeded=succeeded, failed=failed)


__all__ = ["BatchFailure", "BatchReport", "BatchSuccess", "run_batch"]
