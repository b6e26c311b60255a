"""Bounded thread-pool fan-out used by the per-record stages."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, Iterator, Tuple, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def fan_out(
    items: Iterable[T],
    worker: Callable[[T], R],
    *,
    max_workers: int,
) -> Iterator[Tuple[T, Future]]:
    """Run ``worker`` over ``items`` and yield each item with its finished future.

    Futures are yielded in completion order on the calling thread, so callers
    apply results (and handle ``future.result()`` exceptions) from a single
    thread.

    Args:
        items: Work items.
        worker: Callable computing the result of one item.
        max_workers: Upper bound on concurrently running workers.

    Yields:
        tuple: The item and its completed future.
    """
    pending = list(items)
    if not pending:
        return

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(pending)))) as executor:
        futures = {executor.submit(worker, item): item for item in pending}
        try:
            for future in as_completed(futures):
                yield futures[future], future
        except BaseException:
            for future in futures:
                future.cancel()
            raise


__all__ = ["fan_out"]
