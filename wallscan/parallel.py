"""Batched fork-join execution with cooperative cancellation."""

import concurrent.futures
import os
import threading
from typing import Callable, Optional, Sequence


def parallel_for_each(
    items: Sequence[int],
    func: Callable[[int], None],
    cancel: Optional[Callable[[], bool]] = None,
    batch_size: int = 64,
    max_workers: Optional[int] = None,
) -> bool:
    """Run ``func`` on every item using a thread pool.

    Items are split into batches of ``batch_size``. Before a batch starts,
    ``cancel`` is polled; once it returns True every batch that has not
    started yet is skipped. Batches already running are finished.

    ``cancel`` may be called from worker threads.

    Returns
    -------
    bool
        True if every item was processed, False if cancelled.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    stop = threading.Event()

    def run_batch(batch):
        if stop.is_set():
            return
        if cancel is not None and cancel():
            stop.set()
            return
        for item in batch:
            func(item)

    batches = [items[i:i + batch_size] for i in range(0, len(items), batch_size)]
    if not batches:
        return not (cancel is not None and cancel())

    workers = max_workers or os.cpu_count() or 1
    workers = min(workers, len(batches))

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(run_batch, batch) for batch in batches]
        for future in concurrent.futures.as_completed(futures):
            # re-raises anything func let escape
            future.result()

    return not stop.is_set()
