"""
Scheduler: bounded thread pool for per-cell work
Keeps at most max_workers tasks in flight and acts as the per-frame barrier
"""
import logging
import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[BaseException, Any], None]


class BoundedScheduler:
    """
    Thread pool that never holds more than max_workers submitted tasks

    A new task is only submitted once a slot frees up, so a frame's work is
    queued lazily instead of flooding the executor.
    """

    def __init__(self, max_workers: Optional[int] = None,
                 on_error: Optional[ErrorCallback] = None,
                 thread_name_prefix: str = "cell"):
        self.max_workers = max_workers or os.cpu_count() or 1
        self.on_error = on_error
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                            thread_name_prefix=thread_name_prefix)
        self._lock = threading.Lock()
        self._in_flight = 0
        self.peak_in_flight = 0
        self.completed = 0
        self.failed = 0
        self._closed = False
        logger.info(f"Scheduler started with {self.max_workers} workers")

    @property
    def in_flight(self) -> int:
        return self._in_flight

    def _submit(self, fn: Callable, item) -> Future:
        with self._lock:
            self._in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
        return self._executor.submit(fn, item)

    def _finish(self, future: Future, item):
        """Result of a finished task, or None when it raised"""
        with self._lock:
            self._in_flight -= 1
        error = future.exception()
        if error is None:
            self.completed += 1
            return future.result()
        self.failed += 1
        logger.error(f"Task failed for {item!r}: {type(error).__name__}: {error}",
                     exc_info=(type(error), error, error.__traceback__))
        if self.on_error is not None:
            self.on_error(error, item)
        return None

    def imap_unordered(self, fn: Callable, items: Iterable) -> Iterator:
        """
        Run fn over items, yielding results in completion order

        Failed tasks are logged, reported to on_error and skipped. If the
        caller stops early, the tasks still running are waited for and
        accounted before the generator closes; their results are dropped.
        """
        if self._closed:
            raise RuntimeError("Scheduler is closed")
        pending: Dict[Future, Any] = {}
        iterator = iter(items)
        exhausted = False

        try:
            while True:
                while not exhausted and len(pending) < self.max_workers:
                    try:
                        item = next(iterator)
                    except StopIteration:
                        exhausted = True
                        break
                    pending[self._submit(fn, item)] = item

                if not pending:
                    return

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    item = pending.pop(future)
                    if future.exception() is None:
                        yield self._finish(future, item)
                    else:
                        self._finish(future, item)
        finally:
            if pending:
                logger.debug(f"Iteration stopped early with {len(pending)} tasks in flight")
                wait(pending)
                for future, item in pending.items():
                    self._finish(future, item)
                pending.clear()

    def run(self, fn: Callable, items: Iterable) -> List:
        """Run fn over items and return once every task has finished"""
        return list(self.imap_unordered(fn, items))

    def close(self):
        """Wait for in-flight tasks and shut the pool down"""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        logger.info(f"Scheduler closed: {self.completed} tasks completed, {self.failed} failed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
