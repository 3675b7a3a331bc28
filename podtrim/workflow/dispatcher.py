"""Bounded dispatcher for fetch-and-trim jobs.

Runs worker calls on a fixed-size thread pool. At most `max_workers`
episodes are fetched and trimmed at once; the rest wait in the pool's queue.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..podcast.feed_parser import ParsedEpisode
from .workers.base import ProcessResult, WorkerInterface

logger = logging.getLogger(__name__)


@dataclass
class DispatchStats:
    """Thread-safe counters for completed jobs.

    All counter increments are protected by a lock to prevent lost
    updates under concurrent execution from multiple worker threads.
    """

    succeeded: int = 0
    failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def increment_succeeded(self) -> None:
        """Thread-safe increment of succeeded counter."""
        with self._lock:
            self.succeeded += 1

    def increment_failed(self) -> None:
        """Thread-safe increment of failed counter."""
        with self._lock:
            self.failed += 1


class TrimDispatcher:
    """Dispatches episodes to a worker on a bounded thread pool.

    Thread Safety:
    - Uses ThreadPoolExecutor for concurrent execution
    - Each job writes its own output file and its own store row
    - Bookkeeping shared with done-callbacks is guarded by a lock

    Example:
        dispatcher = TrimDispatcher(worker, max_workers=10)
        dispatcher.start()
        for episode in episodes:
            dispatcher.submit(episode, show.id, show_dir, head_us, tail_us)
        dispatcher.stop(wait=True)
        results = dispatcher.collect()
    """

    def __init__(self, worker: WorkerInterface, max_workers: int = 10):
        """Initialize the dispatcher.

        Args:
            worker: Worker whose `process` runs for every submitted episode.
            max_workers: Maximum number of episodes processed concurrently. Must be > 0.

        Raises:
            ValueError: If max_workers is not a positive integer.
        """
        if max_workers <= 0:
            raise ValueError(f"max_workers must be greater than zero, got {max_workers}")

        self.worker = worker
        self.max_workers = max_workers

        self._executor: Optional[ThreadPoolExecutor] = None
        self._started = False
        self._jobs: List[Tuple[str, Future]] = []
        self._pending: set = set()
        self._lock = threading.Lock()
        self._stats = DispatchStats()

    def start(self) -> None:
        """Start the thread pool."""
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers,
            thread_name_prefix="trim",
        )
        self._started = True
        logger.info(f"Dispatcher started with {self.max_workers} workers")

    def stop(self, wait: bool = True) -> None:
        """Stop accepting jobs and optionally wait for queued ones.

        With `wait=False` the call returns at once. Jobs already submitted
        still run to completion, and the pool's threads are joined when the
        interpreter exits.

        Args:
            wait: If True, wait for all submitted jobs to complete.
        """
        if self._executor is not None:
            pending = self.get_pending_count()
            if pending > 0:
                if wait:
                    logger.info(f"Waiting for {pending} trim jobs to complete...")
                else:
                    logger.info(f"Leaving {pending} trim jobs running in the background")
            self._executor.shutdown(wait=wait)
            self._executor = None
            logger.info("Dispatcher stopped")
        self._started = False

    def submit(
        self,
        episode: ParsedEpisode,
        show_id: int,
        show_dir: str,
        head_skip_us: int,
        tail_skip_us: int,
    ) -> Future:
        """Queue an episode for processing.

        Returns:
            Future resolving to the worker's ProcessResult.

        Raises:
            RuntimeError: If start() has not been called.
        """
        if not self._started or self._executor is None:
            raise RuntimeError("Dispatcher not started")

        future = self._executor.submit(
            self.worker.process,
            episode,
            show_id,
            show_dir,
            head_skip_us,
            tail_skip_us,
        )

        with self._lock:
            self._jobs.append((episode.title, future))
            self._pending.add(future)

        future.add_done_callback(self._on_job_complete)

        logger.debug(f"Submitted trim job for '{episode.title}'")
        return future

    def get_pending_count(self) -> int:
        """Return the number of submitted jobs that have not finished."""
        with self._lock:
            return len(self._pending)

    def get_stats(self) -> DispatchStats:
        """Get current completion statistics."""
        return self._stats

    def pending_futures(self) -> List[Future]:
        """Futures of submitted jobs that have not finished yet."""
        with self._lock:
            return [future for _, future in self._jobs if future in self._pending]

    def collect(self) -> List[ProcessResult]:
        """Results of finished jobs in submission order.

        A job that raised instead of returning a result is reported as a
        failed ProcessResult.
        """
        with self._lock:
            jobs = list(self._jobs)

        results = []
        for title, future in jobs:
            if not future.done():
                continue
            exc = future.exception()
            if exc is not None:
                results.append(
                    ProcessResult(
                        title=title,
                        success=False,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                )
            else:
                results.append(future.result())
        return results

    def _on_job_complete(self, future: Future) -> None:
        """Callback when a trim job completes."""
        with self._lock:
            self._pending.discard(future)

        exc = future.exception()
        if exc is not None:
            logger.error(f"Trim job raised unexpectedly: {exc!r}")
            self._stats.increment_failed()
        elif future.result().success:
            self._stats.increment_succeeded()
        else:
            self._stats.increment_failed()
