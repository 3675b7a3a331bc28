"""Sync orchestrator: one full sync cycle for one feed URL.

Fetch the feed, make sure the show exists, reconcile the feed against the
store, then hand every selected episode to the bounded dispatcher.
Reconciliation inserts new episode rows before any job is submitted, so a
worker always finds the row it has to mark.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import List, Optional, Tuple

from ..audio.trim import seconds_to_micros
from ..config import Config
from ..db.repository import ShowRepositoryInterface
from ..podcast.feed_parser import FeedParser
from ..podcast.feed_sync import FeedSyncService
from ..podcast.http import HttpClient
from .config import SyncConfig
from .dispatcher import TrimDispatcher
from .workers.base import ProcessResult, WorkerInterface, WorkerResult
from .workers.trim import TrimWorker

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync cycle.

    Attributes:
        show_title: Title of the synced show.
        show_dir: Directory holding the show's trimmed episodes.
        to_process: Episodes selected by reconciliation.
        store_errors: (title, message) for new episodes whose row could not be written.
        result: Tally of finished jobs; episodes with a store error count as skipped.
        results: Per-episode results of finished jobs.
        pending: Futures still running, only when not waiting for workers.
    """

    show_title: str
    show_dir: str
    to_process: int = 0
    store_errors: List[Tuple[str, str]] = field(default_factory=list)
    result: WorkerResult = field(default_factory=WorkerResult)
    results: List[ProcessResult] = field(default_factory=list)
    pending: List[Future] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    stopped_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        """Duration of the run in seconds."""
        end = self.stopped_at or datetime.now(UTC)
        return (end - self.started_at).total_seconds()


class SyncOrchestrator:
    """Drives reconciliation and dispatch for a single feed.

    Example:
        config = Config()
        repository = create_repository_from_config(config)

        orchestrator = SyncOrchestrator(
            config=config,
            sync_config=SyncConfig.from_env(),
            repository=repository,
        )
        result = orchestrator.run("https://example.com/feed.xml")
    """

    def __init__(
        self,
        config: Config,
        sync_config: SyncConfig,
        repository: ShowRepositoryInterface,
        http_client: Optional[HttpClient] = None,
        feed_parser: Optional[FeedParser] = None,
        worker: Optional[WorkerInterface] = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Application configuration.
            sync_config: Trim window and concurrency settings.
            repository: Episode store.
            http_client: Shared HTTP client; built from config if omitted.
            feed_parser: Feed parser; uses the shared client if omitted.
            worker: Fetch-and-trim worker; uses the shared client if omitted.
        """
        self.config = config
        self.sync_config = sync_config
        self.repository = repository

        self.http_client = http_client or HttpClient.from_config(config)
        self.feed_parser = feed_parser or FeedParser(self.http_client)
        self.worker = worker or TrimWorker(repository, self.http_client)
        self.feed_sync = FeedSyncService(
            repository,
            download_directory=config.PODCAST_DOWNLOAD_DIRECTORY,
        )

    def run(self, feed_url: str) -> SyncResult:
        """Run one sync cycle.

        Raises:
            FetchError: If the feed cannot be fetched or parsed; nothing is dispatched.
            StoreError: If the show row or the stored episode states cannot be accessed.
            OSError: If the show directory cannot be created.
        """
        head_skip_us = seconds_to_micros(self.sync_config.head_skip_seconds)
        tail_skip_us = seconds_to_micros(self.sync_config.tail_skip_seconds)

        parsed = self.feed_parser.parse_url(feed_url)
        show = self.feed_sync.ensure_show(parsed)

        sync = SyncResult(show_title=show.title, show_dir=show.local_directory)

        reconciled = self.feed_sync.reconcile_show(show, parsed)
        sync.to_process = len(reconciled.episodes)
        sync.store_errors = [(title, str(e)) for title, e in reconciled.store_errors]

        episodes = reconciled.dispatchable
        if reconciled.partial:
            logger.warning(
                f"{len(sync.store_errors)} new episodes could not be recorded "
                "and will be retried on the next run"
            )

        if not episodes:
            logger.info(f"Nothing to process for '{show.title}'")
        else:
            dispatcher = TrimDispatcher(self.worker, max_workers=self.sync_config.max_workers)
            dispatcher.start()
            for episode in episodes:
                dispatcher.submit(
                    episode, show.id, show.local_directory, head_skip_us, tail_skip_us
                )

            wait = self.sync_config.wait_for_workers
            dispatcher.stop(wait=wait)
            stats = dispatcher.get_stats()
            logger.info(
                f"Dispatcher stopped: {stats.succeeded} succeeded, {stats.failed} failed, "
                f"{dispatcher.get_pending_count()} pending"
            )
            sync.results = dispatcher.collect()
            if not wait:
                sync.pending = dispatcher.pending_futures()

        sync.result = WorkerResult.from_results(sync.results)
        sync.result.skipped = len(sync.store_errors)
        self.worker.log_result(sync.result)

        sync.stopped_at = datetime.now(UTC)
        logger.info(
            f"Sync of '{show.title}' finished in {sync.duration_seconds:.1f}s: "
            f"{sync.to_process} selected, {len(sync.pending)} still running"
        )
        return sync
