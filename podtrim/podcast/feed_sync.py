"""Feed synchronization service.

Records a parsed feed in the store: makes sure the show row and its directory
exist, then reconciles the feed's episodes against the stored episode states.
"""

import logging
import os
from typing import Any, Dict

from ..db.models import Show
from ..db.repository import ShowRepositoryInterface
from ..utils.paths import show_directory
from .feed_parser import ParsedEpisode, ParsedShow
from .reconcile import ReconcileResult, reconcile

logger = logging.getLogger(__name__)


class FeedSyncService:
    """Service for synchronizing one parsed feed with the store.

    Example:
        sync_service = FeedSyncService(repository, download_directory=".")
        show = sync_service.ensure_show(parsed)
        result = sync_service.reconcile_show(show, parsed)
        print(f"To process: {len(result.episodes)}")
    """

    def __init__(
        self,
        repository: ShowRepositoryInterface,
        download_directory: str = ".",
    ):
        """
        Create a FeedSyncService bound to a repository.

        Parameters:
            repository (ShowRepositoryInterface): Episode store.
            download_directory (str): Base directory; each show gets a sub-directory named after its title.
        """
        self.repository = repository
        self.download_directory = download_directory

    def ensure_show(self, parsed: ParsedShow) -> Show:
        """
        Upsert the show row and create its directory if absent.

        Parameters:
            parsed (ParsedShow): Snapshot of the feed.

        Returns:
            Show: The stored show, with `local_directory` set.

        Raises:
            StoreError: If the show row cannot be written.
            OSError: If the directory cannot be created.
        """
        show, created = self.repository.upsert_show(
            parsed.title,
            **self._show_fields(parsed),
            local_directory=self._get_show_directory(parsed.title),
        )
        if created:
            logger.info(f"First sync of show: {show.title}")

        os.makedirs(show.local_directory, exist_ok=True)
        return show

    def reconcile_show(self, show: Show, parsed: ParsedShow) -> ReconcileResult:
        """
        Reconcile the feed snapshot against the show's stored episodes.

        New episodes are inserted before this returns, so every dispatchable episode has a row.

        Raises:
            StoreError: If the stored episode states cannot be read.
        """
        states = self.repository.list_episode_states(show.id)
        logger.debug(f"Show '{show.title}' has {len(states)} stored episodes")

        def persist(episode: ParsedEpisode) -> bool:
            return self.repository.insert_episode_if_absent(
                show.id,
                episode.title,
                episode.enclosure_url,
                **self._episode_fields(episode),
            )

        return reconcile(parsed.episodes, states, persist)

    def get_status(self, show: Show) -> Dict[str, Any]:
        """
        Summarise a show's processing state.

        Returns:
            dict: `title`, `directory`, `total`, `processed`, `unprocessed` and `pending_titles` (unprocessed titles, oldest first).
        """
        stats = self.repository.get_show_stats(show.id)
        pending = self.repository.list_episodes(show.id, processed=False)
        return {
            "title": show.title,
            "directory": show.local_directory,
            **stats,
            "pending_titles": [episode.title for episode in pending],
        }

    def _show_fields(self, parsed: ParsedShow) -> Dict[str, Any]:
        return {
            "subtitle": parsed.subtitle,
            "description": parsed.description,
            "link": parsed.link,
            "feed_url": parsed.feed_url or None,
            "language": parsed.language,
            "author": parsed.author,
            "owner_name": parsed.owner_name,
            "owner_email": parsed.owner_email,
            "category": parsed.category,
        }

    def _episode_fields(self, episode: ParsedEpisode) -> Dict[str, Any]:
        return {
            "link": episode.link,
            "duration": episode.duration,
            "author": episode.author,
            "summary": episode.summary,
            "subtitle": episode.subtitle,
            "description": episode.description,
            "image": episode.image_url,
            "published_date": episode.published_date,
        }

    def _get_show_directory(self, title: str) -> str:
        """
        Return the filesystem path for a show's trimmed episodes.
        """
        return show_directory(self.download_directory, title)
