"""Incremental reconciliation of a feed snapshot against stored episode state.

The feed lists episodes newest first; the store lists them in insertion
order, oldest first. Walking the feed in reverse keeps both sequences in the
same direction, so one cursor into the stored states is enough:

- title differs from the cursor: a new episode. Persist it, select it, and
  keep the cursor where it is.
- title matches an unprocessed state: an earlier run stopped before finishing
  it. Select it and advance.
- title matches a processed state: already done. Advance.

Titles are the only identity. If the feed reorders or renames episodes the
walk desynchronises and stored episodes are reported as new again; this is
accepted rather than papered over with a different matching rule.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence, Tuple

from ..db.models import EpisodeState
from ..errors import StoreError
from .feed_parser import ParsedEpisode

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation pass.

    Attributes:
        episodes: Episodes needing processing, oldest first
        store_errors: (title, error) for every insert that failed
        inserted: Number of rows created during the pass
    """

    episodes: List[ParsedEpisode] = field(default_factory=list)
    store_errors: List[Tuple[str, StoreError]] = field(default_factory=list)
    inserted: int = 0

    @property
    def partial(self) -> bool:
        """True if any new episode could not be persisted."""
        return bool(self.store_errors)

    @property
    def dispatchable(self) -> List[ParsedEpisode]:
        """Selected episodes that have a stored row to mark processed later."""
        failed = {title for title, _ in self.store_errors}
        return [episode for episode in self.episodes if episode.title not in failed]


def reconcile(
    feed_episodes: Sequence[ParsedEpisode],
    store_states: Iterable[EpisodeState],
    persist: Callable[[ParsedEpisode], bool],
) -> ReconcileResult:
    """Select the feed episodes that still need processing.

    Args:
        feed_episodes: Feed snapshot in feed order (newest first)
        store_states: Stored (title, processed) pairs, oldest first
        persist: Inserts a new episode row; returns True if a row was created
            and raises StoreError on failure

    Returns:
        ReconcileResult. A failed insert is recorded and the walk continues.
    """
    result = ReconcileResult()
    cursor = iter(store_states)
    current = next(cursor, None)
    seen = set()

    for episode in reversed(feed_episodes):
        if episode.title in seen:
            logger.warning(f"Duplicate title in feed, ignoring repeat: {episode.title}")
            continue
        seen.add(episode.title)

        if current is None or current.title != episode.title:
            logger.debug(f"New episode: {episode.title}")
            try:
                if persist(episode):
                    result.inserted += 1
                else:
                    logger.debug(f"Episode already stored out of order: {episode.title}")
            except StoreError as e:
                logger.error(f"Failed to record episode '{episode.title}': {e}")
                result.store_errors.append((episode.title, e))
            result.episodes.append(episode)
        elif not current.processed:
            logger.debug(f"Resuming unprocessed episode: {episode.title}")
            result.episodes.append(episode)
            current = next(cursor, None)
        else:
            current = next(cursor, None)

    logger.info(
        f"Reconciled {len(feed_episodes)} feed episodes: "
        f"{len(result.episodes)} to process, {result.inserted} new rows"
        + (f", {len(result.store_errors)} store errors" if result.partial else "")
    )
    return result
