"""Fetch-and-trim worker.

Downloads one episode's audio into memory, writes the trimmed copy into the
show directory and marks the episode processed. The processed flag is only
set after the output file has been moved into place.
"""

import logging
import os
import time
from typing import Optional

from ...audio.trim import trim
from ...db.repository import ShowRepositoryInterface
from ...errors import ConsistencyFault, PodtrimError
from ...podcast.feed_parser import ParsedEpisode
from ...podcast.http import HttpClient
from ...utils.paths import episode_output_path
from .base import ProcessResult, WorkerInterface

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


class TrimWorker(WorkerInterface):
    """Worker that produces the trimmed copy of a single episode.

    Safe to call from several threads at once: the HTTP session is shared,
    each call writes its own output file, and the only store write is the
    single-row mark-processed update.
    """

    def __init__(
        self,
        repository: ShowRepositoryInterface,
        http_client: Optional[HttpClient] = None,
    ):
        """Initialize the trim worker.

        Args:
            repository: Episode store used to mark episodes processed.
            http_client: Client for enclosure downloads; a default one is created if omitted.
        """
        self.repository = repository
        self.http_client = http_client or HttpClient()

    @property
    def name(self) -> str:
        """Human-readable name for this worker."""
        return "Trim"

    def process(
        self,
        episode: ParsedEpisode,
        show_id: int,
        show_dir: str,
        head_skip_us: int,
        tail_skip_us: int,
    ) -> ProcessResult:
        """Fetch, trim, write and mark one episode.

        Failures are returned, not raised. The trimmed stream is written to a
        sibling ".part" file and moved over the output path only once trimming
        has finished, so a failed fetch or decode never touches an existing
        output file.

        Returns:
            ProcessResult with the output path on success.
        """
        start_time = time.monotonic()
        output_path = episode_output_path(show_dir, episode.title)
        part_path = output_path + PART_SUFFIX
        written = 0

        logger.info(f"Processing: {episode.title}")

        try:
            body = self.http_client.fetch(episode.enclosure_url)

            with open(part_path, "wb") as f:
                written = trim(body, head_skip_us, tail_skip_us, f)
            os.replace(part_path, output_path)

            rows = self.repository.mark_processed(show_id, episode.title, output_path)
            if rows != 1:
                raise ConsistencyFault(
                    f"Expected to mark 1 row processed for '{episode.title}', "
                    f"affected {rows}",
                    rows_affected=rows,
                )

        except (PodtrimError, OSError) as e:
            logger.error(f"Failed to process '{episode.title}': {type(e).__name__}: {e}")

            # Clean up partial file
            if os.path.exists(part_path):
                try:
                    os.remove(part_path)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove partial file {part_path}: {cleanup_error}")

            return ProcessResult(
                title=episode.title,
                success=False,
                output_path=output_path,
                bytes_written=written,
                error=str(e),
                error_type=type(e).__name__,
                duration_seconds=time.monotonic() - start_time,
            )

        duration = time.monotonic() - start_time
        logger.info(
            f"Trimmed: {episode.title} "
            f"({written / 1024 / 1024:.1f} MB in {duration:.1f}s) -> {output_path}"
        )

        return ProcessResult(
            title=episode.title,
            success=True,
            output_path=output_path,
            bytes_written=written,
            duration_seconds=duration,
        )
