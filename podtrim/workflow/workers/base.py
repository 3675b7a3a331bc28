"""Base classes for workflow workers.

Defines the interface and common data structures used by workers.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Result of processing one episode.

    Attributes:
        title: Episode title.
        success: True once the trimmed file is written and the row marked processed.
        output_path: Destination file, set whenever the destination was decided.
        bytes_written: Bytes of trimmed audio written.
        error: Error message for a failed episode.
        error_type: Exception class name for a failed episode.
        duration_seconds: Wall-clock processing time.
    """

    title: str
    success: bool
    output_path: Optional[str] = None
    bytes_written: int = 0
    error: Optional[str] = None
    error_type: Optional[str] = None
    duration_seconds: Optional[float] = None


@dataclass
class WorkerResult:
    """Result of a worker batch processing run.

    Attributes:
        processed: Number of items successfully processed.
        failed: Number of items that failed processing.
        skipped: Number of items skipped (e.g. no stored row to mark).
        errors: List of error messages for failed items.
    """

    processed: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Total number of items attempted."""
        return self.processed + self.failed + self.skipped

    @classmethod
    def from_results(cls, results: Iterable[ProcessResult]) -> "WorkerResult":
        """Tally per-episode results."""
        tally = cls()
        for result in results:
            if result.success:
                tally.processed += 1
            else:
                tally.failed += 1
                tally.errors.append(f"{result.title}: {result.error}")
        return tally


class WorkerInterface(ABC):
    """Abstract base class for workflow workers.

    A worker handles one item at a time and never raises for an item-level
    failure; it reports the failure in its ProcessResult instead.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this worker."""
        pass

    @abstractmethod
    def process(
        self,
        episode,
        show_id: int,
        show_dir: str,
        head_skip_us: int,
        tail_skip_us: int,
    ) -> ProcessResult:
        """Process a single episode.

        Args:
            episode: Episode to process.
            show_id: Store id of the owning show.
            show_dir: Directory the output file goes into.
            head_skip_us: Play time to drop from the start, in microseconds.
            tail_skip_us: Play time to drop from the end, in microseconds.

        Returns:
            ProcessResult describing the outcome.
        """
        pass

    def log_result(self, result: WorkerResult) -> None:
        """Log the result of a batch processing run.

        Args:
            result: The WorkerResult to log.
        """
        if result.total == 0:
            logger.info(f"[{self.name}] No items to process")
        else:
            logger.info(
                f"[{self.name}] Processed: {result.processed}, "
                f"Failed: {result.failed}, Skipped: {result.skipped}"
            )

        for error in result.errors:
            logger.error(f"[{self.name}] {error}")
