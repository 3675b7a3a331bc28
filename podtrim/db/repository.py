"""Repository pattern implementation for show and episode persistence.

Provides an abstract interface and SQLAlchemy implementation for the episode
store. Supports SQLite (default, local file) and any other SQLAlchemy backend.
"""

import contextlib
import logging
import threading
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import create_engine, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..errors import StoreError
from .models import Base, Episode, EpisodeState, Show

logger = logging.getLogger(__name__)


class ShowRepositoryInterface(ABC):
    """Abstract interface for the episode store.

    Every method raises StoreError when the underlying database fails.
    """

    # --- Show Operations ---

    @abstractmethod
    def upsert_show(self, title: str, **kwargs) -> tuple[Show, bool]:
        """
        Create the show with the given title, or refresh the metadata of the existing one.

        Parameters:
            title (str): Show title; the uniqueness key.
            **kwargs: Show attributes to set (e.g., description, author, local_directory). `None` values never overwrite stored ones.

        Returns:
            tuple[Show, bool]: The stored show and `True` if it was created by this call.
        """
        pass

    @abstractmethod
    def get_show_by_title(self, title: str) -> Optional[Show]:
        """Retrieve a show by its title, or `None`."""
        pass

    @abstractmethod
    def list_shows(self) -> List[Show]:
        """Return every show ordered by title."""
        pass

    # --- Episode Operations ---

    @abstractmethod
    def insert_episode_if_absent(
        self, show_id: int, title: str, enclosure_url: str, **kwargs
    ) -> bool:
        """
        Insert an unprocessed episode row unless one with the same title already exists for the show.

        Parameters:
            show_id (int): Owning show.
            title (str): Episode title; unique within the show.
            enclosure_url (str): URL of the episode audio.
            **kwargs: Optional pass-through metadata (duration, description, ...).

        Returns:
            bool: `True` if a row was inserted, `False` if it already existed.
        """
        pass

    @abstractmethod
    def list_episode_states(self, show_id: int) -> List[EpisodeState]:
        """
        Read the show's (title, processed) pairs in insertion order, oldest first.
        """
        pass

    @abstractmethod
    def mark_processed(self, show_id: int, title: str, output_path: str) -> int:
        """
        Set processed=true on the still-unprocessed episode with the given title.

        Parameters:
            show_id (int): Owning show.
            title (str): Episode title.
            output_path (str): Where the trimmed audio was written.

        Returns:
            int: Number of rows affected. Anything other than 1 is a consistency fault for the caller to report.
        """
        pass

    @abstractmethod
    def list_episodes(
        self, show_id: int, processed: Optional[bool] = None
    ) -> List[Episode]:
        """
        List a show's episodes in insertion order, optionally filtered by processed flag.
        """
        pass

    @abstractmethod
    def get_show_stats(self, show_id: int) -> Dict[str, Any]:
        """
        Return episode counts for a show: `total`, `processed` and `unprocessed`.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Dispose the engine and release all pooled connections.
        """
        pass


class SQLAlchemyShowRepository(ShowRepositoryInterface):
    """SQLAlchemy-based implementation of the show repository.

    SQLite connections are shared across worker threads, so writes against a
    SQLite database go through a single lock; reads are not serialised.
    """

    def __init__(
        self,
        database_url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        echo: bool = False,
        create_tables: bool = True,
    ):
        """
        Initialize the repository and configure its SQLAlchemy engine and session factory.

        Parameters:
            database_url (str): SQLAlchemy-compatible database URL.
            pool_size (int): Connection pool size for non-SQLite databases.
            max_overflow (int): Maximum overflow connections for non-SQLite databases.
            echo (bool): If true, enable SQLAlchemy SQL statement logging.
            create_tables (bool): If true, create any missing tables.

        Raises:
            StoreError: If the engine cannot be created or the schema cannot be applied.
        """
        self.database_url = database_url

        try:
            # SQLite doesn't support connection pooling
            if database_url.startswith("sqlite"):
                self.engine = create_engine(
                    database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False, "timeout": 30},
                )
                self._write_lock = threading.Lock()
            else:
                self.engine = create_engine(
                    database_url,
                    pool_size=pool_size,
                    max_overflow=max_overflow,
                    echo=echo,
                )
                self._write_lock = contextlib.nullcontext()

            if create_tables:
                Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to initialize database: {e}") from e

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(f"Database initialized: {database_url.split('@')[-1] if '@' in database_url else database_url}")

    def _get_session(self) -> Session:
        """
        Obtain a new SQLAlchemy database session from the repository's session factory.
        """
        return self.SessionLocal()

    @contextlib.contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        """Re-raise database failures during `action` as StoreError."""
        try:
            yield
        except SQLAlchemyError as e:
            raise StoreError(f"{action} failed: {e}") from e

    # --- Show Operations ---

    def upsert_show(self, title: str, **kwargs) -> tuple[Show, bool]:
        """
        Create or refresh a show keyed by title.

        Only attributes that exist on the Show model and whose new value is not `None` and differs from the stored one are written.

        Returns:
            tuple[Show, bool]: (show, created).
        """
        with self._store_errors(f"Upsert of show {title!r}"):
            existing = self.get_show_by_title(title)
            if existing is None:
                try:
                    with self._write_lock, self._get_session() as session:
                        show = Show(title=title, **kwargs)
                        session.add(show)
                        session.commit()
                        session.refresh(show)
                    logger.info(f"Created show: {title} ({show.id})")
                    return show, True
                except IntegrityError:
                    # Created concurrently by another process
                    existing = self.get_show_by_title(title)
                    if existing is None:
                        raise

            with self._write_lock, self._get_session() as session:
                show = session.get(Show, existing.id)
                changed = []
                for key, value in kwargs.items():
                    if value is not None and hasattr(show, key) and getattr(show, key) != value:
                        setattr(show, key, value)
                        changed.append(key)
                if changed:
                    show.updated_at = datetime.now(UTC)
                    session.commit()
                    session.refresh(show)
                    logger.debug(f"Updated show {show.id}: {changed}")
                return show, False

    def get_show_by_title(self, title: str) -> Optional[Show]:
        with self._store_errors(f"Lookup of show {title!r}"):
            with self._get_session() as session:
                return session.scalar(select(Show).where(Show.title == title))

    def list_shows(self) -> List[Show]:
        with self._store_errors("Listing shows"):
            with self._get_session() as session:
                return list(session.scalars(select(Show).order_by(Show.title)).all())

    # --- Episode Operations ---

    def insert_episode_if_absent(
        self, show_id: int, title: str, enclosure_url: str, **kwargs
    ) -> bool:
        """
        Insert an episode row unless the title is already stored for the show.

        Uses optimistic creation with IntegrityError handling so a concurrent insert of the same title is reported as "already present" rather than an error.

        Returns:
            bool: `True` if inserted.
        """
        with self._store_errors(f"Insert of episode {title!r}"):
            with self._write_lock, self._get_session() as session:
                stmt = select(Episode.id).where(
                    Episode.show_id == show_id, Episode.title == title
                )
                if session.scalar(stmt) is not None:
                    return False

                session.add(
                    Episode(
                        show_id=show_id,
                        title=title,
                        enclosure_url=enclosure_url,
                        **kwargs,
                    )
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    logger.debug(f"Episode already inserted concurrently: {title}")
                    return False

            logger.debug(f"Inserted episode: {title}")
            return True

    def list_episode_states(self, show_id: int) -> List[EpisodeState]:
        with self._store_errors(f"Reading episode states of show {show_id}"):
            with self._get_session() as session:
                stmt = (
                    select(Episode.title, Episode.processed)
                    .where(Episode.show_id == show_id)
                    .order_by(Episode.id)
                )
                return [
                    EpisodeState(title=title, processed=bool(processed))
                    for title, processed in session.execute(stmt)
                ]

    def mark_processed(self, show_id: int, title: str, output_path: str) -> int:
        """
        Flip the processed flag for one episode.

        The update only matches rows that are still unprocessed, so marking the same episode twice affects zero rows the second time.

        Returns:
            int: Affected row count.
        """
        with self._store_errors(f"Marking {title!r} processed"):
            with self._write_lock, self._get_session() as session:
                stmt = (
                    update(Episode)
                    .where(
                        Episode.show_id == show_id,
                        Episode.title == title,
                        Episode.processed.is_(False),
                    )
                    .values(
                        processed=True,
                        processed_at=datetime.now(UTC),
                        output_path=output_path,
                    )
                )
                result = session.execute(stmt)
                session.commit()
                return result.rowcount

    def list_episodes(
        self, show_id: int, processed: Optional[bool] = None
    ) -> List[Episode]:
        with self._store_errors(f"Listing episodes of show {show_id}"):
            with self._get_session() as session:
                stmt = select(Episode).where(Episode.show_id == show_id)
                if processed is not None:
                    stmt = stmt.where(Episode.processed.is_(processed))
                stmt = stmt.order_by(Episode.id)
                return list(session.scalars(stmt).all())

    def get_show_stats(self, show_id: int) -> Dict[str, Any]:
        """
        Count a show's episodes by processed flag.

        Returns:
            dict: `total`, `processed` and `unprocessed` counts.
        """
        with self._store_errors(f"Counting episodes of show {show_id}"):
            with self._get_session() as session:
                stmt = (
                    select(Episode.processed, func.count())
                    .where(Episode.show_id == show_id)
                    .group_by(Episode.processed)
                )
                counts = {bool(flag): count for flag, count in session.execute(stmt)}

        processed = counts.get(True, 0)
        unprocessed = counts.get(False, 0)
        return {
            "total": processed + unprocessed,
            "processed": processed,
            "unprocessed": unprocessed,
        }

    # --- Connection Management ---

    def close(self) -> None:
        """
        Dispose the SQLAlchemy engine and release database connections and resources.
        """
        self.engine.dispose()
        logger.info("Database connection closed")
