"""SQLAlchemy ORM models for show and episode data."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Show(Base):
    """Podcast show, identified by its title.

    The title also names the show's output directory on disk.
    """

    __tablename__ = "shows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(512), unique=True, nullable=False)
    subtitle: Mapped[Optional[str]] = mapped_column(String(1024))
    description: Mapped[Optional[str]] = mapped_column(Text)
    link: Mapped[Optional[str]] = mapped_column(String(2048))
    feed_url: Mapped[Optional[str]] = mapped_column(String(2048))
    language: Mapped[Optional[str]] = mapped_column(String(32))
    author: Mapped[Optional[str]] = mapped_column(String(512))

    # Owner and category, one per show
    owner_name: Mapped[Optional[str]] = mapped_column(String(512))
    owner_email: Mapped[Optional[str]] = mapped_column(String(512))
    category: Mapped[Optional[str]] = mapped_column(String(256))

    local_directory: Mapped[Optional[str]] = mapped_column(String(1024))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    episodes: Mapped[List["Episode"]] = relationship(
        "Episode", back_populates="show", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Show(id={self.id}, title={self.title!r})>"


class Episode(Base):
    """Episode row.

    Rows are never deleted. The autoincrement id records first-seen order,
    which is the order reconciliation walks the store in. `processed` flips
    to true once, after the trimmed file has been written.
    """

    __tablename__ = "episodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    show_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("shows.id", ondelete="CASCADE"), nullable=False
    )

    # Title is the natural key within a show
    title: Mapped[str] = mapped_column(String(512), nullable=False)

    # Metadata passed through from the feed
    link: Mapped[Optional[str]] = mapped_column(String(2048))
    duration: Mapped[Optional[str]] = mapped_column(String(32))
    author: Mapped[Optional[str]] = mapped_column(String(512))
    summary: Mapped[Optional[str]] = mapped_column(Text)
    subtitle: Mapped[Optional[str]] = mapped_column(String(1024))
    description: Mapped[Optional[str]] = mapped_column(Text)
    image: Mapped[Optional[str]] = mapped_column(String(2048))
    enclosure_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    published_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    # Processing state
    processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    output_path: Mapped[Optional[str]] = mapped_column(String(1024))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    show: Mapped["Show"] = relationship("Show", back_populates="episodes")

    __table_args__ = (
        UniqueConstraint("show_id", "title", name="uq_episode_show_title"),
        Index("ix_episodes_show_id", "show_id"),
    )

    def __repr__(self) -> str:
        return f"<Episode(id={self.id}, title={self.title!r}, processed={self.processed})>"


@dataclass(frozen=True)
class EpisodeState:
    """(title, processed) pair read from the store cursor."""

    title: str
    processed: bool
