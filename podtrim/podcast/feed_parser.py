"""RSS/Atom feed parser producing a feed snapshot.

Uses feedparser to handle the feed formats and the iTunes namespace
extensions. The snapshot keeps the feed's own item order, which for podcast
feeds is newest first.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Optional, Union
from urllib.parse import urlparse

import feedparser

from ..errors import FeedParseError
from .http import HttpClient

logger = logging.getLogger(__name__)


def parse_duration(value) -> Optional[int]:
    """Parse an iTunes duration string into seconds.

    Handles "3600", "60:00" (MM:SS) and "1:00:00" (HH:MM:SS); anything else
    gives None.
    """
    if not value:
        return None

    value_str = str(value).strip()

    try:
        return int(value_str)
    except ValueError:
        pass

    parts = value_str.split(":")
    try:
        if len(parts) == 2:
            return int(parts[0]) * 60 + int(parts[1])
        elif len(parts) == 3:
            return int(parts[0]) * 3600 + int(parts[1]) * 60 + int(parts[2])
    except (ValueError, TypeError):
        pass

    return None


@dataclass
class ParsedEpisode:
    """Parsed episode data from RSS feed."""

    # Identity and audio
    title: str
    enclosure_url: str
    enclosure_type: str = "audio/mpeg"
    enclosure_length: Optional[int] = None

    # Pass-through metadata
    link: Optional[str] = None
    duration: Optional[str] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    published_date: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[int]:
        return parse_duration(self.duration)


@dataclass
class ParsedShow:
    """Parsed show data from RSS feed."""

    title: str
    feed_url: str = ""

    subtitle: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    language: Optional[str] = None
    author: Optional[str] = None

    # iTunes owner and first category
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    category: Optional[str] = None

    image_url: Optional[str] = None

    # Feed order, newest first
    episodes: List[ParsedEpisode] = field(default_factory=list)


class FeedParser:
    """Parser for podcast RSS/Atom feeds.

    The feed body is fetched through the shared HttpClient so feed requests get
    the same timeout, retries and user agent as enclosure downloads.

    Example:
        parser = FeedParser(HttpClient())
        show = parser.parse_url("https://example.com/feed.xml")
        for episode in show.episodes:
            print(f"  - {episode.title}")
    """

    MPEG_MIME_TYPES = ("audio/mpeg", "audio/mp3", "audio/mpeg3", "audio/x-mpeg", "audio/x-mp3")
    MPEG_EXTENSIONS = (".mp3",)
    OTHER_AUDIO_EXTENSIONS = (".m4a", ".mp4", ".ogg", ".opus", ".wav", ".aac", ".flac")

    def __init__(self, http_client: Optional[HttpClient] = None):
        """Initialize the feed parser.

        Args:
            http_client: Client used by parse_url; a default one is created if omitted
        """
        self.http_client = http_client or HttpClient()

    def parse_url(self, feed_url: str) -> ParsedShow:
        """Fetch and parse a podcast feed.

        Raises:
            FetchError: If the feed cannot be downloaded
            FeedParseError: If the body is not a usable feed
        """
        logger.info(f"Parsing feed: {feed_url}")
        content = self.http_client.fetch(feed_url)
        return self.parse_string(content, feed_url)

    def parse_string(self, content: Union[str, bytes], feed_url: str = "") -> ParsedShow:
        """Parse a podcast feed from in-memory content.

        Raises:
            FeedParseError: If the content has no channel or no channel title
        """
        feed = feedparser.parse(content)

        if feed.bozo and feed.get("bozo_exception"):
            logger.warning(f"Feed parsing warning: {feed.bozo_exception}")

        if not feed.feed:
            raise FeedParseError(f"Failed to parse feed: {feed_url or 'content'}")
        if not feed.feed.get("title"):
            raise FeedParseError(f"Feed has no title: {feed_url or 'content'}")

        return self._parse_feed(feed, feed_url)

    def _parse_feed(self, feed: feedparser.FeedParserDict, feed_url: str) -> ParsedShow:
        f = feed.feed
        owner = f.get("publisher_detail") or {}

        show = ParsedShow(
            title=f.title.strip(),
            feed_url=feed_url,
            subtitle=f.get("subtitle"),
            description=f.get("summary") or f.get("description"),
            link=f.get("link"),
            language=f.get("language"),
            author=f.get("author"),
            owner_name=owner.get("name"),
            owner_email=owner.get("email"),
            category=self._first_category(f),
            image_url=self._image_href(f),
        )

        for entry in feed.entries:
            episode = self._parse_episode(entry)
            if episode:
                show.episodes.append(episode)

        logger.info(f"Parsed show '{show.title}' with {len(show.episodes)} episodes")
        return show

    def _parse_episode(self, entry: feedparser.FeedParserDict) -> Optional[ParsedEpisode]:
        """Parse a feed entry, or return None if it has no title or no MP3 audio."""
        title = (entry.get("title") or "").strip()
        if not title:
            logger.warning("Skipping feed entry without a title")
            return None

        enclosure = self._extract_enclosure(entry)
        if not enclosure:
            logger.debug(f"Skipping entry without an MP3 enclosure: {title}")
            return None

        enclosure_url, enclosure_type, enclosure_length = enclosure

        episode = ParsedEpisode(
            title=title,
            enclosure_url=enclosure_url,
            enclosure_type=enclosure_type,
            enclosure_length=enclosure_length,
            link=entry.get("link"),
            duration=entry.get("itunes_duration"),
            author=entry.get("author"),
            summary=entry.get("summary"),
            subtitle=entry.get("subtitle"),
            description=entry.get("description"),
            image_url=self._image_href(entry),
        )

        if entry.get("published_parsed"):
            try:
                episode.published_date = datetime(*entry.published_parsed[:6])
            except (TypeError, ValueError):
                pass
        elif entry.get("published"):
            try:
                episode.published_date = parsedate_to_datetime(entry.published)
            except (TypeError, ValueError):
                pass

        return episode

    def _extract_enclosure(self, entry: feedparser.FeedParserDict) -> Optional[tuple]:
        """Return (url, type, length) of the first MPEG audio enclosure, or None."""
        candidates = list(entry.get("enclosures", []))
        candidates.extend(
            link for link in entry.get("links", []) if link.get("rel") == "enclosure"
        )

        for enclosure in candidates:
            url = enclosure.get("href") or enclosure.get("url")
            mime_type = enclosure.get("type", "")

            if url and self._is_mpeg_audio(mime_type, url):
                length = None
                if enclosure.get("length"):
                    try:
                        length = int(enclosure["length"])
                    except (ValueError, TypeError):
                        pass
                return (url, mime_type or "audio/mpeg", length)

        return None

    def _is_mpeg_audio(self, mime_type: str, url: str) -> bool:
        """Accept MPEG audio only: the trimmer cannot read other containers."""
        mime_type = mime_type.split(";")[0].strip().lower()
        path = urlparse(url).path.lower()

        if mime_type and mime_type != "application/octet-stream":
            if mime_type in self.MPEG_MIME_TYPES:
                return True
            if mime_type.startswith("audio/"):
                logger.info(f"Skipping non-MPEG enclosure ({mime_type}): {url}")
            return False

        if path.endswith(self.MPEG_EXTENSIONS):
            return True
        if path.endswith(self.OTHER_AUDIO_EXTENSIONS):
            logger.info(f"Skipping non-MPEG enclosure: {url}")
        return False

    def _first_category(self, feed: feedparser.FeedParserDict) -> Optional[str]:
        for tag in feed.get("tags") or []:
            term = tag.get("term")
            if term:
                return term
        return None

    def _image_href(self, node: feedparser.FeedParserDict) -> Optional[str]:
        image = node.get("image")
        if isinstance(image, dict):
            return image.get("href") or image.get("url")
        return image or None
