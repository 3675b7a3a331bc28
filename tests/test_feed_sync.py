"""Tests for feed sync service."""

import os
from unittest.mock import Mock

import pytest

from podtrim.db.models import EpisodeState
from podtrim.errors import StoreError
from podtrim.podcast.feed_parser import ParsedEpisode, ParsedShow
from podtrim.podcast.feed_sync import FeedSyncService


def parsed_show(*titles, title="Test Show") -> ParsedShow:
    """Parsed feed whose episodes are given oldest first."""
    return ParsedShow(
        title=title,
        feed_url="https://example.com/feed.xml",
        description="About testing",
        author="Test Author",
        owner_name="Owner",
        category="Technology",
        episodes=[
            ParsedEpisode(
                title=t,
                enclosure_url=f"https://example.com/{t}.mp3",
                duration="10:00",
                description=f"{t} notes",
            )
            for t in reversed(titles)
        ],
    )


class TestFeedSyncService:
    """Tests for FeedSyncService against a real store."""

    @pytest.fixture
    def sync_service(self, repository, tmp_path):
        """Create a FeedSyncService writing under a temporary directory."""
        return FeedSyncService(
            repository=repository,
            download_directory=str(tmp_path / "podcasts"),
        )

    def test_init(self, repository):
        """Test service initialization."""
        service = FeedSyncService(repository=repository, download_directory="/custom/dir")

        assert service.repository == repository
        assert service.download_directory == "/custom/dir"

    def test_ensure_show_creates_row_and_directory(self, sync_service, tmp_path):
        """Test the first sync creates the show and its directory."""
        show = sync_service.ensure_show(parsed_show())

        expected_dir = os.path.join(str(tmp_path / "podcasts"), "Test Show")
        assert show.id is not None
        assert show.local_directory == expected_dir
        assert os.path.isdir(expected_dir)
        assert show.feed_url == "https://example.com/feed.xml"
        assert show.owner_name == "Owner"

    def test_ensure_show_is_idempotent(self, sync_service, repository):
        """Test a second sync reuses the row and refreshes metadata."""
        first = sync_service.ensure_show(parsed_show())
        updated = parsed_show()
        updated.description = "New description"

        second = sync_service.ensure_show(updated)

        assert second.id == first.id
        assert second.description == "New description"
        assert len(repository.list_shows()) == 1

    def test_show_directory_is_sanitized(self, sync_service, tmp_path):
        """Test characters illegal in paths are dropped from the directory name."""
        show = sync_service.ensure_show(parsed_show(title="What/If: A Show?"))

        assert os.path.basename(show.local_directory) == "WhatIf A Show"
        assert os.path.isdir(show.local_directory)

    def test_reconcile_inserts_before_returning(self, sync_service, repository):
        """Test new episodes are stored by the time reconciliation returns."""
        parsed = parsed_show("E1", "E2", "E3")
        show = sync_service.ensure_show(parsed)

        result = sync_service.reconcile_show(show, parsed)

        assert [e.title for e in result.episodes] == ["E1", "E2", "E3"]
        assert repository.list_episode_states(show.id) == [
            EpisodeState("E1", False),
            EpisodeState("E2", False),
            EpisodeState("E3", False),
        ]
        stored = repository.list_episodes(show.id)[0]
        assert stored.duration == "10:00"
        assert stored.description == "E1 notes"
        assert stored.enclosure_url == "https://example.com/E1.mp3"

    def test_reconcile_after_processing(self, sync_service, repository):
        """Test processed episodes are not selected again."""
        parsed = parsed_show("E1", "E2")
        show = sync_service.ensure_show(parsed)
        sync_service.reconcile_show(show, parsed)
        repository.mark_processed(show.id, "E1", "/out/E1.mp3")
        repository.mark_processed(show.id, "E2", "/out/E2.mp3")

        result = sync_service.reconcile_show(show, parsed_show("E1", "E2", "E3"))

        assert [e.title for e in result.episodes] == ["E3"]
        assert result.inserted == 1

    def test_reconcile_picks_up_unfinished(self, sync_service, repository):
        """Test an episode left unprocessed is selected on the next pass."""
        parsed = parsed_show("E1", "E2")
        show = sync_service.ensure_show(parsed)
        sync_service.reconcile_show(show, parsed)
        repository.mark_processed(show.id, "E1", "/out/E1.mp3")

        result = sync_service.reconcile_show(show, parsed)

        assert [e.title for e in result.episodes] == ["E2"]
        assert result.inserted == 0

    def test_get_status(self, sync_service, repository):
        """Test the status summary lists unprocessed titles oldest first."""
        parsed = parsed_show("E1", "E2", "E3")
        show = sync_service.ensure_show(parsed)
        sync_service.reconcile_show(show, parsed)
        repository.mark_processed(show.id, "E2", "/out/E2.mp3")

        status = sync_service.get_status(show)

        assert status["title"] == "Test Show"
        assert status["total"] == 3
        assert status["processed"] == 1
        assert status["unprocessed"] == 2
        assert status["pending_titles"] == ["E1", "E3"]


class TestFeedSyncServiceErrors:
    """Tests for store failures during sync."""

    @pytest.fixture
    def mock_repository(self):
        """Create mock repository."""
        return Mock()

    def test_insert_failure_is_partial(self, mock_repository, tmp_path):
        """Test an insert failure is recorded and the remaining episodes still handled."""
        mock_repository.list_episode_states.return_value = []
        mock_repository.insert_episode_if_absent.side_effect = [
            True,
            StoreError("locked"),
            True,
        ]
        service = FeedSyncService(mock_repository, download_directory=str(tmp_path))
        show = Mock(id=1, title="Test Show")

        result = service.reconcile_show(show, parsed_show("E1", "E2", "E3"))

        assert result.partial is True
        assert [t for t, _ in result.store_errors] == ["E2"]
        assert [e.title for e in result.dispatchable] == ["E1", "E3"]
        assert mock_repository.insert_episode_if_absent.call_count == 3

    def test_state_read_failure_propagates(self, mock_repository, tmp_path):
        """Test reconciliation cannot run without the stored states."""
        mock_repository.list_episode_states.side_effect = StoreError("no such table")
        service = FeedSyncService(mock_repository, download_directory=str(tmp_path))

        with pytest.raises(StoreError):
            service.reconcile_show(Mock(id=1, title="Test Show"), parsed_show("E1"))

        mock_repository.insert_episode_if_absent.assert_not_called()
