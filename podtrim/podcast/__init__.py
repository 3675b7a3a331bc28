"""Podcast feed handling.

Provides:
- Shared HTTP client for feeds and enclosures
- RSS feed parsing into a feed snapshot
- Reconciliation of a snapshot against stored episode state
- Feed synchronization with the store
"""

from .feed_parser import FeedParser, ParsedEpisode, ParsedShow
from .feed_sync import FeedSyncService
from .http import HttpClient
from .reconcile import ReconcileResult, reconcile

__all__ = [
    "FeedParser",
    "ParsedEpisode",
    "ParsedShow",
    "FeedSyncService",
    "HttpClient",
    "ReconcileResult",
    "reconcile",
]
