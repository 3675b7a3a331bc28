"""Exception hierarchy for podtrim.

Library exceptions (requests, SQLAlchemy, mutagen) are translated into these
at the module that owns the library call, with the original chained.
"""


class PodtrimError(Exception):
    """Base exception for all podtrim errors."""

    pass


class FetchError(PodtrimError):
    """Network or HTTP failure fetching a feed or an episode enclosure."""

    pass


class FeedParseError(FetchError):
    """Feed body was fetched but could not be parsed into a usable feed."""

    pass


class DecodeError(PodtrimError):
    """Malformed or truncated audio."""

    pass


class StoreError(PodtrimError):
    """Persistence failure in the episode store."""

    pass


class ConsistencyFault(StoreError):
    """A single-row update touched zero or several rows."""

    def __init__(self, message: str, rows_affected: int):
        super().__init__(message)
        self.rows_affected = rows_affected
