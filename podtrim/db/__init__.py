"""Episode store.

Provides:
- SQLAlchemy ORM models (Show, Episode)
- Repository interface and implementation
- Factory functions for creating repositories
"""

from .factory import create_repository, create_repository_from_config
from .models import Base, Episode, EpisodeState, Show
from .repository import ShowRepositoryInterface, SQLAlchemyShowRepository

__all__ = [
    "Base",
    "Show",
    "Episode",
    "EpisodeState",
    "ShowRepositoryInterface",
    "SQLAlchemyShowRepository",
    "create_repository",
    "create_repository_from_config",
]
