"""Factory for creating episode store instances.

Detects the backend from the URL. SQLite is the default and keeps the store in
a single local file.
"""

import logging
import os
from typing import Optional

from .repository import ShowRepositoryInterface, SQLAlchemyShowRepository

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./podcasts.db"


def create_repository(
    database_url: Optional[str] = None,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
    create_tables: bool = True,
) -> ShowRepositoryInterface:
    """
    Create a ShowRepositoryInterface for the provided or discovered database URL.

    If `database_url` is not provided, it is read from the `DATABASE_URL` environment variable; if that is unset, `./podcasts.db` is used. Credentials are hidden when the URL is logged.

    Parameters:
        database_url (Optional[str]): SQLAlchemy database URL; if None the environment or default is used.
        pool_size (int): Connection pool size; ignored for SQLite.
        max_overflow (int): Maximum overflow connections; ignored for SQLite.
        echo (bool): If true, enable SQL statement logging.
        create_tables (bool): If true, create missing tables on open.

    Returns:
        ShowRepositoryInterface: A repository backed by the resolved database URL.

    Raises:
        StoreError: If the database cannot be opened or initialised.
    """
    if database_url is None:
        database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

    if "://" in database_url:
        db_type = database_url.split("://")[0]
        if "@" in database_url:
            db_location = database_url.split("@")[-1]
            logger.info(f"Creating {db_type} repository: ...@{db_location}")
        else:
            logger.info(f"Creating {db_type} repository: {database_url}")
    else:
        logger.info(f"Creating repository with URL: {database_url}")

    return SQLAlchemyShowRepository(
        database_url=database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        echo=echo,
        create_tables=create_tables,
    )


def create_repository_from_config(config) -> ShowRepositoryInterface:
    """Create a repository using the DATABASE_URL and DB_* settings of a Config."""
    return create_repository(
        database_url=getattr(config, "DATABASE_URL", None),
        pool_size=getattr(config, "DB_POOL_SIZE", 5),
        max_overflow=getattr(config, "DB_MAX_OVERFLOW", 10),
        echo=getattr(config, "DB_ECHO", False),
    )
