"""Configuration for the sync workflow.

Provides environment-based configuration for the trim window and worker
concurrency. CLI flags override the environment through `with_overrides`.
"""

import os
from dataclasses import dataclass, replace
from typing import Optional


def _get_int_env(
    name: str,
    default: int,
    min_val: Optional[int] = None,
    max_val: Optional[int] = None,
) -> int:
    """Parse an integer from an environment variable with validation.

    Args:
        name: Environment variable name.
        default: Default value if env var is not set.
        min_val: Minimum allowed value (inclusive), or None for no minimum.
        max_val: Maximum allowed value (inclusive), or None for no maximum.

    Returns:
        The parsed and validated integer value.

    Raises:
        ValueError: If the value cannot be parsed as an integer or is out of range.
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid value for {name}: '{raw}' is not a valid integer"
        )

    _check_range(name, value, min_val, max_val)
    return value


def _check_range(
    name: str, value: int, min_val: Optional[int], max_val: Optional[int]
) -> None:
    if min_val is not None and value < min_val:
        raise ValueError(
            f"Invalid value for {name}: {value} must be >= {min_val}"
        )

    if max_val is not None and value > max_val:
        raise ValueError(
            f"Invalid value for {name}: {value} must be <= {max_val}"
        )


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for one sync cycle.

    All settings can be overridden via environment variables.
    """

    # Trim window, whole seconds
    head_skip_seconds: int = 0
    tail_skip_seconds: int = 0

    # Concurrent fetch-and-trim workers
    max_workers: int = 10

    # Block until every dispatched worker has finished
    wait_for_workers: bool = True

    def __post_init__(self):
        _check_range("head_skip_seconds", self.head_skip_seconds, 0, None)
        _check_range("tail_skip_seconds", self.tail_skip_seconds, 0, None)
        _check_range("max_workers", self.max_workers, 1, None)

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """Create configuration from environment variables.

        Returns:
            SyncConfig instance with values from environment or defaults.

        Raises:
            ValueError: If any environment variable has an invalid value.
        """
        return cls(
            head_skip_seconds=_get_int_env(
                "PODTRIM_HEAD_SKIP_SECONDS", 0, min_val=0
            ),
            tail_skip_seconds=_get_int_env(
                "PODTRIM_TAIL_SKIP_SECONDS", 0, min_val=0
            ),
            max_workers=_get_int_env(
                "PODTRIM_MAX_WORKERS", 10, min_val=1
            ),
            wait_for_workers=_get_bool_env("PODTRIM_WAIT_FOR_WORKERS", True),
        )

    def with_overrides(self, **overrides) -> "SyncConfig":
        """Return a copy with every non-None override applied.

        Raises:
            ValueError: If an override is out of range.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)
