"""Sync workflow: configuration, workers, dispatch and orchestration."""

from .config import SyncConfig
from .dispatcher import TrimDispatcher
from .orchestrator import SyncOrchestrator, SyncResult

__all__ = [
    "SyncConfig",
    "TrimDispatcher",
    "SyncOrchestrator",
    "SyncResult",
]
