"""Workflow workers."""

from .base import ProcessResult, WorkerInterface, WorkerResult
from .trim import TrimWorker

__all__ = [
    "ProcessResult",
    "WorkerInterface",
    "WorkerResult",
    "TrimWorker",
]
