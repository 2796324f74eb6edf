"""Pydantic models for batch rename planning, execution and recovery."""

from .checkpoint import OperationState
from .conflicts import ConflictResult
from .enums import (
    ConflictResolution,
    ConflictType,
    ExecutorEvent,
    ExecutorState,
    TaskStatus,
)
from .items import Item, Task
from .results import (
    BatchResults,
    BatchStatistics,
    FailureEntry,
    ProgressEvent,
    SuccessEntry,
)

__all__ = [
    # Items
    "Item",
    "Task",
    # Results
    "BatchResults",
    "BatchStatistics",
    "FailureEntry",
    "ProgressEvent",
    "SuccessEntry",
    # Checkpoint
    "OperationState",
    # Conflicts
    "ConflictResult",
    # Enums
    "ConflictResolution",
    "ConflictType",
    "ExecutorEvent",
    "ExecutorState",
    "TaskStatus",
]
