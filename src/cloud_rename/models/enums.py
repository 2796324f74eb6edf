"""Enum definitions shared across the engine."""

from enum import Enum


class ExecutorState(str, Enum):
    """Lifecycle state of a BatchExecutor."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutorState.COMPLETED, ExecutorState.CANCELLED)


class ExecutorEvent(str, Enum):
    """Inputs of the executor state machine."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    CANCEL = "cancel"
    FINISH = "finish"


class TaskStatus(str, Enum):
    """Outcome of a finished task."""

    SUCCESS = "success"
    FAILED = "failed"


class ConflictType(str, Enum):
    """Kind of naming conflict."""

    NONE = "none"
    NAME_EXISTS = "name_exists"
    DUPLICATE_IN_BATCH = "duplicate_in_batch"


class ConflictResolution(str, Enum):
    """Strategy for resolving detected conflicts."""

    AUTO_NUMBER = "auto_number"
    SKIP = "skip"
    OVERWRITE = "overwrite"
