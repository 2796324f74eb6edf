"""
Progress, result and statistics models for batch execution.
"""

from pydantic import BaseModel, Field

from cloud_rename.models.enums import TaskStatus
from cloud_rename.models.items import Item, Task


class ProgressEvent(BaseModel):
    """Emitted once per finished task, in completion order."""

    completed: int = Field(..., description="Finished tasks so far")
    total: int = Field(..., description="Scheduled tasks in the batch")
    current_item_id: str | None = None
    current_item_name: str | None = None
    success_count: int = 0
    failed_count: int = 0
    target_name: str | None = None
    status: TaskStatus | None = None
    error: str | None = None

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.completed / self.total) * 100


class SuccessEntry(BaseModel):
    """A task whose remote rename succeeded."""

    item_id: str
    original_name: str
    new_name: str
    index: int


class FailureEntry(BaseModel):
    """A task whose remote rename failed, with a readable message."""

    item_id: str
    item: Item
    error: str
    index: int


class BatchResults(BaseModel):
    """Aggregated outcome of a batch; each task appears at most once."""

    success: list[SuccessEntry] = Field(default_factory=list)
    failed: list[FailureEntry] = Field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return len(self.success) + len(self.failed)

    def failed_tasks(self, tasks: list[Task]) -> list[Task]:
        """
        Select the tasks that failed, for a retry run.

        Args:
            tasks: The planned tasks of the batch these results belong to

        Returns:
            Tasks whose original index appears in ``failed``, in plan order
        """
        failed_indices = {entry.index for entry in self.failed}
        return [task for task in tasks if task.original_index in failed_indices]


class BatchStatistics(BaseModel):
    """Derived execution statistics; durations in seconds."""

    completed: int
    total: int
    success: int
    failed: int
    percentage: float
    elapsed: float
    estimated_remaining: float
    avg_time_per_item: float
