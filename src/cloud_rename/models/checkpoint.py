"""Checkpoint document for crash recovery."""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from cloud_rename.models.items import Item


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class OperationState(BaseModel):
    """Persisted progress of the in-flight batch."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: int = Field(default_factory=now_ms, description="Save time, epoch ms")
    context: str = Field(default="", description="Where the batch runs (site, folder)")
    items: list[Item] = Field(default_factory=list, description="Full planned item list")
    rule: dict[str, Any] = Field(
        default_factory=dict, description="JSON descriptor of the naming rule"
    )
    completed_indices: list[int] = Field(
        default_factory=list, alias="completedIndices"
    )
    failed_indices: list[int] = Field(default_factory=list, alias="failedIndices")

    @property
    def finished_count(self) -> int:
        return len(set(self.completed_indices) | set(self.failed_indices))

    @property
    def pending_count(self) -> int:
        return max(len(self.items) - self.finished_count, 0)

    @property
    def is_finished(self) -> bool:
        return self.finished_count >= len(self.items)

    def age_minutes(self, now: int | None = None) -> float:
        """Minutes elapsed since the checkpoint was saved."""
        current = now if now is not None else now_ms()
        return (current - self.timestamp) / 60000

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form, using the camelCase index keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OperationState:
        """Create from a stored document."""
        return cls.model_validate(data)
