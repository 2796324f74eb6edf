"""
Item and task models.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Item(BaseModel):
    """A remote file or folder taking part in a batch."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Remote identifier")
    name: str = Field(..., description="Current display name, with extension")
    parent_id: str = Field(default="", description="Identifier of the parent folder")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Extra data a naming rule may need"
    )


class Task(BaseModel):
    """One planned rename operation."""

    model_config = ConfigDict(frozen=True)

    item: Item
    target_name: str = Field(..., description="Name computed at planning time")
    original_index: int = Field(..., ge=0, description="Position in the planned batch")

    @property
    def is_unchanged(self) -> bool:
        return self.target_name == self.item.name
