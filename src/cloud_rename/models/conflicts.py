"""Conflict detection result model."""

from pydantic import BaseModel, Field

from cloud_rename.models.enums import ConflictType


class ConflictResult(BaseModel):
    """Per-item outcome of a conflict check."""

    type: ConflictType = ConflictType.NONE
    has_conflict: bool = False
    conflicting_name: str | None = None
    conflicting_items: list[str] = Field(
        default_factory=list,
        description="Original names of the items sharing the target name",
    )

    @classmethod
    def none(cls) -> "ConflictResult":
        return cls()
