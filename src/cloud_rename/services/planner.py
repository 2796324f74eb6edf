"""
Task planning: turn an ordered item list and a naming rule into tasks.
"""

from collections.abc import Sequence
import logging

from cloud_rename.clients.base import NamingRule
from cloud_rename.models.items import Item, Task
from cloud_rename.utils.errors import ValidationError

logger = logging.getLogger(__name__)


def plan_tasks(
    items: Sequence[Item],
    rule: NamingRule | None,
    *,
    skip_unchanged: bool = False,
) -> list[Task]:
    """
    Compute the target name of every item.

    The rule is called exactly once per item, with the item's position and
    the full item count; it is never called again during execution.

    Args:
        items: Items in batch order
        rule: ``(name, index, total) -> new_name``
        skip_unchanged: Drop tasks whose target equals the current name

    Returns:
        Tasks in item order; ``original_index`` is the item position

    Raises:
        ValidationError: If items is empty or rule is missing
    """
    if not items:
        raise ValidationError("Items list cannot be empty")
    if rule is None:
        raise ValidationError("Naming rule is required")

    total = len(items)
    tasks = [
        Task(item=item, target_name=rule(item.name, index, total), original_index=index)
        for index, item in enumerate(items)
    ]

    if skip_unchanged:
        return filter_unchanged(tasks)
    return tasks


def filter_unchanged(tasks: Sequence[Task]) -> list[Task]:
    """Drop no-op tasks, keeping the original indices of the rest."""
    kept = [task for task in tasks if not task.is_unchanged]
    skipped = len(tasks) - len(kept)
    if skipped:
        logger.debug(f"Skipped {skipped} unchanged task(s)")
    return kept
