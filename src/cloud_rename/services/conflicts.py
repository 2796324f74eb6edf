"""
Conflict detection for planned target names.

Batch conflicts (two items in the same batch targeting the same name) are
found by a pure pass. Collisions with names that already exist remotely are
an optional extra, available when the client declares name lookup.
Conflicts are advisory: the caller decides whether to proceed.
"""

import asyncio
from collections import defaultdict
from collections.abc import Iterable, Sequence
import logging

from cloud_rename.clients.base import BaseRenameClient
from cloud_rename.clients.capabilities import NAME_LOOKUP
from cloud_rename.models.conflicts import ConflictResult
from cloud_rename.models.enums import ConflictResolution, ConflictType
from cloud_rename.models.items import Item, Task

logger = logging.getLogger(__name__)

Pair = tuple[Item, str]


def _as_pairs(planned: Iterable[Task | Pair]) -> list[Pair]:
    pairs: list[Pair] = []
    for entry in planned:
        if isinstance(entry, Task):
            pairs.append((entry.item, entry.target_name))
        else:
            item, target_name = entry
            pairs.append((item, target_name))
    return pairs


# -------------------- Detection --------------------


def check_batch_conflicts(planned: Iterable[Task | Pair]) -> dict[str, ConflictResult]:
    """
    Flag items whose target names collide inside the batch.

    Names are compared exactly (case-sensitive). Every item sharing a target
    name with another item is flagged; unique names never are.

    Args:
        planned: Tasks or ``(item, target_name)`` pairs

    Returns:
        Conflict result per item id
    """
    pairs = _as_pairs(planned)

    names_to_items: dict[str, list[str]] = defaultdict(list)
    for item, target_name in pairs:
        names_to_items[target_name].append(item.name)

    results: dict[str, ConflictResult] = {}
    for item, target_name in pairs:
        sharing = names_to_items[target_name]
        if len(sharing) > 1:
            results[item.id] = ConflictResult(
                type=ConflictType.DUPLICATE_IN_BATCH,
                has_conflict=True,
                conflicting_name=target_name,
                conflicting_items=list(sharing),
            )
        else:
            results[item.id] = ConflictResult.none()

    return results


async def check_single_conflict(
    name: str, parent_id: str, client: BaseRenameClient
) -> ConflictResult:
    """
    Check one name against existing siblings through the client.

    A failed lookup is logged and reported as no conflict.
    """
    try:
        exists = await client.check_name_conflict(name, parent_id)
    except Exception as e:
        logger.error(f"Failed to check name conflict for {name}: {e}")
        return ConflictResult.none()

    if exists:
        return ConflictResult(
            type=ConflictType.NAME_EXISTS,
            has_conflict=True,
            conflicting_name=name,
        )
    return ConflictResult.none()


async def check_all_conflicts(
    planned: Iterable[Task | Pair], client: BaseRenameClient
) -> dict[str, ConflictResult]:
    """
    Batch conflicts plus collisions with existing names.

    Items already flagged as batch duplicates are not looked up. Without
    the name lookup capability only batch conflicts are reported.
    """
    pairs = _as_pairs(planned)
    batch_conflicts = check_batch_conflicts(pairs)

    if not client.supports(NAME_LOOKUP):
        logger.debug("Client has no name lookup; reporting batch conflicts only")
        return batch_conflicts

    async def _check(item: Item, target_name: str) -> tuple[str, ConflictResult]:
        existing = batch_conflicts[item.id]
        if existing.has_conflict:
            return item.id, existing
        return item.id, await check_single_conflict(target_name, item.parent_id, client)

    checked = await asyncio.gather(*(_check(item, name) for item, name in pairs))
    return dict(checked)


# -------------------- Resolution --------------------


def resolve_conflict_with_number(base_name: str, number: int = 1) -> str:
    """
    Insert a counter before the extension: ``a.txt`` -> ``a(1).txt``.

    Names without an extension (including dot-files) get the counter appended.
    """
    dot_index = base_name.rfind(".")
    if dot_index <= 0:
        return f"{base_name}({number})"
    return f"{base_name[:dot_index]}({number}){base_name[dot_index:]}"


def resolve_batch_conflicts(
    planned: Sequence[Task | Pair], conflicts: dict[str, ConflictResult]
) -> list[str]:
    """
    Number every conflicting target name.

    Each duplicated name gets its own counter starting at 1, in batch order.

    Returns:
        Resolved target names, in input order
    """
    counters: dict[str, int] = defaultdict(lambda: 1)
    resolved: list[str] = []

    for item, target_name in _as_pairs(planned):
        conflict = conflicts.get(item.id)
        if conflict is not None and conflict.has_conflict:
            counter = counters[target_name]
            counters[target_name] = counter + 1
            new_name = resolve_conflict_with_number(target_name, counter)
            logger.info(f"Conflict resolved with numbering: {target_name} -> {new_name}")
            resolved.append(new_name)
        else:
            resolved.append(target_name)

    return resolved


class ConflictDetector:
    """Conflict detection bound to one client."""

    def __init__(self, client: BaseRenameClient):
        self.client = client

    async def detect_conflicts(
        self, planned: Sequence[Task | Pair]
    ) -> dict[str, ConflictResult]:
        logger.info(f"Starting conflict detection for {len(planned)} item(s)")
        return await check_all_conflicts(planned, self.client)

    def resolve_conflicts(
        self,
        planned: Sequence[Task | Pair],
        conflicts: dict[str, ConflictResult],
        resolution: ConflictResolution,
    ) -> list[str]:
        """
        Apply a resolution strategy.

        - AUTO_NUMBER: number conflicting names
        - SKIP: conflicting items keep their current name
        - OVERWRITE: keep the planned names unchanged
        """
        pairs = _as_pairs(planned)

        if resolution == ConflictResolution.AUTO_NUMBER:
            return resolve_batch_conflicts(pairs, conflicts)

        if resolution == ConflictResolution.SKIP:
            return [
                item.name
                if conflicts.get(item.id, ConflictResult.none()).has_conflict
                else target_name
                for item, target_name in pairs
            ]

        return [target_name for _, target_name in pairs]


def apply_resolved_names(tasks: Sequence[Task], names: Sequence[str]) -> list[Task]:
    """Rebuild tasks with resolved target names, keeping original indices."""
    if len(tasks) != len(names):
        raise ValueError("tasks and names must have the same length")
    return [
        task.model_copy(update={"target_name": name})
        for task, name in zip(tasks, names)
    ]
