"""Tests for conflict detection and resolution."""

import pytest

from cloud_rename.clients.capabilities import ClientCapabilities
from cloud_rename.models.enums import ConflictResolution, ConflictType
from cloud_rename.models.items import Item, Task
from cloud_rename.services.conflicts import (
    ConflictDetector,
    apply_resolved_names,
    check_all_conflicts,
    check_batch_conflicts,
    check_single_conflict,
    resolve_batch_conflicts,
    resolve_conflict_with_number,
)


@pytest.fixture
def planned():
    items = [Item(id=str(i), name=f"orig{i}.txt") for i in range(4)]
    return list(zip(items, ["a", "b", "a", "c"]))


def test_batch_conflicts_flag_only_duplicates(planned):
    results = check_batch_conflicts(planned)

    flagged = sorted(item_id for item_id, r in results.items() if r.has_conflict)
    assert flagged == ["0", "2"]
    assert results["0"].type == ConflictType.DUPLICATE_IN_BATCH
    assert results["0"].conflicting_items == ["orig0.txt", "orig2.txt"]
    assert results["1"].type == ConflictType.NONE


def test_batch_conflicts_are_case_sensitive():
    items = [Item(id="1", name="x"), Item(id="2", name="y")]
    results = check_batch_conflicts(list(zip(items, ["A.txt", "a.txt"])))
    assert not any(r.has_conflict for r in results.values())


def test_batch_conflicts_accept_tasks():
    item_a, item_b = Item(id="1", name="x"), Item(id="2", name="y")
    tasks = [
        Task(item=item_a, target_name="same", original_index=0),
        Task(item=item_b, target_name="same", original_index=1),
    ]
    assert all(r.has_conflict for r in check_batch_conflicts(tasks).values())


@pytest.mark.parametrize(
    "name,number,expected",
    [
        ("a.txt", 1, "a(1).txt"),
        ("archive.tar.gz", 2, "archive.tar(2).gz"),
        ("README", 1, "README(1)"),
        (".env", 3, ".env(3)"),
    ],
)
def test_resolve_conflict_with_number(name, number, expected):
    assert resolve_conflict_with_number(name, number) == expected


def test_resolve_batch_conflicts_numbers_each_duplicate(planned):
    conflicts = check_batch_conflicts(planned)
    assert resolve_batch_conflicts(planned, conflicts) == ["a(1)", "b", "a(2)", "c"]


@pytest.mark.asyncio
async def test_check_all_conflicts_without_lookup_reports_batch_only(
    client_factory, planned
):
    client = client_factory()
    client.existing_names = {"b"}

    results = await check_all_conflicts(planned, client)

    assert not results["1"].has_conflict
    assert results["0"].has_conflict


@pytest.mark.asyncio
async def test_check_all_conflicts_with_lookup(client_factory, planned):
    client = client_factory(capabilities=ClientCapabilities(name_lookup=True))
    client.existing_names = {"b"}

    results = await check_all_conflicts(planned, client)

    assert results["1"].type == ConflictType.NAME_EXISTS
    assert results["0"].type == ConflictType.DUPLICATE_IN_BATCH
    assert not results["3"].has_conflict


@pytest.mark.asyncio
async def test_failed_lookup_is_not_a_conflict(client_factory):
    client = client_factory(capabilities=ClientCapabilities(name_lookup=True))

    async def broken(name, parent_id):
        raise RuntimeError("lookup down")

    client.check_name_conflict = broken

    result = await check_single_conflict("x", "root", client)
    assert not result.has_conflict


@pytest.mark.asyncio
async def test_conflict_detector_strategies(fake_client, planned):
    detector = ConflictDetector(fake_client)
    conflicts = await detector.detect_conflicts(planned)

    assert detector.resolve_conflicts(
        planned, conflicts, ConflictResolution.SKIP
    ) == ["orig0.txt", "b", "orig2.txt", "c"]
    assert detector.resolve_conflicts(
        planned, conflicts, ConflictResolution.OVERWRITE
    ) == ["a", "b", "a", "c"]
    assert detector.resolve_conflicts(
        planned, conflicts, ConflictResolution.AUTO_NUMBER
    ) == ["a(1)", "b", "a(2)", "c"]


def test_apply_resolved_names_keeps_indices():
    item = Item(id="1", name="x")
    tasks = [Task(item=item, target_name="a", original_index=4)]

    updated = apply_resolved_names(tasks, ["a(1)"])

    assert updated[0].target_name == "a(1)"
    assert updated[0].original_index == 4

    with pytest.raises(ValueError):
        apply_resolved_names(tasks, [])
