"""Tests for crash recovery."""

from unittest.mock import MagicMock

import pytest

from cloud_rename.clients.capabilities import ClientCapabilities
from cloud_rename.models.checkpoint import OperationState, now_ms
from cloud_rename.services.checkpoint import (
    STORAGE_KEY,
    CrashRecoveryManager,
    get_crash_recovery_manager,
    rename_with_idempotency,
)
from cloud_rename.services.storage import JsonFileStore, MemoryStore
from cloud_rename.utils.errors import CapabilityNotSupportedError, StorageError


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def manager(store):
    return CrashRecoveryManager(store=store)


@pytest.fixture
def state(items):
    return OperationState(context="drive:/docs", items=items, rule={"prefix": "x_"})


def prefix_factory(descriptor):
    prefix = descriptor["prefix"]
    return lambda name, index, total: f"{prefix}{name}"


# -------------------- Save / Check --------------------


def test_save_and_check(manager, state):
    manager.save_operation_state(state)

    recovered = manager.check_recoverable_operation()

    assert recovered is not None
    assert recovered.context == "drive:/docs"
    assert [item.id for item in recovered.items] == ["1", "2", "3"]
    assert recovered.rule == {"prefix": "x_"}


def test_save_stamps_timestamp(manager, state):
    old = state.model_copy(update={"timestamp": 0})
    saved = manager.save_operation_state(old)
    assert saved.timestamp >= now_ms() - 1000


def test_stored_document_uses_camel_case_indices(manager, store, state):
    manager.save_operation_state(state)
    manager.mark_as_completed(0)

    document = store.get(STORAGE_KEY)

    assert document["completedIndices"] == [0]
    assert document["failedIndices"] == []


def test_nothing_to_recover(manager):
    assert manager.check_recoverable_operation() is None


def test_expired_checkpoint_is_discarded(manager, store, state):
    manager.save_operation_state(state)
    document = store.get(STORAGE_KEY)
    document["timestamp"] = now_ms() - 31 * 60 * 1000
    store.set(STORAGE_KEY, document)

    assert manager.check_recoverable_operation() is None
    assert store.get(STORAGE_KEY) is None


def test_finished_checkpoint_is_discarded(manager, store, state):
    manager.save_operation_state(state)
    manager.mark_as_completed(0)
    manager.mark_as_completed(1)
    manager.mark_as_failed(2)

    assert manager.check_recoverable_operation() is None
    assert store.get(STORAGE_KEY) is None


def test_unreadable_document_is_ignored(manager, store):
    store.set(STORAGE_KEY, {"items": "not a list"})
    assert manager.check_recoverable_operation() is None


# -------------------- Marking --------------------


def test_marks_are_disjoint_and_unique(manager, state):
    manager.save_operation_state(state)

    manager.mark_as_failed(1)
    manager.mark_as_completed(1)
    manager.mark_as_completed(1)

    recovered = manager.check_recoverable_operation()
    assert recovered.completed_indices == [1]
    assert recovered.failed_indices == []


def test_get_pending_files(manager, state):
    manager.save_operation_state(state)
    manager.mark_as_completed(0)
    manager.mark_as_failed(2)

    recovered = manager.check_recoverable_operation()

    assert [item.id for item in manager.get_pending_files(recovered)] == ["2"]


def test_mark_without_checkpoint_is_noop(manager, store):
    manager.mark_as_completed(0)
    assert store.get(STORAGE_KEY) is None


def test_clear(manager, state):
    manager.save_operation_state(state)
    manager.clear_operation_state()
    assert manager.check_recoverable_operation() is None


def test_storage_failures_are_not_raised(state):
    store = MagicMock()
    store.get.side_effect = StorageError("disk gone")
    store.set.side_effect = StorageError("disk gone")
    store.remove.side_effect = StorageError("disk gone")
    manager = CrashRecoveryManager(store=store)

    manager.save_operation_state(state)
    manager.mark_as_completed(0)
    manager.clear_operation_state()
    assert manager.check_recoverable_operation() is None


def test_default_store_uses_checkpoint_dir(tmp_path):
    manager = CrashRecoveryManager()
    assert isinstance(manager.store, JsonFileStore)
    assert manager.store.directory == tmp_path / "state"
    assert manager.max_age_minutes == 30


def test_singleton():
    assert get_crash_recovery_manager() is get_crash_recovery_manager()


# -------------------- Dialog --------------------


@pytest.mark.parametrize(
    "answer,expected", [("y", True), ("YES", True), ("n", False), ("", False)]
)
def test_recovery_dialog(manager, state, answer, expected):
    prompt = MagicMock(return_value=answer)

    assert manager.show_recovery_dialog(state, prompt=prompt) is expected

    message = prompt.call_args.args[0]
    assert "drive:/docs" in message
    assert "Pending: 3" in message


# -------------------- Resume --------------------


@pytest.mark.asyncio
async def test_resume_runs_only_pending_tasks(manager, state, fake_client):
    manager.save_operation_state(state)
    manager.mark_as_completed(0)
    recovered = manager.check_recoverable_operation()

    results = await manager.resume_operation(recovered, fake_client, prefix_factory)

    assert fake_client.calls == [("2", "x_b.txt"), ("3", "x_c.txt")]
    assert [entry.index for entry in results.success] == [1, 2]
    assert manager.check_recoverable_operation() is None


@pytest.mark.asyncio
async def test_resume_records_failures(
    manager, state, client_factory
):
    client = client_factory(fail_ids={"3"})
    manager.save_operation_state(state)

    results = await manager.resume_operation(state, client, prefix_factory)

    assert [entry.index for entry in results.failed] == [2]
    # All positions finished, so the checkpoint is no longer recoverable
    assert manager.check_recoverable_operation() is None


# -------------------- Idempotent Rename --------------------


@pytest.mark.asyncio
async def test_idempotent_rename_requires_item_info(fake_client):
    with pytest.raises(CapabilityNotSupportedError):
        await rename_with_idempotency(fake_client, "1", "a.txt", "b.txt")


@pytest.mark.asyncio
async def test_idempotent_rename_skips_already_renamed(client_factory):
    client = client_factory(capabilities=ClientCapabilities(item_info=True))
    client.names["1"] = "b.txt"

    outcome = await rename_with_idempotency(client, "1", "a.txt", "b.txt")

    assert outcome.success
    assert outcome.skipped
    assert outcome.reason == "already_renamed"
    assert client.calls == []


@pytest.mark.asyncio
async def test_idempotent_rename_detects_mismatch(client_factory):
    client = client_factory(capabilities=ClientCapabilities(item_info=True))
    client.names["1"] = "other.txt"

    outcome = await rename_with_idempotency(client, "1", "a.txt", "b.txt")

    assert not outcome.success
    assert outcome.reason == "name_mismatch"
    assert client.calls == []


@pytest.mark.asyncio
async def test_idempotent_rename_performs_rename(client_factory):
    client = client_factory(capabilities=ClientCapabilities(item_info=True))
    client.names["1"] = "a.txt"

    outcome = await rename_with_idempotency(client, "1", "a.txt", "b.txt")

    assert outcome.success
    assert client.calls == [("1", "b.txt")]
