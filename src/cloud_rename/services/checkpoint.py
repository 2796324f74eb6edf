"""
Crash recovery for batch renames.

A single checkpoint document records the in-flight batch: its items, the
naming rule descriptor, and which positions have finished. After a crash the
pending items can be found and the batch resumed.
"""

from collections.abc import Callable
import dataclasses
from datetime import timedelta
import logging
from typing import Any

from cloud_rename.clients.base import BaseRenameClient, NamingRule, RenameOutcome
from cloud_rename.clients.capabilities import ITEM_INFO
from cloud_rename.config import get_settings
from cloud_rename.models.checkpoint import OperationState, now_ms
from cloud_rename.models.items import Item
from cloud_rename.models.results import BatchResults
from cloud_rename.services.executor import BatchExecutor, ExecutorOptions
from cloud_rename.services.planner import plan_tasks
from cloud_rename.services.storage import JsonFileStore, KeyValueStore
from cloud_rename.utils.errors import (
    CapabilityNotSupportedError,
    ErrorKind,
    RemoteOperationError,
    StorageError,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "rename_operation_state"
DEFAULT_MAX_AGE_MINUTES = 30

RuleFactory = Callable[[dict[str, Any]], NamingRule]
"""Rebuilds a naming rule from its stored descriptor."""

Prompt = Callable[[str], str]


# -------------------- Crash Recovery Manager --------------------


class CrashRecoveryManager:
    """
    Persists batch progress so an interrupted batch can be resumed.

    Only one checkpoint exists at a time; saving a new batch overwrites it.
    Storage failures are logged and never interrupt a running batch.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        max_age_minutes: float | None = None,
    ):
        """
        Initialize the manager.

        Args:
            store: Backing store. Defaults to a JSON file store in the
                configured checkpoint directory
            max_age_minutes: Checkpoints older than this are discarded
        """
        settings = get_settings()
        self.store = store or JsonFileStore(settings.checkpoint_dir)
        self.max_age_minutes = (
            max_age_minutes
            if max_age_minutes is not None
            else settings.checkpoint_max_age_minutes
        )

    # -------------------- Storage --------------------

    def _load(self) -> OperationState | None:
        try:
            data = self.store.get(STORAGE_KEY)
        except StorageError as e:
            logger.error(f"Failed to load operation state: {e}")
            return None

        if data is None:
            return None

        try:
            return OperationState.from_dict(data)
        except ValueError as e:
            logger.error(f"Discarding unreadable operation state: {e}")
            return None

    def _write(self, state: OperationState) -> None:
        try:
            self.store.set(STORAGE_KEY, state.to_dict())
        except StorageError as e:
            logger.error(f"Failed to save operation state: {e}")

    def save_operation_state(self, state: OperationState) -> OperationState:
        """
        Save the checkpoint, stamping it with the current time.

        Args:
            state: Batch progress to persist

        Returns:
            The stamped state that was written
        """
        stamped = state.model_copy(update={"timestamp": now_ms()})
        self._write(stamped)
        logger.debug(
            f"Saved operation state: {len(stamped.items)} item(s), "
            f"{stamped.finished_count} finished"
        )
        return stamped

    def clear_operation_state(self) -> None:
        try:
            self.store.remove(STORAGE_KEY)
        except StorageError as e:
            logger.error(f"Failed to clear operation state: {e}")
            return
        logger.debug("Cleared operation state")

    def check_recoverable_operation(self) -> OperationState | None:
        """
        Return the checkpoint if it describes resumable work.

        Expired or fully finished checkpoints are deleted.

        Returns:
            OperationState, or None when there is nothing to recover
        """
        state = self._load()
        if state is None:
            return None

        age = state.age_minutes()
        if age > self.max_age_minutes:
            logger.info(f"Discarding expired operation state ({age:.1f} min old)")
            self.clear_operation_state()
            return None

        if state.is_finished:
            logger.info("Discarding finished operation state")
            self.clear_operation_state()
            return None

        logger.info(
            f"Found recoverable operation: {state.pending_count} of "
            f"{len(state.items)} item(s) pending"
        )
        return state

    @staticmethod
    def get_pending_files(state: OperationState) -> list[Item]:
        """Items whose position is in neither the completed nor failed set."""
        finished = set(state.completed_indices) | set(state.failed_indices)
        return [item for index, item in enumerate(state.items) if index not in finished]

    def _mark(self, index: int, completed: bool) -> None:
        state = self._load()
        if state is None:
            logger.debug(f"No operation state to mark index {index}")
            return

        completed_indices = [i for i in state.completed_indices if i != index]
        failed_indices = [i for i in state.failed_indices if i != index]
        if completed:
            completed_indices.append(index)
        else:
            failed_indices.append(index)

        self._write(
            state.model_copy(
                update={
                    "completed_indices": completed_indices,
                    "failed_indices": failed_indices,
                }
            )
        )

    def mark_as_completed(self, index: int) -> None:
        self._mark(index, completed=True)

    def mark_as_failed(self, index: int) -> None:
        self._mark(index, completed=False)

    # -------------------- Recovery --------------------

    @staticmethod
    def format_recovery_summary(state: OperationState) -> str:
        age = timedelta(minutes=state.age_minutes())
        minutes = int(age.total_seconds() // 60)
        lines = [
            "An unfinished batch rename was found.",
            f"  Context: {state.context or '-'}",
            f"  Total items: {len(state.items)}",
            f"  Completed: {len(set(state.completed_indices))}",
            f"  Failed: {len(set(state.failed_indices))}",
            f"  Pending: {state.pending_count}",
            f"  Saved: {minutes} minute(s) ago",
            "Resume it? [y/N] ",
        ]
        return "\n".join(lines)

    def show_recovery_dialog(
        self, state: OperationState, prompt: Prompt | None = None
    ) -> bool:
        """
        Ask whether to resume the batch.

        Args:
            state: Recoverable checkpoint
            prompt: Callable showing a message and returning the answer.
                Defaults to ``input``

        Returns:
            True if the answer is yes
        """
        ask = prompt or input
        answer = ask(self.format_recovery_summary(state))
        return str(answer).strip().lower() in ("y", "yes")

    async def resume_operation(
        self,
        state: OperationState,
        client: BaseRenameClient,
        rule_factory: RuleFactory,
        *,
        options: ExecutorOptions | None = None,
    ) -> BatchResults:
        """
        Run the pending part of a checkpointed batch.

        The full item list is re-planned so every task keeps its original
        position and rule input; only unfinished positions are executed.

        Args:
            state: Checkpoint returned by ``check_recoverable_operation``
            client: Remote rename client
            rule_factory: Rebuilds the naming rule from ``state.rule``
            options: Executor tuning and callbacks

        Returns:
            Results of the resumed tasks
        """
        rule = rule_factory(state.rule)
        finished = set(state.completed_indices) | set(state.failed_indices)
        pending = [
            task
            for task in plan_tasks(state.items, rule)
            if task.original_index not in finished
        ]
        logger.info(f"Resuming batch: {len(pending)} pending task(s)")

        resumed_options = dataclasses.replace(
            options or ExecutorOptions(),
            tasks=pending,
            recovery=self,
            context=state.context,
            rule_descriptor=state.rule,
            checkpoint_state=state,
        )
        executor = BatchExecutor(state.items, rule, client, resumed_options)
        return await executor.execute()


# -------------------- Idempotent Rename --------------------


async def rename_with_idempotency(
    client: BaseRenameClient,
    item_id: str,
    expected_old_name: str,
    new_name: str,
) -> RenameOutcome:
    """
    Rename only if the item still has its expected name.

    Args:
        client: Client supporting item info lookups
        item_id: Remote item identifier
        expected_old_name: Name the item had when the batch was planned
        new_name: Target name

    Returns:
        A skipped success when the item already has ``new_name``; a
        ``name_mismatch`` failure when it has some other name; otherwise the
        outcome of the rename

    Raises:
        CapabilityNotSupportedError: If the client cannot look up items
    """
    if not client.supports(ITEM_INFO):
        raise CapabilityNotSupportedError(
            "Idempotent rename requires item info lookups",
            "Use a client that declares the item_info capability",
        )

    current = await client.get_item_info(item_id)

    if current.name == new_name:
        logger.info(f"Item {item_id} already renamed to {new_name}; skipping")
        return RenameOutcome(
            success=True, new_name=new_name, skipped=True, reason="already_renamed"
        )

    if current.name != expected_old_name:
        logger.warning(
            f"Item {item_id} is named {current.name!r}, expected {expected_old_name!r}"
        )
        return RenameOutcome.failure(
            RemoteOperationError(
                f"Name changed: expected {expected_old_name}, found {current.name}",
                kind=ErrorKind.CONFLICT,
            ),
            reason="name_mismatch",
        )

    return await client.rename_item(item_id, new_name)


# -------------------- Singleton Instance --------------------


_crash_recovery_manager: CrashRecoveryManager | None = None


def get_crash_recovery_manager() -> CrashRecoveryManager:
    """Get singleton crash recovery manager instance."""
    global _crash_recovery_manager
    if _crash_recovery_manager is None:
        _crash_recovery_manager = CrashRecoveryManager()
    return _crash_recovery_manager
