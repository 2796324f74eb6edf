"""
Batch rename execution engine.

Runs planned rename tasks against a remote client with:
- A bounded pool of concurrent workers claiming tasks from a shared cursor
- A global rate limiter spacing request starts
- Pause/resume/cancel driven by an explicit state transition table
- Progress events, aggregated results and derived statistics
- Optional checkpointing for crash recovery
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING, Any

from cloud_rename.clients.base import BaseRenameClient, NamingRule, RenameOutcome
from cloud_rename.clients.capabilities import POST_RENAME_SYNC
from cloud_rename.models.checkpoint import OperationState
from cloud_rename.models.enums import ExecutorEvent, ExecutorState, TaskStatus
from cloud_rename.models.items import Item, Task
from cloud_rename.models.results import (
    BatchResults,
    BatchStatistics,
    FailureEntry,
    ProgressEvent,
    SuccessEntry,
)
from cloud_rename.services.planner import filter_unchanged, plan_tasks
from cloud_rename.services.rate_limiter import RequestRateLimiter
from cloud_rename.utils.errors import (
    ExecutorStateError,
    ValidationError,
    describe_error,
)
from cloud_rename.utils.logging_config import (
    log_operation,
    log_task_end,
    log_task_start,
)

if TYPE_CHECKING:
    from cloud_rename.services.checkpoint import CrashRecoveryManager

logger = logging.getLogger(__name__)


# -------------------- State Machine --------------------


TRANSITIONS: dict[tuple[ExecutorState, ExecutorEvent], ExecutorState] = {
    (ExecutorState.IDLE, ExecutorEvent.START): ExecutorState.RUNNING,
    (ExecutorState.IDLE, ExecutorEvent.CANCEL): ExecutorState.CANCELLED,
    (ExecutorState.RUNNING, ExecutorEvent.PAUSE): ExecutorState.PAUSED,
    (ExecutorState.RUNNING, ExecutorEvent.CANCEL): ExecutorState.CANCELLED,
    (ExecutorState.RUNNING, ExecutorEvent.FINISH): ExecutorState.COMPLETED,
    (ExecutorState.PAUSED, ExecutorEvent.RESUME): ExecutorState.RUNNING,
    (ExecutorState.PAUSED, ExecutorEvent.CANCEL): ExecutorState.CANCELLED,
    (ExecutorState.PAUSED, ExecutorEvent.FINISH): ExecutorState.COMPLETED,
}
"""(state, event) -> next state. Pairs not listed are no-ops."""


def next_state(state: ExecutorState, event: ExecutorEvent) -> ExecutorState | None:
    """Look up a transition; None when the event does not apply."""
    return TRANSITIONS.get((state, event))


# -------------------- Options --------------------


ProgressCallback = Callable[[ProgressEvent], None]
CompleteCallback = Callable[[BatchResults], None]
ErrorCallback = Callable[[Exception], None]


@dataclass
class ExecutorOptions:
    """Tuning and callbacks for a BatchExecutor."""

    request_interval: float | None = None  # seconds; None -> client config
    max_concurrent: int | None = None  # None -> client config
    skip_unchanged: bool = False
    tasks: list[Task] | None = None  # explicit task list, e.g. failed subset
    on_progress: ProgressCallback | None = None
    on_complete: CompleteCallback | None = None
    on_error: ErrorCallback | None = None

    # Crash recovery
    recovery: CrashRecoveryManager | None = None
    context: str = ""
    rule_descriptor: dict[str, Any] = field(default_factory=dict)
    checkpoint_state: OperationState | None = None  # resume an existing checkpoint


# -------------------- Executor --------------------


class BatchExecutor:
    """
    Batch rename executor.

    Example:
        >>> executor = BatchExecutor(items, rule, client, ExecutorOptions(
        ...     request_interval=0.8,
        ...     on_progress=lambda p: print(f"{p.completed}/{p.total}"),
        ... ))
        >>> results = await executor.execute()
    """

    def __init__(
        self,
        items: Sequence[Item],
        rule: NamingRule | None,
        client: BaseRenameClient | None,
        options: ExecutorOptions | None = None,
    ):
        """
        Validate inputs; nothing runs until ``execute``.

        Raises:
            ValidationError: If items is empty, neither rule nor
                ``options.tasks`` is given, or client is missing
        """
        self.options = options or ExecutorOptions()

        if not items:
            raise ValidationError("Items list cannot be empty")
        if rule is None and self.options.tasks is None:
            raise ValidationError("Naming rule or explicit task list is required")
        if client is None:
            raise ValidationError("Remote rename client is required")

        self.items = list(items)
        self.rule = rule
        self.client = client

        self._state = ExecutorState.IDLE
        self._results = BatchResults()
        self._tasks: list[Task] = []
        self._cursor = 0
        self._claimed = 0
        self._started_at: float | None = None
        self._finished_at: float | None = None
        self._limiter = RequestRateLimiter(self._request_interval())

        # Set while running; cleared while paused
        self._resume_gate = asyncio.Event()
        self._resume_gate.set()
        self.abort_signal = asyncio.Event()

    # -------------------- State --------------------

    def _apply(self, event: ExecutorEvent) -> bool:
        target = next_state(self._state, event)
        if target is None:
            logger.debug(f"Ignoring {event.value} in state {self._state.value}")
            return False
        logger.debug(f"State {self._state.value} -> {target.value} ({event.value})")
        self._state = target
        return True

    def _is_cancelled(self) -> bool:
        return self._state == ExecutorState.CANCELLED

    def pause(self) -> None:
        """Stop workers at their next checkpoint. Only effective while running."""
        if self._apply(ExecutorEvent.PAUSE):
            self._resume_gate.clear()
            logger.info("Batch paused")

    def resume(self) -> None:
        """Release paused workers. Only effective while paused."""
        if self._apply(ExecutorEvent.RESUME):
            self._resume_gate.set()
            logger.info("Batch resumed")

    def cancel(self) -> None:
        """
        Stop claiming new tasks. Effective from any non-terminal state.

        In-flight remote calls are not interrupted; ``abort_signal`` is set
        for I/O layers that want to observe it.
        """
        if self._apply(ExecutorEvent.CANCEL):
            self.abort_signal.set()
            self._resume_gate.set()
            logger.info("Batch cancelled")

    def get_state(self) -> ExecutorState:
        return self._state

    def get_results(self) -> BatchResults:
        """Snapshot of the results recorded so far."""
        return BatchResults(
            success=list(self._results.success),
            failed=list(self._results.failed),
        )

    # -------------------- Execution --------------------

    async def execute(self) -> BatchResults:
        """
        Run the batch to completion or cancellation.

        Per-task failures are recorded in the returned results and never
        raised.

        Returns:
            Final BatchResults

        Raises:
            ExecutorStateError: If the executor is running or already finished

        Any other exception (for example from the naming rule) is passed to
        ``on_error`` and re-raised; the executor ends cancelled so an existing
        checkpoint stays recoverable.
        """
        if self._state in (ExecutorState.RUNNING, ExecutorState.PAUSED):
            raise ExecutorStateError("Executor is already running")
        if not self._apply(ExecutorEvent.START):
            raise ExecutorStateError(
                f"Executor cannot start from state {self._state.value}",
                "Create a new executor to run the batch again",
            )

        self._started_at = time.monotonic()
        self._finished_at = None
        self._results = BatchResults()
        self._cursor = 0
        self._claimed = 0
        self._limiter = RequestRateLimiter(self._request_interval())

        try:
            self._tasks = self._prepare_tasks()
            total = len(self._tasks)

            if total == 0:
                logger.info("No tasks to run; batch completed immediately")
                self._finish()
                self._notify_complete()
                return self.get_results()

            max_concurrent = self._max_concurrent(total)
            log_task_start(
                logger,
                "Batch rename",
                total=total,
                max_concurrent=max_concurrent,
                request_interval=self._limiter.interval,
            )
            self._save_checkpoint()

            workers = [
                asyncio.create_task(self._run_worker(n)) for n in range(max_concurrent)
            ]
            outcomes = await asyncio.gather(*workers, return_exceptions=True)
            for outcome in outcomes:
                if isinstance(outcome, Exception):
                    logger.error(f"Worker stopped unexpectedly: {outcome}")

            self._finish()
            await self._sync_after_rename()

            log_task_end(
                logger,
                "Batch rename",
                items_processed=self._results.completed_count,
                errors=[f"{e.item.name}: {e.error}" for e in self._results.failed],
                state=self._state.value,
                success=len(self._results.success),
            )
            self._notify_complete()
            return self.get_results()

        except Exception as e:
            # Stop as cancelled so any checkpoint stays recoverable
            self._finished_at = time.monotonic()
            self.cancel()
            logger.error(f"Batch execution failed: {e}")
            if self.options.on_error is not None:
                self.options.on_error(e)
            raise

    def _prepare_tasks(self) -> list[Task]:
        if self.options.tasks is not None:
            tasks = list(self.options.tasks)
            if self.options.skip_unchanged:
                tasks = filter_unchanged(tasks)
            return tasks
        return plan_tasks(
            self.items, self.rule, skip_unchanged=self.options.skip_unchanged
        )

    def _finish(self) -> None:
        self._finished_at = time.monotonic()
        if self._apply(ExecutorEvent.FINISH):
            self._resume_gate.set()
            if self.options.recovery is not None:
                self.options.recovery.clear_operation_state()

    def _claim(self) -> Task | None:
        # No await between the check and the increment: claims are exclusive.
        if self._cursor >= len(self._tasks):
            return None
        task = self._tasks[self._cursor]
        self._cursor += 1
        self._claimed += 1
        return task

    async def _wait_if_paused(self) -> bool:
        """Block on the pause gate; False once the batch is cancelled."""
        if self._is_cancelled():
            return False
        if not self._resume_gate.is_set():
            await self._resume_gate.wait()
        return not self._is_cancelled()

    async def _acquire_slot(self) -> bool:
        """
        Get a request slot and confirm the batch is still running.

        A slot acquired just before a pause is discarded and re-acquired on
        resume, so resumed workers stay spaced by the rate limiter.
        """
        while True:
            if not await self._wait_if_paused():
                return False
            if not await self._limiter.acquire(self.abort_signal):
                return False
            if self._is_cancelled():
                return False
            if self._resume_gate.is_set():
                return True

    async def _run_worker(self, worker_id: int) -> None:
        while True:
            if self._is_cancelled():
                return
            task = self._claim()
            if task is None:
                return

            if not await self._acquire_slot():
                logger.debug(
                    f"Worker {worker_id} stopping; task {task.original_index} not started"
                )
                return

            await self._process_task(task)

    async def _process_task(self, task: Task) -> None:
        try:
            outcome: RenameOutcome = await self.client.rename_item(
                task.item.id, task.target_name
            )
        except Exception as e:
            self._record_failure(task, describe_error(e))
            return

        if outcome.success:
            self._record_success(task)
        else:
            self._record_failure(task, describe_error(outcome.error))

    def _record_success(self, task: Task) -> None:
        self._results.success.append(
            SuccessEntry(
                item_id=task.item.id,
                original_name=task.item.name,
                new_name=task.target_name,
                index=task.original_index,
            )
        )
        log_operation(logger, "rename", task.item.id, "success", new_name=task.target_name)
        if self.options.recovery is not None:
            self.options.recovery.mark_as_completed(task.original_index)
        self._emit_progress(task, TaskStatus.SUCCESS)

    def _record_failure(self, task: Task, message: str) -> None:
        self._results.failed.append(
            FailureEntry(
                item_id=task.item.id,
                item=task.item,
                error=message,
                index=task.original_index,
            )
        )
        log_operation(logger, "rename", task.item.id, "error", error=message)
        if self.options.recovery is not None:
            self.options.recovery.mark_as_failed(task.original_index)
        self._emit_progress(task, TaskStatus.FAILED, message)

    def _emit_progress(
        self, task: Task, status: TaskStatus, error: str | None = None
    ) -> None:
        if self.options.on_progress is None:
            return

        event = ProgressEvent(
            completed=self._results.completed_count,
            total=self._total(),
            current_item_id=task.item.id,
            current_item_name=task.item.name,
            success_count=len(self._results.success),
            failed_count=len(self._results.failed),
            target_name=task.target_name,
            status=status,
            error=error,
        )
        try:
            self.options.on_progress(event)
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    def _notify_complete(self) -> None:
        if self.options.on_complete is None:
            return
        try:
            self.options.on_complete(self.get_results())
        except Exception as e:
            logger.warning(f"Completion callback failed: {e}")

    # -------------------- Collaborators --------------------

    def _save_checkpoint(self) -> None:
        recovery = self.options.recovery
        if recovery is None:
            return

        state = self.options.checkpoint_state
        if state is None:
            # Items outside this run are not pending work
            scheduled = {task.original_index for task in self._tasks}
            state = OperationState(
                context=self.options.context,
                items=self.items,
                rule=self.options.rule_descriptor,
                completed_indices=[
                    index for index in range(len(self.items)) if index not in scheduled
                ],
            )
        recovery.save_operation_state(state)

    async def _sync_after_rename(self) -> None:
        if not self._results.success or not self.client.supports(POST_RENAME_SYNC):
            return
        try:
            await self.client.sync_after_rename(list(self._results.success))
        except Exception as e:
            logger.warning(f"Post-rename sync failed: {e}")

    def _request_interval(self) -> float:
        if self.options.request_interval is not None:
            return self.options.request_interval
        return self.client.get_config().request_interval

    def _max_concurrent(self, task_count: int) -> int:
        raw = self.options.max_concurrent
        if raw is None:
            raw = self.client.get_config().max_concurrent
        n = max(1, int(raw))
        return min(n, max(1, task_count))

    # -------------------- Statistics --------------------

    def _total(self) -> int:
        return len(self._tasks) if self._state != ExecutorState.IDLE else len(self.items)

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else time.monotonic()
        return end - self._started_at

    def get_estimated_time_remaining(self) -> float:
        """Seconds left, extrapolated from the average time per finished task."""
        completed = self._results.completed_count
        if completed == 0:
            return 0.0
        remaining = max(self._total() - completed, 0)
        return (self._elapsed() / completed) * remaining

    def get_statistics(self) -> BatchStatistics:
        completed = self._results.completed_count
        total = self._total()
        elapsed = self._elapsed()

        return BatchStatistics(
            completed=completed,
            total=total,
            success=len(self._results.success),
            failed=len(self._results.failed),
            percentage=(completed / total) * 100 if total > 0 else 0.0,
            elapsed=elapsed,
            estimated_remaining=self.get_estimated_time_remaining(),
            avg_time_per_item=elapsed / completed if completed > 0 else 0.0,
        )

    @property
    def claimed_count(self) -> int:
        """Tasks taken from the queue so far."""
        return self._claimed
