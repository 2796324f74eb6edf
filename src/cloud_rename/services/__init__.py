"""
Services for cloud-rename.

Provides planning, conflict detection, execution and crash recovery.
"""

from .checkpoint import (
    CrashRecoveryManager,
    get_crash_recovery_manager,
    rename_with_idempotency,
)
from .conflicts import (
    ConflictDetector,
    apply_resolved_names,
    check_all_conflicts,
    check_batch_conflicts,
    resolve_conflict_with_number,
)
from .executor import BatchExecutor, ExecutorOptions
from .planner import filter_unchanged, plan_tasks
from .rate_limiter import RequestRateLimiter
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "BatchExecutor",
    "ConflictDetector",
    "CrashRecoveryManager",
    "ExecutorOptions",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "RequestRateLimiter",
    "apply_resolved_names",
    "check_all_conflicts",
    "check_batch_conflicts",
    "filter_unchanged",
    "get_crash_recovery_manager",
    "plan_tasks",
    "rename_with_idempotency",
    "resolve_conflict_with_number",
]
