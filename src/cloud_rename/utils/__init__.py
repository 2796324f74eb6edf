"""
Utility functions and helpers for cloud-rename.
"""

from .errors import (
    CapabilityNotSupportedError,
    CloudRenameError,
    ConfigurationError,
    ErrorKind,
    ExecutorStateError,
    RemoteOperationError,
    StorageError,
    ValidationError,
    describe_error,
)
from .logging_config import (
    get_logger,
    initialize_logging,
    log_operation,
    log_task_end,
    log_task_start,
    setup_logging,
)

__all__ = [
    # Errors
    "CapabilityNotSupportedError",
    "CloudRenameError",
    "ConfigurationError",
    "ErrorKind",
    "ExecutorStateError",
    "RemoteOperationError",
    "StorageError",
    "ValidationError",
    "describe_error",
    # Logging
    "get_logger",
    "initialize_logging",
    "log_operation",
    "log_task_end",
    "log_task_start",
    "setup_logging",
]
