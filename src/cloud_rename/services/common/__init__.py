"""Common utilities shared across services."""

from .retry import (
    RetryConfig,
    RetryingRenameClient,
    RetryManager,
    async_retry_with_backoff,
    is_transient_error,
    rename_with_retry,
)

__all__ = [
    "RetryConfig",
    "RetryManager",
    "RetryingRenameClient",
    "async_retry_with_backoff",
    "is_transient_error",
    "rename_with_retry",
]
