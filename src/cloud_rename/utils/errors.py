"""
Unified error handling for cloud-rename.
"""

from enum import Enum
import logging

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Failure category declared by the remote operation boundary."""

    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    PERMISSION = "permission"
    INVALID_NAME = "invalid_name"
    UNKNOWN = "unknown"

    @property
    def is_retryable(self) -> bool:
        return self in (ErrorKind.TRANSIENT, ErrorKind.RATE_LIMITED)


class CloudRenameError(Exception):
    """Base exception for cloud-rename errors."""

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self) -> str:
        if self.suggestion:
            return f"{self.message}. {self.suggestion}"
        return self.message


class ValidationError(CloudRenameError):
    """Precondition failure: the batch cannot start."""
    pass


class ExecutorStateError(CloudRenameError):
    """Operation not allowed in the executor's current state."""
    pass


class ConfigurationError(CloudRenameError):
    """Configuration error."""
    pass


class StorageError(CloudRenameError):
    """Checkpoint storage read/write error."""
    pass


class CapabilityNotSupportedError(CloudRenameError):
    """The client does not declare the requested optional capability."""
    pass


class RemoteOperationError(CloudRenameError):
    """
    Failure reported by a remote mutation call.

    The ``kind`` tag is set by the client that talks to the remote service,
    so retry eligibility does not depend on message text.
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        code: int | None = None,
        suggestion: str | None = None,
    ):
        super().__init__(message, suggestion)
        self.kind = kind
        self.code = code


def describe_error(error: BaseException | str | None) -> str:
    """
    Produce a human-readable message for a failed result entry.

    Args:
        error: Exception, plain message, or None

    Returns:
        Non-empty message string
    """
    if error is None:
        return "Unknown error"
    if isinstance(error, str):
        return error or "Unknown error"
    message = str(error)
    return message or type(error).__name__
