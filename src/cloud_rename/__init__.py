"""
Cloud Rename.

A rate-limited, pausable batch rename engine for remote file services.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cloud-rename")
except PackageNotFoundError:
    __version__ = "unknown"

from .clients import BaseRenameClient, ClientConfig, HttpRenameClient, RenameOutcome
from .services import BatchExecutor, CrashRecoveryManager, ExecutorOptions

__all__ = [
    "BaseRenameClient",
    "BatchExecutor",
    "ClientConfig",
    "CrashRecoveryManager",
    "ExecutorOptions",
    "HttpRenameClient",
    "RenameOutcome",
    "__version__",
]
