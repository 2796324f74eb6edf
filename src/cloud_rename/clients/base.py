"""
Base interface for remote rename clients.

A client is the narrow boundary between the engine and a remote service:
it performs one rename per call and reports its scheduling limits.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from cloud_rename.clients.capabilities import RENAME_ONLY, ClientCapabilities
from cloud_rename.config import RenameSettings, get_settings
from cloud_rename.models.items import Item
from cloud_rename.models.results import SuccessEntry
from cloud_rename.utils.errors import CapabilityNotSupportedError

NamingRule = Callable[[str, int, int], str]
"""Pure ``(name, index, total) -> new_name`` function supplied by the caller."""


# -------------------- Data Models --------------------


@dataclass
class RenameOutcome:
    """Result of a single remote rename call."""

    success: bool
    new_name: str | None = None
    error: Exception | None = None
    skipped: bool = False
    reason: str | None = None

    @classmethod
    def ok(cls, new_name: str | None = None) -> RenameOutcome:
        return cls(success=True, new_name=new_name)

    @classmethod
    def failure(cls, error: Exception, reason: str | None = None) -> RenameOutcome:
        return cls(success=False, error=error, reason=reason)


@dataclass(frozen=True)
class ClientConfig:
    """Scheduling limits of a remote service."""

    request_interval: float = 0.8
    max_concurrent: int = 3
    max_retries: int = 3
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: RenameSettings | None = None) -> ClientConfig:
        """Build a config from the CLOUD_RENAME_* settings."""
        settings = settings or get_settings()
        return cls(
            request_interval=settings.request_interval,
            max_concurrent=settings.max_concurrent,
            max_retries=settings.max_retries,
            timeout=settings.request_timeout,
        )


# -------------------- Client Interface --------------------


class BaseRenameClient(ABC):
    """
    Abstract remote rename client.

    Subclasses implement ``rename_item`` and declare any optional features
    through ``capabilities``. The optional methods raise
    ``CapabilityNotSupportedError`` unless overridden.
    """

    capabilities: ClientCapabilities = RENAME_ONLY

    def __init__(self, config: ClientConfig | None = None):
        self._config = config or ClientConfig.from_settings()

    def get_config(self) -> ClientConfig:
        """Get the client's scheduling limits."""
        return self._config

    def supports(self, capability: str) -> bool:
        return self.capabilities.supports(capability)

    @abstractmethod
    async def rename_item(self, item_id: str, new_name: str) -> RenameOutcome:
        """
        Rename one remote item.

        Args:
            item_id: Remote identifier
            new_name: Full target name

        Returns:
            RenameOutcome; may also raise, which callers treat as a failure
        """

    async def check_name_conflict(self, name: str, parent_id: str) -> bool:
        """Whether ``parent_id`` already contains an entry called ``name``."""
        raise CapabilityNotSupportedError(
            f"{type(self).__name__} does not support name lookup"
        )

    async def get_item_info(self, item_id: str) -> Item:
        """Fetch the current state of a remote item."""
        raise CapabilityNotSupportedError(
            f"{type(self).__name__} does not support item info"
        )

    async def sync_after_rename(self, renamed: list[SuccessEntry]) -> None:
        """Refresh remote listings after a batch."""
        raise CapabilityNotSupportedError(
            f"{type(self).__name__} does not support post-rename sync"
        )
