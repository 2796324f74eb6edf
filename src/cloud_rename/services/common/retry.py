"""Retry utilities with exponential backoff for remote rename calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import logging
from typing import TypeVar

import httpx

from cloud_rename.clients.base import (
    BaseRenameClient,
    ClientConfig,
    RenameOutcome,
)
from cloud_rename.clients.capabilities import ClientCapabilities
from cloud_rename.config import RenameSettings, get_settings
from cloud_rename.models.items import Item
from cloud_rename.models.results import SuccessEntry
from cloud_rename.utils.errors import RemoteOperationError, describe_error

T = TypeVar("T")

logger = logging.getLogger(__name__)

RetryNotifier = Callable[[int, int, float, str], None]
"""Advisory ``(attempt, max_retries, delay, new_name)`` notice before a backoff sleep."""

_TRANSIENT_KEYWORDS = (
    "network",
    "timeout",
    "timed out",
    "fetch",
    "connection",
)
_TRANSIENT_TYPE_NAMES = ("NetworkError", "TimeoutError")


def is_transient_error(error: BaseException | None) -> bool:
    """
    Decide whether a failure is worth retrying.

    A ``RemoteOperationError`` carries the kind its client declared and is
    classified by that alone. Other exceptions fall back to their type, then
    to a message heuristic.

    Args:
        error: The failure to classify

    Returns:
        True for network/timeout/connection style failures
    """
    if error is None:
        return False

    if isinstance(error, RemoteOperationError):
        return error.kind.is_retryable

    if isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError)):
        return True
    if isinstance(error, httpx.TransportError):
        return True

    if type(error).__name__ in _TRANSIENT_TYPE_NAMES:
        return True

    message = str(error).lower()
    return any(keyword in message for keyword in _TRANSIENT_KEYWORDS)


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before retrying after the given 1-based attempt."""
    return base_delay * (2 ** (attempt - 1))


def _notify_safely(
    notify: RetryNotifier | None,
    attempt: int,
    max_retries: int,
    delay: float,
    new_name: str,
) -> None:
    if notify is None:
        logger.info(
            f"Retrying {new_name} ({attempt}/{max_retries}) in {delay:.2f}s"
        )
        return
    try:
        notify(attempt, max_retries, delay, new_name)
    except Exception as e:
        logger.debug(f"Retry notifier failed: {e}")


async def rename_with_retry(
    client: BaseRenameClient,
    item_id: str,
    new_name: str,
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    notify: RetryNotifier | None = None,
) -> RenameOutcome:
    """
    Rename one item, retrying transient failures.

    Terminal failures (conflict, not found, permission...) return at once.
    Transient ones are retried up to ``max_retries`` attempts in total, with
    ``base_delay * 2 ** (attempt - 1)`` seconds between attempts.

    Args:
        client: Remote rename client
        item_id: Remote identifier
        new_name: Target name
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds (doubled each retry)
        notify: Optional advisory callback invoked before each backoff sleep

    Returns:
        The successful outcome, or the last failed one. Never raises for
        errors raised by the client.
    """
    attempts = max(1, max_retries)
    last_error: Exception | None = None
    last_outcome: RenameOutcome | None = None

    for attempt in range(1, attempts + 1):
        try:
            outcome = await client.rename_item(item_id, new_name)

            if outcome.success:
                if attempt > 1:
                    logger.info(f"Retry succeeded for {item_id} (attempt {attempt})")
                return outcome

            if not is_transient_error(outcome.error):
                logger.info(
                    f"Non-transient error for {item_id}, not retrying: "
                    f"{describe_error(outcome.error)}"
                )
                return outcome

            last_outcome = outcome
            last_error = outcome.error
        except Exception as e:
            last_error = e
            last_outcome = None

            if not is_transient_error(e):
                logger.error(f"Non-transient error for {item_id}, not retrying: {e}")
                return RenameOutcome.failure(e)

        if attempt < attempts:
            delay = backoff_delay(base_delay, attempt)
            _notify_safely(notify, attempt, attempts, delay, new_name)
            logger.warning(
                f"  ↻ Rename of {item_id} failed (attempt {attempt}/{attempts}): "
                f"{describe_error(last_error)}. Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    logger.error(
        f"All retries failed for {item_id} after {attempts} attempts: "
        f"{describe_error(last_error)}"
    )

    if last_outcome is not None:
        return last_outcome
    return RenameOutcome.failure(
        last_error or RuntimeError(f"Rename of {item_id} failed after {attempts} attempts")
    )


async def async_retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay: float = 1.0,
    description: str = "Operation",
) -> T:
    """
    Execute an async function with retry and exponential backoff.

    Used for read-only lookups, which raise instead of returning outcomes.

    Args:
        func: Async function to execute
        max_retries: Maximum number of attempts
        base_delay: Base delay in seconds (will be doubled each retry)
        description: Description for logging

    Returns:
        Result from func

    Raises:
        Last exception if all retries fail or the error is not transient
    """
    attempts = max(1, max_retries)

    for attempt in range(1, attempts + 1):
        try:
            return await func()
        except Exception as e:
            if not is_transient_error(e) or attempt == attempts:
                raise

            delay = backoff_delay(base_delay, attempt)
            logger.warning(
                f"  ↻ {description} failed (attempt {attempt}/{attempts}): "
                f"{e}. Retrying in {delay:.2f}s..."
            )
            await asyncio.sleep(delay)

    raise RuntimeError(f"{description} failed after {attempts} attempts")


# -------------------- Retry Manager --------------------


@dataclass
class RetryConfig:
    """Retry policy for rename calls."""

    max_retries: int = 3
    base_delay: float = 1.0
    show_notification: bool = True

    @classmethod
    def from_settings(cls, settings: RenameSettings | None = None) -> "RetryConfig":
        """Build a policy from the CLOUD_RENAME_* settings."""
        settings = settings or get_settings()
        return cls(
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay,
            show_notification=settings.retry_notifications,
        )


class RetryManager:
    """Runs retried renames and keeps aggregate statistics."""

    def __init__(
        self,
        config: RetryConfig | None = None,
        notify: RetryNotifier | None = None,
    ):
        self.config = config or RetryConfig()
        self.notify = notify
        self.reset_stats()

    async def rename(
        self, client: BaseRenameClient, item_id: str, new_name: str
    ) -> RenameOutcome:
        """Rename with retry and update statistics."""
        attempts = 0

        def _count(attempt: int, max_retries: int, delay: float, name: str) -> None:
            nonlocal attempts
            attempts = attempt
            if self.config.show_notification and self.notify is not None:
                self.notify(attempt, max_retries, delay, name)

        outcome = await rename_with_retry(
            client,
            item_id,
            new_name,
            max_retries=self.config.max_retries,
            base_delay=self.config.base_delay,
            notify=_count,
        )

        self._stats["total_retries"] += attempts
        if attempts:
            if outcome.success:
                self._stats["successful_retries"] += 1
            else:
                self._stats["failed_retries"] += 1

        return outcome

    def get_stats(self) -> dict[str, int]:
        return dict(self._stats)

    def reset_stats(self) -> None:
        self._stats = {
            "total_retries": 0,
            "successful_retries": 0,
            "failed_retries": 0,
        }


class RetryingRenameClient(BaseRenameClient):
    """
    Drop-in client that retries transient failures of another client.

    Returns the same RenameOutcome shape as the wrapped client, so the
    executor can use it wherever a plain client is accepted.
    """

    def __init__(
        self,
        client: BaseRenameClient,
        config: RetryConfig | None = None,
        notify: RetryNotifier | None = None,
    ):
        super().__init__(client.get_config())
        self.inner = client
        self.manager = RetryManager(config, notify)

    @property
    def capabilities(self) -> ClientCapabilities:  # type: ignore[override]
        return self.inner.capabilities

    def get_config(self) -> ClientConfig:
        return self.inner.get_config()

    async def rename_item(self, item_id: str, new_name: str) -> RenameOutcome:
        return await self.manager.rename(self.inner, item_id, new_name)

    async def check_name_conflict(self, name: str, parent_id: str) -> bool:
        return await self.inner.check_name_conflict(name, parent_id)

    async def get_item_info(self, item_id: str) -> Item:
        return await self.inner.get_item_info(item_id)

    async def sync_after_rename(self, renamed: list[SuccessEntry]) -> None:
        await self.inner.sync_after_rename(renamed)
