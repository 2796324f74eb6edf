import asyncio
import os
import time

import pytest

from cloud_rename.clients.base import BaseRenameClient, ClientConfig, RenameOutcome
from cloud_rename.clients.capabilities import ClientCapabilities
from cloud_rename.config import reset_settings
from cloud_rename.models.items import Item
from cloud_rename.models.results import SuccessEntry
from cloud_rename.utils.errors import ErrorKind, RemoteOperationError


class FakeRenameClient(BaseRenameClient):
    """In-memory rename client that records every call."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        delay: float = 0.0,
        fail_ids: set[str] | None = None,
        raise_ids: set[str] | None = None,
        capabilities: ClientCapabilities | None = None,
    ):
        super().__init__(config or ClientConfig(request_interval=0, max_concurrent=3))
        if capabilities is not None:
            self.capabilities = capabilities
        self.delay = delay
        self.fail_ids = fail_ids or set()
        self.raise_ids = raise_ids or set()
        self.calls: list[tuple[str, str]] = []
        self.call_times: list[float] = []
        self.names: dict[str, str] = {}
        self.existing_names: set[str] = set()
        self.synced: list[SuccessEntry] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def rename_item(self, item_id: str, new_name: str) -> RenameOutcome:
        self.calls.append((item_id, new_name))
        self.call_times.append(time.monotonic())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if item_id in self.raise_ids:
                raise RuntimeError(f"boom {item_id}")
            if item_id in self.fail_ids:
                return RenameOutcome.failure(
                    RemoteOperationError("Permission denied", kind=ErrorKind.PERMISSION)
                )
            self.names[item_id] = new_name
            return RenameOutcome.ok(new_name)
        finally:
            self.in_flight -= 1

    async def check_name_conflict(self, name: str, parent_id: str) -> bool:
        return name in self.existing_names

    async def get_item_info(self, item_id: str) -> Item:
        return Item(id=item_id, name=self.names.get(item_id, ""))

    async def sync_after_rename(self, renamed: list[SuccessEntry]) -> None:
        self.synced.extend(renamed)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep settings and checkpoints away from the user's home."""
    for key in list(os.environ):
        if key.startswith("CLOUD_RENAME_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CLOUD_RENAME_CHECKPOINT_DIR", str(tmp_path / "state"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def items():
    return [
        Item(id="1", name="a.txt", parent_id="root"),
        Item(id="2", name="b.txt", parent_id="root"),
        Item(id="3", name="c.txt", parent_id="root"),
    ]


@pytest.fixture
def prefix_rule():
    def rule(name: str, index: int, total: int) -> str:
        return f"x_{name}"

    return rule


@pytest.fixture
def fake_client():
    return FakeRenameClient()


@pytest.fixture
def client_factory():
    """Build FakeRenameClient instances with custom behaviour."""
    return FakeRenameClient
