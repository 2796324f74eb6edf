"""Tests for error types and capability flags."""

import pytest

from cloud_rename.clients.base import BaseRenameClient, RenameOutcome
from cloud_rename.clients.capabilities import (
    NAME_LOOKUP,
    POST_RENAME_SYNC,
    ClientCapabilities,
)
from cloud_rename.utils.errors import (
    CapabilityNotSupportedError,
    CloudRenameError,
    ErrorKind,
    RemoteOperationError,
    describe_error,
)


class MinimalClient(BaseRenameClient):
    async def rename_item(self, item_id, new_name):
        return RenameOutcome.ok(new_name)


def test_error_with_suggestion():
    error = CloudRenameError("Checkpoint unreadable", "Delete the state file")
    assert str(error) == "Checkpoint unreadable. Delete the state file"


def test_remote_error_defaults():
    error = RemoteOperationError("boom")
    assert error.kind == ErrorKind.UNKNOWN
    assert error.code is None
    assert isinstance(error, CloudRenameError)


def test_retryable_kinds():
    retryable = {kind for kind in ErrorKind if kind.is_retryable}
    assert retryable == {ErrorKind.TRANSIENT, ErrorKind.RATE_LIMITED}


@pytest.mark.parametrize(
    "error,expected",
    [
        (None, "Unknown error"),
        ("", "Unknown error"),
        ("plain", "plain"),
        (ValueError("bad"), "bad"),
        (TimeoutError(), "TimeoutError"),
    ],
)
def test_describe_error(error, expected):
    assert describe_error(error) == expected


def test_capabilities_default_to_rename_only():
    caps = ClientCapabilities()
    assert not caps.supports(NAME_LOOKUP)
    assert ClientCapabilities(post_rename_sync=True).supports(POST_RENAME_SYNC)

    with pytest.raises(ValueError):
        caps.supports("teleport")


@pytest.mark.asyncio
async def test_optional_methods_raise_without_capability():
    client = MinimalClient()

    with pytest.raises(CapabilityNotSupportedError):
        await client.check_name_conflict("a", "root")
    with pytest.raises(CapabilityNotSupportedError):
        await client.get_item_info("1")
    with pytest.raises(CapabilityNotSupportedError):
        await client.sync_after_rename([])
