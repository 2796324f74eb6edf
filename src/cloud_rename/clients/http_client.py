"""
HTTP rename client.

Talks to a JSON rename endpoint of the form::

    POST {base_url}/rename          {"id": ..., "name": ...}
    GET  {base_url}/exists          ?parent_id=...&name=...
    GET  {base_url}/items/{id}

Every response body is ``{"code": 0, "message": "...", "data": {...}}``;
a non-zero code (or an HTTP error status) is a failure. Session and
authentication handling is left to the caller through ``headers``.
"""

import logging
from typing import Any

import httpx

from cloud_rename.clients.base import BaseRenameClient, ClientConfig, RenameOutcome
from cloud_rename.clients.capabilities import ClientCapabilities
from cloud_rename.models.items import Item
from cloud_rename.services.common.retry import async_retry_with_backoff
from cloud_rename.utils.errors import ErrorKind, RemoteOperationError

logger = logging.getLogger(__name__)

# API error code -> human-readable message
API_ERROR_MESSAGES: dict[int, str] = {
    401: "Not logged in or authentication failed",
    403: "Permission denied",
    404: "Item not found",
    409: "Name already exists",
    429: "Too many requests",
    500: "Internal server error",
    1001: "Invalid parameters",
    1002: "Invalid file name",
    1003: "File already exists",
}

# API error code -> failure kind
API_ERROR_KINDS: dict[int, ErrorKind] = {
    401: ErrorKind.PERMISSION,
    403: ErrorKind.PERMISSION,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
    429: ErrorKind.RATE_LIMITED,
    1002: ErrorKind.INVALID_NAME,
    1003: ErrorKind.CONFLICT,
}


def classify_api_code(code: int) -> ErrorKind:
    """Map an API error code to a failure kind; 5xx codes are transient."""
    if code in API_ERROR_KINDS:
        return API_ERROR_KINDS[code]
    if 500 <= code < 600:
        return ErrorKind.TRANSIENT
    return ErrorKind.UNKNOWN


def get_error_message(code: int, default_message: str | None = None) -> str:
    """Friendly message for an API error code."""
    return API_ERROR_MESSAGES.get(code) or default_message or "Unknown error"


class HttpRenameClient(BaseRenameClient):
    """Rename client for a JSON HTTP API, built on httpx."""

    capabilities = ClientCapabilities(name_lookup=True, item_info=True)

    def __init__(
        self,
        base_url: str,
        *,
        headers: dict[str, str] | None = None,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root, e.g. ``https://drive.example.com/api``
            headers: Extra request headers (cookies, tokens)
            config: Scheduling limits (defaults from settings)
            transport: Custom httpx transport, mainly for tests
        """
        super().__init__(config)
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=self.get_config().timeout,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpRenameClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # -------------------- Request Helpers --------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteOperationError(
                f"Request timeout: {method} {url}", kind=ErrorKind.TRANSIENT
            ) from e
        except httpx.TransportError as e:
            raise RemoteOperationError(
                f"Network error: {e}", kind=ErrorKind.TRANSIENT
            ) from e

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        """
        Decode a response envelope.

        Raises:
            RemoteOperationError: On HTTP error status or non-zero API code
        """
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        code = payload.get("code")
        if code is None:
            code = 0 if response.is_success else response.status_code
        if response.is_error and code == 0:
            code = response.status_code

        if code != 0:
            raise RemoteOperationError(
                get_error_message(code, payload.get("message")),
                kind=classify_api_code(code),
                code=code,
            )

        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    # -------------------- Operations --------------------

    async def rename_item(self, item_id: str, new_name: str) -> RenameOutcome:
        response = await self._request(
            "POST", "/rename", json={"id": item_id, "name": new_name}
        )
        try:
            data = self._parse(response)
        except RemoteOperationError as e:
            logger.debug(f"Rename of {item_id} rejected: {e} (code={e.code})")
            return RenameOutcome.failure(e)

        return RenameOutcome.ok(new_name=data.get("name", new_name))

    async def check_name_conflict(self, name: str, parent_id: str) -> bool:
        async def _lookup() -> bool:
            response = await self._request(
                "GET", "/exists", params={"parent_id": parent_id, "name": name}
            )
            return bool(self._parse(response).get("exists", False))

        return await async_retry_with_backoff(
            _lookup,
            max_retries=self.get_config().max_retries,
            base_delay=0.5,
            description=f"Name lookup for {name}",
        )

    async def get_item_info(self, item_id: str) -> Item:
        async def _fetch() -> Item:
            response = await self._request("GET", f"/items/{item_id}")
            data = self._parse(response)
            return Item(
                id=str(data.get("id", item_id)),
                name=data.get("name", ""),
                parent_id=str(data.get("parent_id", "")),
            )

        return await async_retry_with_backoff(
            _fetch,
            max_retries=self.get_config().max_retries,
            base_delay=0.5,
            description=f"Item info for {item_id}",
        )
