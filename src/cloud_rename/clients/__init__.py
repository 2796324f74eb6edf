"""
Clients for cloud-rename.

Provides the remote mutation boundary used by the engine:
- BaseRenameClient: abstract rename client with declared capabilities
- HttpRenameClient: generic JSON rename API over httpx
"""

from .base import BaseRenameClient, ClientConfig, NamingRule, RenameOutcome
from .capabilities import (
    ITEM_INFO,
    NAME_LOOKUP,
    POST_RENAME_SYNC,
    ClientCapabilities,
)
from .http_client import HttpRenameClient, classify_api_code

__all__ = [
    "BaseRenameClient",
    "ClientCapabilities",
    "ClientConfig",
    "HttpRenameClient",
    "ITEM_INFO",
    "NAME_LOOKUP",
    "NamingRule",
    "POST_RENAME_SYNC",
    "RenameOutcome",
    "classify_api_code",
]
