"""
Optional client capabilities.

Every client must be able to rename an item. Anything beyond that is declared
here up front instead of being discovered by probing attributes at runtime:
- Name lookup (does a sibling with this name already exist?)
- Item info (current name of an item, for idempotent renames)
- Post-rename sync (refresh a remote listing after a batch)
"""

from dataclasses import dataclass, fields

NAME_LOOKUP = "name_lookup"
ITEM_INFO = "item_info"
POST_RENAME_SYNC = "post_rename_sync"


@dataclass(frozen=True)
class ClientCapabilities:
    """Feature flags a rename client declares."""

    name_lookup: bool = False
    item_info: bool = False
    post_rename_sync: bool = False

    def supports(self, capability: str) -> bool:
        """
        Check whether a capability is declared.

        Args:
            capability: One of NAME_LOOKUP, ITEM_INFO, POST_RENAME_SYNC

        Returns:
            True if the client declares it

        Raises:
            ValueError: If the capability name is unknown
        """
        names = {f.name for f in fields(self)}
        if capability not in names:
            raise ValueError(
                f"Unknown capability: {capability}. Must be one of: {sorted(names)}"
            )
        return bool(getattr(self, capability))


RENAME_ONLY = ClientCapabilities()
