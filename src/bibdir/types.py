"""Type definitions for bibdir data structures."""

from typing import TypedDict


class EntryData(TypedDict):
    """Plain-data view of a single bibliography entry."""

    entry_type: str
    key: str
    fields: dict[str, str]


# Type aliases for common data structures
FieldMapping = dict[str, str]
