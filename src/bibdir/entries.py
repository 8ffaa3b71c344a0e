"""Helpers for building, converting and ordering bibliography entries."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import msgspec
from bibtexparser.model import Entry, Field

from .codec import has_balanced_braces
from .exceptions import InvalidDataError
from .types import EntryData, FieldMapping

logger = logging.getLogger(__name__)


def make_entry(entry_type: str, key: str, fields: Mapping[str, str]) -> Entry:
    """Build a bibtexparser entry from plain values.

    Args:
        entry_type: Entry type such as ``article`` or ``book``
        key: Citation key
        fields: Field names mapped to their values, in output order

    Returns:
        A new Entry holding one Field per mapping item

    Raises:
        InvalidDataError: If a field value has unbalanced braces
    """
    for name, value in fields.items():
        if not has_balanced_braces(value):
            raise InvalidDataError(f"Field '{name}' of entry '{key}' has unbalanced braces")

    return Entry(
        entry_type=entry_type,
        key=key,
        fields=[Field(name, value) for name, value in fields.items()],
    )


def entry_to_data(entry: Entry) -> EntryData:
    """Return the plain-data view of ``entry``."""
    fields: FieldMapping = {name: str(field.value) for name, field in entry.fields_dict.items()}
    return {"entry_type": entry.entry_type, "key": entry.key, "fields": fields}


def entry_from_data(data: EntryData) -> Entry:
    """Build an entry from its plain-data view."""
    return make_entry(data["entry_type"], data["key"], data["fields"])


def decode_entry_json(raw: str | bytes) -> EntryData:
    """Decode and validate a JSON object describing one entry.

    Args:
        raw: JSON text with ``entry_type``, ``key`` and ``fields`` members

    Returns:
        The validated entry data

    Raises:
        InvalidDataError: If the JSON is malformed or has the wrong shape
    """
    try:
        data = msgspec.json.decode(raw, type=EntryData)
    except (msgspec.DecodeError, msgspec.ValidationError) as e:
        raise InvalidDataError(f"Invalid entry data: {e}") from e

    if not data["entry_type"]:
        raise InvalidDataError("Invalid entry data: entry_type must not be empty")

    for name, value in data["fields"].items():
        if not has_balanced_braces(value):
            raise InvalidDataError(f"Invalid entry data: field '{name}' has unbalanced braces")

    return data


def encode_entries_json(entries: Iterable[Entry]) -> bytes:
    """Encode entries as a JSON array of entry data objects."""
    return msgspec.json.encode([entry_to_data(entry) for entry in entries])


def sort_by_citation_key(entries: Iterable[Entry]) -> list[Entry]:
    """Return ``entries`` sorted by citation key.

    Entries without a key sort as if their key were the empty string. The sort
    is stable, so entries sharing a key keep their relative order.
    """
    return sorted(entries, key=lambda entry: entry.key or "")
