"""Conversion between bibliography file text and bibtexparser blocks."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from copy import deepcopy

import bibtexparser
from bibtexparser.library import Library
from bibtexparser.middlewares import RemoveEnclosingMiddleware, ResolveStringReferencesMiddleware
from bibtexparser.model import (
    Block,
    DuplicateBlockKeyBlock,
    Entry,
    ParsingFailedBlock,
    String,
)

from .exceptions import InvalidDataError, ParseError

logger = logging.getLogger(__name__)

BLOCK_SEPARATOR = "\n"


def has_balanced_braces(value: str) -> bool:
    """Check that every ``}`` in ``value`` closes an earlier ``{``."""
    depth = 0
    for char in value:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


class BibliographyCodec:
    """Parse and serialize bibliography content using bibtexparser v2.

    Field values are unwrapped from their enclosing braces or quotes on parse
    and re-enclosed in braces on write, so content produced by ``serialize``
    parses back to the same entries.
    """

    def parse_blocks(self, text: str) -> list[Block]:
        """Parse ``text`` into all of its blocks, in file order.

        Entries repeating an earlier citation key are kept as regular entries
        and get the same string resolution and unwrapping as every other entry.

        Raises:
            ParseError: If any block fails to parse.
        """
        try:
            raw_library: Library = bibtexparser.parse_string(text, parse_stack=[])
        except Exception as e:  # bibtexparser raises many custom exceptions
            raise ParseError(f"Failed to parse bibliography content: {e}") from e

        raw_blocks: list[Block] = []
        failed: list[ParsingFailedBlock] = []

        for block in raw_library.blocks:
            if isinstance(block, DuplicateBlockKeyBlock):
                logger.debug(f"Keeping entry with duplicate key '{block.key}'")
                raw_blocks.append(block.ignore_error_block)
            elif isinstance(block, ParsingFailedBlock):
                failed.append(block)
            else:
                raw_blocks.append(block)

        if failed:
            details = "; ".join(_describe_failed_block(block) for block in failed)
            raise ParseError(f"Failed to parse {len(failed)} blocks: {details}")

        strings = deepcopy([block for block in raw_blocks if isinstance(block, String)])
        try:
            return [_apply_parse_middleware(block, strings) for block in raw_blocks]
        except Exception as e:  # middleware errors are bibtexparser-specific
            raise ParseError(f"Failed to parse bibliography content: {e}") from e

    def parse(self, text: str) -> list[Entry]:
        """Parse ``text`` into its entries, in file order."""
        return [block for block in self.parse_blocks(text) if isinstance(block, Entry)]

    def serialize(self, blocks: Sequence[Block]) -> str:
        """Serialize ``blocks`` back to bibliography text.

        Each block is written on its own, so entries sharing a citation key are
        written out unchanged.

        Raises:
            InvalidDataError: If an entry has a field value with unbalanced braces
        """
        for block in blocks:
            if isinstance(block, Entry):
                _check_entry_braces(block)

        pieces = [bibtexparser.write_string(Library([block])) for block in blocks]
        return BLOCK_SEPARATOR.join(pieces)


def _apply_parse_middleware(block: Block, strings: list[String]) -> Block:
    # Each entry gets its own library, with fresh copies of the string
    # definitions, so repeated keys never clash and macros resolve the same way.
    if isinstance(block, Entry):
        library = Library([*deepcopy(strings), block])
    else:
        library = Library([block])

    middlewares = [
        ResolveStringReferencesMiddleware(allow_inplace_modification=True),
        RemoveEnclosingMiddleware(allow_inplace_modification=True),
    ]
    for middleware in middlewares:
        library = middleware.transform(library)
    return library.blocks[-1]


def _check_entry_braces(entry: Entry) -> None:
    for field in entry.fields:
        if not has_balanced_braces(str(field.value)):
            raise InvalidDataError(
                f"Field '{field.key}' of entry '{entry.key}' has unbalanced braces"
            )


def _describe_failed_block(block: ParsingFailedBlock) -> str:
    location = f"line {block.start_line}" if block.start_line is not None else "unknown line"
    return f"{location}: {block.error}"
