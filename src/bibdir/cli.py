"""Command-line interface for bibliography library directories."""

import argparse
import logging
import sys
from collections.abc import Sequence

from .entries import (
    decode_entry_json,
    encode_entries_json,
    entry_from_data,
    make_entry,
    sort_by_citation_key,
)
from .exceptions import BibdirError, InvalidDataError
from .service import LibraryService
from .types import FieldMapping


def setup_logging(verbosity: int = 0) -> None:
    """Configure logging for the CLI application.

    Args:
        verbosity: Logging verbosity level (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s:%(lineno)d – %(message)s",
    )


def parse_field_specs(specs: Sequence[str]) -> FieldMapping:
    """Parse ``name=value`` field specifications, keeping their order.

    Raises:
        InvalidDataError: If a specification has no ``=`` or an empty name
    """
    fields: FieldMapping = {}
    for spec in specs:
        name, sep, value = spec.partition("=")
        name = name.strip()
        if not sep or not name:
            raise InvalidDataError(f"Invalid field specification (expected name=value): {spec}")
        fields[name] = value
    return fields


def cmd_list(args: argparse.Namespace) -> None:
    """List library files in the working directory."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        names = service.list_library_names()
    except BibdirError as e:
        logger.error(f"List error: {e}")
        sys.exit(1)

    for name in names:
        print(name)
    logger.info(f"✓ Found {len(names)} libraries")
    sys.exit(0)


def cmd_exists(args: argparse.Namespace) -> None:
    """Report through the exit code whether a library exists."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    if service.library_exists(args.name):
        logger.info(f"✓ Library {args.name} exists")
        sys.exit(0)

    logger.info(f"✗ Library {args.name} does not exist")
    sys.exit(1)


def cmd_entries(args: argparse.Namespace) -> None:
    """Print the entries of a library."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        entries = service.get_library_entries(args.name)
    except BibdirError as e:
        logger.error(f"Entries error: {e}")
        sys.exit(1)

    if args.sort:
        entries = sort_by_citation_key(entries)

    if args.json:
        print(encode_entries_json(entries).decode("utf-8"))
    elif entries:
        print(service.codec.serialize(entries), end="")

    logger.info(f"✓ Loaded {len(entries)} entries from {args.name}")
    sys.exit(0)


def cmd_add(args: argparse.Namespace) -> None:
    """Append a new entry to a library."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        if args.json is not None:
            entry = entry_from_data(decode_entry_json(args.json))
        elif args.type and args.key:
            entry = make_entry(args.type, args.key, parse_field_specs(args.field))
        else:
            logger.error("Either --json or both --type and --key are required")
            sys.exit(1)

        service.add_entry_to_library(args.name, entry)
    except BibdirError as e:
        logger.error(f"Add error: {e}")
        sys.exit(1)

    logger.info(f"✓ Added entry {entry.key} to {args.name}")
    sys.exit(0)


def cmd_create(args: argparse.Namespace) -> None:
    """Create an empty library."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        created = service.create_library(args.name)
    except BibdirError as e:
        logger.error(f"Create error: {e}")
        sys.exit(1)

    if created:
        logger.info(f"✓ Created library {args.name}")
        sys.exit(0)

    logger.error(f"✗ Library {args.name} already exists")
    sys.exit(1)


def cmd_delete(args: argparse.Namespace) -> None:
    """Delete a library file."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        deleted = service.delete_library(args.name)
    except BibdirError as e:
        logger.error(f"Delete error: {e}")
        sys.exit(1)

    if deleted:
        logger.info(f"✓ Deleted library {args.name}")
        sys.exit(0)

    logger.error(f"✗ Library {args.name} does not exist")
    sys.exit(1)


def cmd_remove_entry(args: argparse.Namespace) -> None:
    """Remove an entry from a library by citation key."""
    service = LibraryService.from_workspace(args.workspace)
    logger = logging.getLogger(__name__)

    try:
        removed = service.delete_entry_from_library(args.name, args.key)
    except BibdirError as e:
        logger.error(f"Remove entry error: {e}")
        sys.exit(1)

    if removed:
        logger.info(f"✓ Removed entry {args.key} from {args.name}")
        sys.exit(0)

    logger.error(f"✗ No entry {args.key} in {args.name}")
    sys.exit(1)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="bibdir",
        description="Manage a directory of .bib libraries: list, inspect, add, delete.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (use -v for INFO, -vv for DEBUG)",
    )

    parser.add_argument(
        "--workspace",
        type=str,
        default=".",
        help="Path to the directory holding the libraries (default: current directory)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list subcommand
    list_parser = subparsers.add_parser("list", help="List library files")
    list_parser.set_defaults(func=cmd_list)

    # exists subcommand
    exists_parser = subparsers.add_parser(
        "exists", help="Exit with status 0 if the library exists, 1 otherwise"
    )
    exists_parser.add_argument("name", help="Library name, with or without .bib")
    exists_parser.set_defaults(func=cmd_exists)

    # entries subcommand
    entries_parser = subparsers.add_parser("entries", help="Print the entries of a library")
    entries_parser.add_argument("name", help="Library name, with or without .bib")
    entries_parser.add_argument(
        "--sort",
        action="store_true",
        help="Sort entries by citation key (default: file order)",
    )
    entries_parser.add_argument(
        "--json",
        action="store_true",
        help="Print entries as a JSON array instead of BibTeX",
    )
    entries_parser.set_defaults(func=cmd_entries)

    # add subcommand
    add_parser = subparsers.add_parser("add", help="Append a new entry to an existing library")
    add_parser.add_argument("name", help="Library name, with or without .bib")
    add_parser.add_argument(
        "--json",
        type=str,
        help='Entry as a JSON object: {"entry_type": ..., "key": ..., "fields": {...}}',
    )
    add_parser.add_argument("--type", type=str, help="Entry type, e.g. article or book")
    add_parser.add_argument("--key", type=str, help="Citation key of the new entry")
    add_parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Field of the new entry (repeatable)",
    )
    add_parser.set_defaults(func=cmd_add)

    # create subcommand
    create_parser_ = subparsers.add_parser("create", help="Create an empty library")
    create_parser_.add_argument("name", help="Library name, with or without .bib")
    create_parser_.set_defaults(func=cmd_create)

    # delete subcommand
    delete_parser = subparsers.add_parser("delete", help="Delete a library file")
    delete_parser.add_argument("name", help="Library name, with or without .bib")
    delete_parser.set_defaults(func=cmd_delete)

    # remove-entry subcommand
    remove_parser = subparsers.add_parser(
        "remove-entry", help="Remove an entry from a library by citation key"
    )
    remove_parser.add_argument("name", help="Library name, with or without .bib")
    remove_parser.add_argument("key", help="Citation key of the entry to remove")
    remove_parser.set_defaults(func=cmd_remove_entry)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point for the bibdir CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging based on verbosity
    setup_logging(args.verbose)

    # Handle case where no subcommand is provided
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    # Execute the subcommand
    args.func(args)


if __name__ == "__main__":
    main()
