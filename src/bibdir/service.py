"""Library directory service: list, load, modify and delete library files."""

from __future__ import annotations

import logging
from pathlib import Path

from bibtexparser.model import Block, Entry

from .codec import BibliographyCodec
from .config import BIB_EXTENSION, LibraryConfig
from .exceptions import (
    FileOperationError,
    InvalidLibraryNameError,
    LibraryNotFoundError,
    ParseError,
)

logger = logging.getLogger(__name__)


def normalize_library_name(name: str, extension: str = BIB_EXTENSION) -> str:
    """Return the canonical file name for a library name.

    Names already ending with ``extension`` are returned unchanged, any other
    name gets the extension appended. Applying the function twice gives the
    same result as applying it once.

    Args:
        name: Library name with or without its extension
        extension: File extension of library files

    Returns:
        The library file name, always ending with ``extension``

    Raises:
        InvalidLibraryNameError: If ``name`` is not a bare file name
    """
    if name in ("", ".", "..") or Path(name).name != name or "\\" in name:
        raise InvalidLibraryNameError(f"Invalid library name: {name!r}")

    if name.endswith(extension):
        return name
    return f"{name}{extension}"


class LibraryService:
    """Gateway between library names and bibliography files in one directory.

    The working directory is fixed at construction. Every read loads the file
    from disk and every modification rewrites the whole file; no handles or
    cached content are kept between calls.
    """

    def __init__(self, config: LibraryConfig, codec: BibliographyCodec | None = None) -> None:
        self._config = config
        self._codec = codec if codec is not None else BibliographyCodec()

    @classmethod
    def from_workspace(cls, workspace: Path | str) -> LibraryService:
        """Create a service for the library files in ``workspace``."""
        return cls(LibraryConfig.from_workspace(workspace))

    @property
    def working_dir(self) -> Path:
        return self._config.working_dir

    @property
    def codec(self) -> BibliographyCodec:
        return self._codec

    def library_path(self, name: str) -> Path:
        """Return the path ``name`` resolves to, whether or not it exists."""
        return self.working_dir / normalize_library_name(name, self._config.extension)

    def resolve(self, name: str) -> Path:
        """Return the path of the existing library file called ``name``.

        Raises:
            LibraryNotFoundError: If no such library file exists
            InvalidLibraryNameError: If ``name`` is not a bare file name
        """
        path = self.library_path(name)
        if not _is_file(path):
            raise LibraryNotFoundError(f"Library not found: {path}")
        return path

    def list_library_names(self) -> list[str]:
        """List library file names in file-system enumeration order.

        Only regular files directly inside the working directory with the
        library extension are returned. Callers needing a specific order must
        sort the result themselves.

        Raises:
            FileOperationError: If the working directory cannot be read
        """
        logger.debug(f"Scanning working directory: {self.working_dir}")

        try:
            names = [
                path.name
                for path in self.working_dir.iterdir()
                if path.name.endswith(self._config.extension) and path.is_file()
            ]
        except OSError as e:
            raise FileOperationError(f"Failed to list libraries in {self.working_dir}: {e}") from e

        logger.debug(f"Found {len(names)} library files")
        return names

    def library_exists(self, name: str) -> bool:
        """Check whether ``name`` resolves to an existing library file.

        Missing files and invalid names are reported as ``False``.

        Raises:
            FileOperationError: If the file system refuses the existence check
        """
        try:
            path = self.library_path(name)
        except InvalidLibraryNameError:
            logger.debug(f"Invalid library name treated as missing: {name!r}")
            return False
        return _is_file(path)

    def get_library_entries(self, name: str) -> list[Entry]:
        """Load all entries of library ``name`` in file order.

        Raises:
            LibraryNotFoundError: If the library file does not exist
            FileOperationError: If the library file cannot be read
            ParseError: If the library content is malformed
        """
        path = self.resolve(name)
        entries = [block for block in self._read_blocks(path) if isinstance(block, Entry)]
        logger.debug(f"Loaded {len(entries)} entries from {path.name}")
        return entries

    def add_entry_to_library(self, name: str, entry: Entry) -> None:
        """Append ``entry`` to library ``name`` and rewrite the file.

        The library must already exist. Citation keys are not checked for
        uniqueness.

        Raises:
            LibraryNotFoundError: If the library file does not exist
            FileOperationError: If the library file cannot be read or written
            ParseError: If the current library content is malformed
            InvalidDataError: If a field value of ``entry`` has unbalanced braces
        """
        path = self.resolve(name)
        blocks = self._read_blocks(path)
        blocks.append(entry)
        self._write_blocks(path, blocks)
        logger.info(f"Added entry '{entry.key}' to {path.name}")

    def update_entry(self, name: str, key: str, entry: Entry) -> bool:
        """Replace the first entry with citation key ``key`` by ``entry``.

        Returns:
            True if an entry was replaced, False if no entry has ``key``

        Raises:
            LibraryNotFoundError: If the library file does not exist
            FileOperationError: If the library file cannot be read or written
            ParseError: If the current library content is malformed
        """
        path = self.resolve(name)
        blocks = self._read_blocks(path)

        index = _find_entry_index(blocks, key)
        if index is None:
            logger.debug(f"No entry '{key}' to update in {path.name}")
            return False

        blocks[index] = entry
        self._write_blocks(path, blocks)
        logger.info(f"Updated entry '{key}' in {path.name}")
        return True

    def delete_entry_from_library(self, name: str, key: str) -> bool:
        """Remove the first entry with citation key ``key``.

        Returns:
            True if an entry was removed, False if no entry has ``key``

        Raises:
            LibraryNotFoundError: If the library file does not exist
            FileOperationError: If the library file cannot be read or written
            ParseError: If the current library content is malformed
        """
        path = self.resolve(name)
        blocks = self._read_blocks(path)

        index = _find_entry_index(blocks, key)
        if index is None:
            logger.debug(f"No entry '{key}' to delete in {path.name}")
            return False

        del blocks[index]
        self._write_blocks(path, blocks)
        logger.info(f"Deleted entry '{key}' from {path.name}")
        return True

    def create_library(self, name: str) -> bool:
        """Create an empty library file.

        Returns:
            True if the file was created, False if it already existed

        Raises:
            InvalidLibraryNameError: If ``name`` is not a bare file name
            FileOperationError: If the file cannot be created
        """
        path = self.library_path(name)
        try:
            with open(path, "x", encoding=self._config.encoding):
                pass
        except FileExistsError:
            logger.debug(f"Library already exists: {path.name}")
            return False
        except OSError as e:
            raise FileOperationError(f"Failed to create library {path}: {e}") from e

        logger.info(f"Created library {path.name}")
        return True

    def delete_library(self, name: str) -> bool:
        """Delete library ``name``.

        Returns:
            True if a file was deleted, False if there was nothing to delete

        Raises:
            FileOperationError: If an existing file cannot be deleted
        """
        if not self.library_exists(name):
            logger.debug(f"No library to delete: {name}")
            return False

        path = self.library_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FileOperationError(f"Failed to delete library {path}: {e}") from e

        logger.info(f"Deleted library {path.name}")
        return True

    def _read_blocks(self, path: Path) -> list[Block]:
        try:
            text = path.read_text(encoding=self._config.encoding)
        except FileNotFoundError as e:
            raise LibraryNotFoundError(f"Library not found: {path}") from e
        except UnicodeDecodeError as e:
            raise ParseError(
                f"Library {path} is not valid {self._config.encoding} text: {e}"
            ) from e
        except OSError as e:
            raise FileOperationError(f"Failed to read library {path}: {e}") from e

        return self._codec.parse_blocks(text)

    def _write_blocks(self, path: Path, blocks: list[Block]) -> None:
        content = self._codec.serialize(blocks)
        try:
            with open(path, "w", encoding=self._config.encoding) as f:
                f.write(content)
        except OSError as e:
            raise FileOperationError(f"Failed to write library {path}: {e}") from e


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError as e:
        raise FileOperationError(f"Failed to check library {path}: {e}") from e


def _find_entry_index(blocks: list[Block], key: str) -> int | None:
    for index, block in enumerate(blocks):
        if isinstance(block, Entry) and block.key == key:
            return index
    return None
