"""Custom exception types for bibdir operations."""


class BibdirError(Exception):
    """Base exception for all bibdir operations."""


class FileOperationError(BibdirError):
    """Raised when file I/O operations fail."""


class LibraryNotFoundError(FileOperationError):
    """Raised when a library name does not resolve to an existing file."""


class ParseError(BibdirError):
    """Raised when library content is not valid bibliography data."""


class InvalidDataError(BibdirError):
    """Raised when caller-supplied data fails validation."""


class InvalidLibraryNameError(InvalidDataError):
    """Raised when a library name is not a bare file name."""
