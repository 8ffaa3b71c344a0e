"""Working directory configuration for bibdir operations."""

from dataclasses import dataclass
from pathlib import Path

BIB_EXTENSION = ".bib"


@dataclass(frozen=True)
class LibraryConfig:
    """Configuration for the library working directory."""

    working_dir: Path
    extension: str = BIB_EXTENSION
    encoding: str = "utf-8"

    @classmethod
    def from_workspace(cls, workspace: Path | str) -> "LibraryConfig":
        """Create configuration from a working directory path.

        Args:
            workspace: Directory holding the library files

        Returns:
            LibraryConfig with the standard extension and encoding
        """
        return cls(working_dir=Path(workspace))
