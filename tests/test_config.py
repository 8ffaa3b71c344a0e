"""Tests for working directory configuration."""

from pathlib import Path

from bibdir.config import LibraryConfig
from bibdir.service import LibraryService


def test_from_workspace_defaults(tmp_path: Path) -> None:
    config = LibraryConfig.from_workspace(str(tmp_path))

    assert config.working_dir == tmp_path
    assert config.extension == ".bib"
    assert config.encoding == "utf-8"


def test_service_uses_configured_extension(tmp_path: Path) -> None:
    """The extension is fixed per service and drives both listing and resolution."""
    (tmp_path / "refs.biblatex").write_text("", encoding="utf-8")
    (tmp_path / "refs.bib").write_text("", encoding="utf-8")

    service = LibraryService(LibraryConfig(working_dir=tmp_path, extension=".biblatex"))

    assert service.list_library_names() == ["refs.biblatex"]
    assert service.resolve("refs") == tmp_path / "refs.biblatex"
