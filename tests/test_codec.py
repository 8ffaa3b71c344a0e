"""Tests for the bibliography codec."""

import pytest
from bibtexparser.model import Entry, Field, String

from bibdir.codec import BibliographyCodec, has_balanced_braces
from bibdir.entries import entry_to_data, make_entry
from bibdir.exceptions import InvalidDataError, ParseError

SAMPLE = """@article{Wu2007,
  author = {Cheng-Wen Wu},
  date = {2007-10-25},
  title = {SOC Testing Methodology and Practice}
}

@book{Knuth1984,
  author = "Donald E. Knuth",
  title = {The {TeX}book}
}
"""


@pytest.fixture
def codec() -> BibliographyCodec:
    return BibliographyCodec()


def test_parse_returns_entries_in_file_order(codec: BibliographyCodec) -> None:
    entries = codec.parse(SAMPLE)

    assert [entry.key for entry in entries] == ["Wu2007", "Knuth1984"]
    assert [entry.entry_type for entry in entries] == ["article", "book"]


def test_parse_removes_enclosing(codec: BibliographyCodec) -> None:
    """Braces and quotes around field values are not part of the value."""
    entries = codec.parse(SAMPLE)

    assert entries[0].fields_dict["author"].value == "Cheng-Wen Wu"
    assert entries[1].fields_dict["author"].value == "Donald E. Knuth"
    assert entries[1].fields_dict["title"].value == "The {TeX}book"


def test_parse_empty_text(codec: BibliographyCodec) -> None:
    assert codec.parse("") == []


def test_parse_keeps_duplicate_keys(codec: BibliographyCodec) -> None:
    text = "@misc{same,\n  title = {First}\n}\n\n@misc{same,\n  title = {Second}\n}\n"

    entries = codec.parse(text)

    assert [entry.fields_dict["title"].value for entry in entries] == ["First", "Second"]


def test_parse_blocks_keeps_string_definitions(codec: BibliographyCodec) -> None:
    blocks = codec.parse_blocks('@string{ieee = "IEEE"}\n\n' + SAMPLE)

    assert isinstance(blocks[0], String)
    assert all(isinstance(block, Entry) for block in blocks[1:])


def test_parse_rejects_duplicate_fields(codec: BibliographyCodec) -> None:
    with pytest.raises(ParseError):
        codec.parse("@article{dup,\n  title = {One},\n  title = {Two}\n}\n")


def test_serialize_empty(codec: BibliographyCodec) -> None:
    assert codec.serialize([]) == ""


def test_serialize_encloses_values(codec: BibliographyCodec) -> None:
    entry = make_entry("book", "Harrer2018java", {"author": "Harrer, S.", "date": "2018-03-20"})

    text = codec.serialize([entry])

    assert text.startswith("@book{Harrer2018java,")
    assert "{Harrer, S.}" in text
    assert "{2018-03-20}" in text


def test_serialize_is_stable(codec: BibliographyCodec) -> None:
    """Serializing parsed serializer output reproduces it exactly."""
    first = codec.serialize(codec.parse_blocks(SAMPLE))
    second = codec.serialize(codec.parse_blocks(first))

    assert second == first
    assert [entry_to_data(e) for e in codec.parse(first)] == [
        entry_to_data(e) for e in codec.parse(SAMPLE)
    ]


def test_serialize_duplicate_keys(codec: BibliographyCodec) -> None:
    entries = [
        make_entry("misc", "same", {"title": "First"}),
        make_entry("misc", "same", {"title": "Second"}),
    ]

    parsed = codec.parse(codec.serialize(entries))

    assert [entry_to_data(entry) for entry in parsed] == [
        entry_to_data(entry) for entry in entries
    ]


def test_serialize_does_not_modify_entries(codec: BibliographyCodec) -> None:
    entry = make_entry("book", "k", {"title": "Plain"})

    codec.serialize([entry])

    assert entry.fields_dict["title"].value == "Plain"


def test_parse_resolves_macros_in_duplicate_entries(codec: BibliographyCodec) -> None:
    """A repeated key gets the same unwrapping and macro resolution as the first entry."""
    text = (
        '@string{acm = "ACM Press"}\n\n'
        "@misc{same,\n  title = {First},\n  publisher = acm\n}\n\n"
        '@misc{same,\n  title = "Second",\n  publisher = acm\n}\n'
    )

    entries = codec.parse(text)

    assert [entry_to_data(entry)["fields"] for entry in entries] == [
        {"title": "First", "publisher": "ACM Press"},
        {"title": "Second", "publisher": "ACM Press"},
    ]


def test_serialize_duplicate_keys_is_stable(codec: BibliographyCodec) -> None:
    entries = [
        make_entry("misc", "same", {"title": "First {Part}"}),
        make_entry("misc", "same", {"title": "Second"}),
    ]

    first = codec.serialize(entries)
    second = codec.serialize(codec.parse_blocks(first))
    third = codec.serialize(codec.parse_blocks(second))

    assert second == first
    assert third == first


def test_serialize_rejects_unbalanced_braces(codec: BibliographyCodec) -> None:
    entry = Entry(entry_type="misc", key="N", fields=[Field("title", "a } b")])

    with pytest.raises(InvalidDataError, match="title"):
        codec.serialize([entry])


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("plain", True),
        ("The {TeX}book", True),
        ("{a {b} c}", True),
        ("a } b", False),
        ("a { b", False),
        ("} {", False),
    ],
)
def test_has_balanced_braces(value: str, expected: bool) -> None:
    assert has_balanced_braces(value) is expected
