"""Tests for notes escaping in tab-delimited storage."""

from __future__ import annotations

import pytest

from analysis.notes_encoding import decode_notes_from_storage, encode_notes_for_storage

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "notes",
    [
        "plain text",
        "tab\tseparated",
        "line one\nline two",
        "windows\r\nline endings",
        "back\\slash",
        "user typed \\n and \\t literally",
        "\\",
        "",
    ],
)
def test_notes_survive_encoding(notes: str) -> None:
    """Decoding an encoded note returns the original text."""

    encoded = encode_notes_for_storage(notes)
    assert "\t" not in encoded
    assert "\n" not in encoded
    assert decode_notes_from_storage(encoded) == notes


def test_encode_escapes_backslashes_first() -> None:
    """A typed `\\n` is not confused with a newline."""

    assert encode_notes_for_storage("a\\nb") == "a\\\\nb"
    assert encode_notes_for_storage("a\nb") == "a\\nb"


def test_decode_keeps_unknown_escapes() -> None:
    """Unknown escapes and a trailing backslash are kept verbatim."""

    assert decode_notes_from_storage("50\\% faster") == "50\\% faster"
    assert decode_notes_from_storage("ends with \\") == "ends with \\"
