"""Escape run notes so they fit in a single tab-delimited cell."""

from __future__ import annotations

from typing import Final

_ESCAPES: Final[dict[str, str]] = {"\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"}
_UNESCAPES: Final[dict[str, str]] = {"\\": "\\", "t": "\t", "n": "\n", "r": "\r"}


def encode_notes_for_storage(notes: str) -> str:
    """Escape backslashes, tabs, newlines and carriage returns.

    Backslashes are escaped first so user-typed `\\n` text survives decoding.
    """

    if not notes:
        return ""
    return "".join(_ESCAPES.get(char, char) for char in notes)


def decode_notes_from_storage(encoded: str) -> str:
    """Reverse `encode_notes_for_storage` in a single left-to-right scan.

    Unknown escape sequences and a trailing lone backslash are kept verbatim.
    """

    if not encoded:
        return ""

    decoded: list[str] = []
    index = 0
    length = len(encoded)
    while index < length:
        char = encoded[index]
        if char == "\\" and index + 1 < length:
            replacement = _UNESCAPES.get(encoded[index + 1])
            if replacement is not None:
                decoded.append(replacement)
                index += 2
                continue
        decoded.append(char)
        index += 1
    return "".join(decoded)
