"""
OBO escape handling.

OBO values may escape structural characters with a backslash. The table is
symmetric: ``UNESCAPE_TABLE`` maps the character following a backslash to the
literal it stands for, ``ESCAPE_TABLE`` is its exact inverse.

    \\:  ->  :          \\"  ->  "          \\{  ->  {
    \\W  ->  space      \\n  ->  newline    \\}  ->  }
    \\t  ->  tab        \\\\  ->  \\          \\[  ->  [
    \\,  ->  ,                              \\]  ->  ]
                                            \\!  ->  !

The byte-level search helpers are what the stanza parser uses on raw line
spans; ``decode_text`` is the general-purpose decoder for free-text values.
"""

from types import MappingProxyType
from typing import Optional


UNESCAPE_TABLE = MappingProxyType({
    ":": ":",
    "W": " ",
    "t": "\t",
    ",": ",",
    '"': '"',
    "n": "\n",
    "\\": "\\",
    "{": "{",
    "}": "}",
    "[": "[",
    "]": "]",
    "!": "!",
})

ESCAPE_TABLE = MappingProxyType({literal: code for code, literal in UNESCAPE_TABLE.items()})

BACKSLASH = 0x5C
WHITESPACE = b" \t\r\n\f\v"


def unescape(text: str) -> str:
    """
    Decode backslash escapes.

    Escape sequences outside the table are kept verbatim (backslash included).
    """
    if "\\" not in text:
        return text
    out = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == "\\" and i + 1 < n:
            literal = UNESCAPE_TABLE.get(text[i + 1])
            if literal is not None:
                out.append(literal)
            else:
                out.append(text[i:i + 2])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def escape(text: str) -> str:
    """Encode every character that has an escape code."""
    return "".join("\\" + ESCAPE_TABLE[c] if c in ESCAPE_TABLE else c for c in text)


# =============================================================================
# Byte-span helpers
# =============================================================================

def find_unescaped(buf: bytes, chars: bytes, start: int = 0, end: int = -1) -> int:
    """
    Find the first byte of ``chars`` in ``buf[start:end]`` that is not
    preceded by an escaping backslash.

    Returns:
        Index into ``buf``, or -1 if not found
    """
    if end < 0:
        end = len(buf)
    i = start
    while i < end:
        b = buf[i]
        if b == BACKSLASH:
            i += 2
            continue
        if b in chars:
            return i
        i += 1
    return -1


def skip_spaces(buf: bytes, start: int = 0, end: int = -1) -> int:
    """Index of the first non-space/tab byte at or after ``start``, or -1."""
    if end < 0:
        end = len(buf)
    i = start
    while i < end:
        if buf[i] not in b" \t":
            return i
        i += 1
    return -1


def extract_quoted(value: bytes) -> Optional[bytes]:
    """
    Return the bytes strictly between the first and second unescaped ``"``.

    None if either quote is missing.
    """
    first = find_unescaped(value, b'"')
    if first == -1:
        return None
    second = find_unescaped(value, b'"', first + 1)
    if second == -1:
        return None
    return value[first + 1:second]


def strip_comment(value: bytes) -> bytes:
    """Cut a trailing unescaped ``! comment`` and the whitespace before it."""
    bang = find_unescaped(value, b"!")
    if bang == -1:
        return value
    return value[:bang].rstrip(WHITESPACE)


def decode_text(value: bytes) -> str:
    """General-purpose decode of a free-text value."""
    return unescape(strip_comment(value).decode("utf-8", errors="replace"))
