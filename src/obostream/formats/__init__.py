"""
OBO format reading.

- source:  plain / gzip byte sources with content-based detection
- scanner: logical line scanner (continuations, comments, progress)
- escapes: OBO backslash escape table and byte-span helpers
- obo:     stanza state machine and field decoders
"""

from obostream.formats.source import ByteSource, open_byte_source
from obostream.formats.scanner import LineScanner
from obostream.formats.escapes import escape, unescape, decode_text
from obostream.formats.obo import (
    OBOParser,
    OBOParserError,
    RecordAccumulator,
    StanzaType,
    parse_obo,
)

__all__ = [
    "ByteSource",
    "open_byte_source",
    "LineScanner",
    "escape",
    "unescape",
    "decode_text",
    "OBOParser",
    "OBOParserError",
    "RecordAccumulator",
    "StanzaType",
    "parse_obo",
]
