"""
Logical line scanner for OBO files.

Turns the physical lines of a ByteSource into logical lines:
- line terminators removed
- backslash-continued physical lines merged into one logical line
- blank lines and full-line ``!`` comments dropped
- trailing whitespace trimmed

Each logical line is handed to a callback together with the 1-based
physical line number that completed it.
"""

import logging
from typing import Callable, List, Optional

from obostream.formats.escapes import BACKSLASH, WHITESPACE
from obostream.formats.source import ByteSource
from obostream.storage.progress import ProgressThrottle

logger = logging.getLogger(__name__)

COMMENT = 0x21  # "!"

LineHandler = Callable[[bytes, int], Optional[bool]]


def ends_with_continuation(line: bytes) -> bool:
    """True if ``line`` ends in a backslash that is not itself escaped."""
    count = 0
    i = len(line) - 1
    while i >= 0 and line[i] == BACKSLASH:
        count += 1
        i -= 1
    return count % 2 == 1


class LineScanner:
    """
    Sequential scanner over a ByteSource.

    Holds at most one logical line plus one pending continuation buffer.
    The callback may return False to stop the scan early.
    """

    def __init__(
        self,
        source: ByteSource,
        on_line: LineHandler,
        progress: Optional[ProgressThrottle] = None,
        term_count: Callable[[], int] = lambda: 0
    ):
        self.source = source
        self.on_line = on_line
        self.progress = progress
        self.term_count = term_count
        self.line_number = 0
        self.logical_lines = 0
        self._pending: List[bytes] = []

    def scan(self) -> int:
        """
        Scan the whole source.

        Returns:
            Number of physical lines read
        """
        report = self.progress is not None and self.progress.enabled

        for raw in self.source:
            self.line_number += 1
            if report and self.progress.due():
                self.progress.report(self.source.position, self.term_count())

            if raw.endswith(b"\n"):
                raw = raw[:-1]
                if raw.endswith(b"\r"):
                    raw = raw[:-1]

            if ends_with_continuation(raw):
                self._pending.append(raw[:-1])
                continue

            if self._pending:
                self._pending.append(raw)
                raw = b"".join(self._pending)
                self._pending = []

            if self._emit(raw) is False:
                return self.line_number

        # Input ended inside a continuation
        if self._pending:
            raw = b"".join(self._pending)
            self._pending = []
            self._emit(raw)

        return self.line_number

    def _emit(self, line: bytes) -> Optional[bool]:
        if not line or line[0] == COMMENT:
            return None
        line = line.rstrip(WHITESPACE)
        if not line:
            return None
        self.logical_lines += 1
        return self.on_line(line, self.line_number)
