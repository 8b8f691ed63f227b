"""
Byte sources for OBO input.

Compression is detected from content, not from the file extension: the raw
stream is first read through a gzip decoder and, if the gzip header check
fails, rewound and read as plain bytes.
"""

import gzip
import io
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

logger = logging.getLogger(__name__)


SourceLike = Union[str, Path, bytes, BinaryIO, "ByteSource"]


class ByteSource:
    """
    Line-oriented reader over a raw (optionally gzipped) byte stream.

    ``position`` and ``total_bytes`` refer to the raw stream, so progress
    on compressed input is measured against the compressed file size.
    """

    def __init__(
        self,
        raw: BinaryIO,
        name: str = "<stream>",
        owns_raw: bool = True
    ):
        self.name = name
        self._raw = raw
        self._owns_raw = owns_raw
        self.total_bytes = self._measure(raw)
        self.compressed = False
        self._stream: BinaryIO = self._detect(raw)

    @staticmethod
    def _measure(raw: BinaryIO) -> int:
        start = raw.tell()
        size = raw.seek(0, io.SEEK_END)
        raw.seek(start)
        return size

    def _detect(self, raw: BinaryIO) -> BinaryIO:
        start = raw.tell()
        if start >= self.total_bytes:
            # Empty input is plain
            return raw
        reader = gzip.GzipFile(fileobj=raw, mode="rb")
        try:
            # peek forces the header check
            reader.peek(1)
        except (gzip.BadGzipFile, EOFError):
            raw.seek(start)
            return raw
        self.compressed = True
        logger.debug(f"{self.name}: gzip compressed input")
        return reader

    @property
    def position(self) -> int:
        """Bytes consumed from the raw stream so far."""
        return self._raw.tell()

    def readline(self) -> bytes:
        if self._raw.closed:
            raise OSError(f"{self.name}: byte source closed")
        return self._stream.readline()

    def __iter__(self) -> Iterator[bytes]:
        while True:
            line = self.readline()
            if not line:
                return
            yield line

    def close(self) -> None:
        if self.compressed:
            self._stream.close()
        if self._owns_raw:
            self._raw.close()

    @property
    def closed(self) -> bool:
        return self._raw.closed

    def __enter__(self) -> "ByteSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_byte_source(source: SourceLike, name: Optional[str] = None) -> ByteSource:
    """
    Open a byte source.

    Args:
        source: Filesystem path (str or Path), raw bytes, or a seekable
            binary file object (not closed by the returned source)
        name: Label used in diagnostics

    Raises:
        OSError: If the path cannot be opened
    """
    if isinstance(source, ByteSource):
        return source
    if isinstance(source, (str, Path)):
        raw = open(source, "rb")
        try:
            return ByteSource(raw, name=name or str(source))
        except Exception:
            raw.close()
            raise
    if isinstance(source, (bytes, bytearray)):
        return ByteSource(io.BytesIO(bytes(source)), name=name or "<bytes>")
    return ByteSource(source, name=name or getattr(source, "name", "<stream>"), owns_raw=False)
