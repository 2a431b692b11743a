"""In-memory and file-like object source."""

from collections.abc import Iterator
import logging
from typing import Any, BinaryIO

from typing_extensions import override

from sheetstream.sources.base import XLSX_MIME_TYPE, StreamSource

logger = logging.getLogger(__name__)


class MemorySource(StreamSource):
    """
    Read a workbook held in memory or behind a seekable binary file object.

    File objects are rewound to the position they had when the source was
    created before every pass.
    """

    def __init__(self, data: bytes | bytearray | BinaryIO, chunk_size: int = 16777216) -> None:
        """
        Initialize MemorySource.

        Args:
            data: Workbook bytes, or a binary file object with read/seek.
            chunk_size: Size of chunks to yield (default: 16MB).

        Raises:
            ValueError: If ``chunk_size`` is not positive.
            TypeError: If ``data`` is neither bytes nor a seekable binary file.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.chunk_size = chunk_size
        self._data: bytes | None = None
        self._fileobj: BinaryIO | None = None
        self._origin = 0

        if isinstance(data, (bytes, bytearray)):
            self._data = bytes(data)
        elif hasattr(data, "read") and hasattr(data, "seek"):
            self._fileobj = data
            self._origin = data.tell()
        else:
            raise TypeError(
                f"MemorySource needs bytes or a seekable binary file, got {type(data).__name__}"
            )

        logger.debug("MemorySource initialized (%s)", "bytes" if self._data is not None else "file")

    @override
    def get_stream(self) -> Iterator[bytes]:
        if self._data is not None:
            for offset in range(0, len(self._data), self.chunk_size):
                yield self._data[offset : offset + self.chunk_size]
            return

        assert self._fileobj is not None
        try:
            self._fileobj.seek(self._origin)
            while True:
                chunk = self._fileobj.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
        except (OSError, ValueError) as e:
            logger.exception("Error reading file object: %s", e)
            raise OSError(f"Failed to read file object: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        if self._data is not None:
            size = len(self._data)
        else:
            assert self._fileobj is not None
            try:
                position = self._fileobj.tell()
                size = self._fileobj.seek(0, 2) - self._origin
                self._fileobj.seek(position)
            except (OSError, ValueError):
                size = 0

        return {
            "size": size,
            "type": XLSX_MIME_TYPE,
            "source_type": "memory",
        }
