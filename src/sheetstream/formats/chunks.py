"""Byte-level helpers over iterators of decompressed chunks."""

from collections.abc import Iterator
from typing import overload


class ChunkBuffer:
    """Wraps an iterator of bytes as a file-like object with a .read() method."""

    def __init__(self, iterator: Iterator[bytes]) -> None:
        self.iterator = iterator
        self.buffer = bytearray()

    def _fill(self, size: int) -> None:
        while size < 0 or len(self.buffer) < size:
            try:
                chunk: bytes = next(self.iterator)
            except StopIteration:
                break
            self.buffer += chunk

    @overload
    def read(self) -> bytes: ...
    @overload
    def read(self, size: int) -> bytes: ...

    def read(self, size: int = -1) -> bytes:
        """
        Reads up to 'size' bytes from the stream.
        If size is -1, reads all remaining bytes.
        """
        self._fill(size)

        if size < 0:
            result = bytes(self.buffer)
            self.buffer.clear()
        else:
            result = bytes(self.buffer[:size])
            del self.buffer[:size]

        return result

    def read_exact(self, size: int) -> bytes:
        """
        Read exactly ``size`` bytes.

        Raises:
            EOFError: If the stream ends first.
        """
        data = self.read(size)
        if len(data) != size:
            raise EOFError(f"Unexpected end of stream: wanted {size} bytes, got {len(data)}")
        return data

    def close(self) -> None:
        close = getattr(self.iterator, "close", None)
        if close is not None:
            close()
        self.buffer.clear()
