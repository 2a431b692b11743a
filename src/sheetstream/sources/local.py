"""Local file system source."""

from collections.abc import Iterator
import logging
import os
from pathlib import Path
from typing import Any

from typing_extensions import override

from sheetstream.sources.base import StreamSource, guess_mime_type

logger = logging.getLogger(__name__)


class LocalFileSource(StreamSource):
    """
    Read a workbook from disk in fixed-size chunks.

    The file is stat'ed when the source is created. A later pass over a file
    whose size or modification time has changed fails, since the sheet
    offsets learned from the first pass would no longer match.
    """

    def __init__(self, file_path: str | os.PathLike[str], chunk_size: int = 16777216) -> None:
        """
        Args:
            file_path: Path to the workbook file.
            chunk_size: Bytes per read (default: 16MB).

        Raises:
            FileNotFoundError: If nothing exists at ``file_path``.
            ValueError: If ``file_path`` is a directory or another non-file.
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        self.file_path = path
        self.chunk_size = chunk_size
        self.passes = 0
        self._signature = self._stat_signature()

        logger.debug("LocalFileSource opened %s (%d bytes)", path, self._signature[0])

    def _stat_signature(self) -> tuple[int, int]:
        stat = self.file_path.stat()
        return stat.st_size, stat.st_mtime_ns

    @override
    def get_stream(self) -> Iterator[bytes]:
        """
        Yield the file from its first byte.

        Raises:
            IOError: If the file cannot be read or changed since the source was
                created.
        """
        self.passes += 1
        try:
            if self._stat_signature() != self._signature:
                raise OSError("file changed on disk between passes")
            with self.file_path.open("rb") as f:
                chunk = f.read(self.chunk_size)
                while chunk:
                    yield chunk
                    chunk = f.read(self.chunk_size)
        except OSError as e:
            logger.exception("Error reading file %s (pass %d): %s", self.file_path, self.passes, e)
            raise OSError(f"Failed to read file {self.file_path}: {e}") from e

    @override
    def get_metadata(self) -> dict[str, Any]:
        return {
            "size": self._signature[0],
            "type": guess_mime_type(self.file_path.name),
            "source_type": "local",
            "path": str(self.file_path),
            "passes": self.passes,
        }
