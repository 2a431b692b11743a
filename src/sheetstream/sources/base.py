"""Abstract base class for workbook byte sources."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLSB_MIME_TYPE = "application/vnd.ms-excel.sheet.binary.macroEnabled.12"


def guess_mime_type(name: str) -> str:
    """MIME type for a workbook file name, xlsx unless it ends in ``.xlsb``."""
    return XLSB_MIME_TYPE if name.lower().endswith(".xlsb") else XLSX_MIME_TYPE


class StreamSource(ABC):
    """
    Abstract base class for the bytes of a workbook.

    A workbook is read in more than one pass (workbook parts first, then each
    opened sheet), so every call to ``get_stream`` must start a fresh stream
    from the first byte.
    """

    @abstractmethod
    def get_stream(self) -> Iterator[bytes]:
        """
        Return a new iterator of byte chunks, starting at the first byte.

        Must not load the entire file into memory unless the source already
        lives there.

        Yields:
            bytes: Chunks of data from the source.

        Raises:
            IOError: If the source cannot be read.
        """
        ...

    @abstractmethod
    def get_metadata(self) -> dict[str, Any]:
        """
        Return metadata about the source.

        Returns:
            dict[str, Any]: Metadata dictionary containing at least:
                - 'size': Size in bytes (0 when unknown)
                - 'type': MIME type
                - 'source_type': Kind of source ('local', 'memory', 'http', 's3')
        """
        ...
