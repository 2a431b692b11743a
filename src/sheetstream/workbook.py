"""Workbook loading: sheet enumeration and opening sheets eagerly or lazily."""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
import logging
import os
from typing import Any, BinaryIO
from urllib.parse import urlparse

from openpyxl.utils.datetime import MAC_EPOCH, WINDOWS_EPOCH
from stream_unzip import stream_unzip

from sheetstream.exceptions import (
    SheetReadError,
    SheetstreamError,
    WorkbookError,
    WorksheetNotFound,
)
from sheetstream.formats import XLSB_DRIVER, XLSX_DRIVER, FormatDriver
from sheetstream.formats.common import parse_relationships, resolve_part
from sheetstream.formats.styles import NumberFormats
from sheetstream.grid import Range
from sheetstream.lazy import LazySheet
from sheetstream.metadata import SheetMetadata
from sheetstream.sheet import MaterializedSheet
from sheetstream.sources.base import StreamSource
from sheetstream.sources.http import HTTPSource
from sheetstream.sources.local import LocalFileSource
from sheetstream.sources.memory import MemorySource
from sheetstream.sources.s3 import S3Source

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 16777216

_HTTP_OPTIONS = ("headers", "auth", "timeout", "cache")


class WorkbookFormat(Enum):
    """Container formats; the caller picks one, nothing is sniffed."""

    XLSX = "xlsx"
    XLSB = "xlsb"


_DRIVERS: dict[WorkbookFormat, FormatDriver] = {
    WorkbookFormat.XLSX: XLSX_DRIVER,
    WorkbookFormat.XLSB: XLSB_DRIVER,
}


@dataclass(frozen=True)
class _SheetRef:
    metadata: SheetMetadata
    part: str


def _member_chunks(source: StreamSource, member: str) -> Iterator[bytes]:
    """Yield the decompressed bytes of one archive member, stopping right after it."""
    for file_name, _, chunks in stream_unzip(source.get_stream()):
        if file_name.decode("utf-8", errors="replace") == member:
            yield from chunks
            return
        for _ in chunks:
            pass
    raise WorkbookError(f"Part {member} is missing from the archive")


class Workbook:
    """
    A workbook opened for reading.

    Loading reads only the workbook-level parts (sheet list, relationships,
    shared strings, styles) in one streaming pass. Sheets are read on demand:
    ``get_sheet_by_*`` loads a sheet fully into memory, ``get_lazy_sheet_by_*``
    returns a single-pass cursor. Each opened sheet makes a new pass over the
    source.
    """

    def __init__(
        self,
        source: StreamSource,
        fmt: WorkbookFormat | str = WorkbookFormat.XLSX,
    ) -> None:
        """
        Initialize the workbook and read its sheet list.

        Args:
            source: Where the workbook bytes come from.
            fmt: Container format, ``"xlsx"`` (default) or ``"xlsb"``.

        Raises:
            ValueError: If ``fmt`` is not a known format.
            WorkbookError: If the workbook parts cannot be read.
            UnknownSheetKindError: If a sheet has an unrecognised kind.
            UnknownVisibilityError: If a sheet has an unrecognised visibility.
        """
        self.source = source
        self.fmt = WorkbookFormat(fmt)
        self._driver = _DRIVERS[self.fmt]
        self._shared_strings: list[str] = []
        self._formats = NumberFormats()
        self._sheets: list[_SheetRef] = []
        self.date1904 = False

        self._load()

        logger.info(
            "Workbook loaded (source=%s, format=%s, sheets=%d)",
            source.get_metadata().get("source_type"),
            self.fmt.value,
            len(self._sheets),
        )

    @property
    def epoch(self) -> Any:
        """Calendar origin of the workbook's serial dates."""
        return MAC_EPOCH if self.date1904 else WINDOWS_EPOCH

    @property
    def sheet_names(self) -> list[str]:
        return [ref.metadata.name for ref in self._sheets]

    @property
    def sheets_metadata(self) -> list[SheetMetadata]:
        return [ref.metadata for ref in self._sheets]

    def _load(self) -> None:
        driver = self._driver
        workbook_chunks: list[bytes] = []
        rels_chunks: list[bytes] = []
        styles_chunks: list[bytes] = []
        found_workbook = False

        try:
            for file_name, _, chunks in stream_unzip(self.source.get_stream()):
                try:
                    file_name_str = file_name.decode("utf-8")
                except UnicodeDecodeError:
                    file_name_str = ""

                if file_name_str == driver.shared_strings_part:
                    self._shared_strings = driver.parse_shared_strings(chunks)
                elif file_name_str == driver.workbook_part:
                    workbook_chunks.extend(chunks)
                    found_workbook = True
                elif file_name_str == driver.relationships_part:
                    rels_chunks.extend(chunks)
                elif file_name_str == driver.styles_part:
                    styles_chunks.extend(chunks)
                else:
                    for _ in chunks:
                        pass

            if not found_workbook:
                raise WorkbookError(
                    f"{driver.workbook_part} not found; is this an {driver.name} workbook?"
                )

            info = driver.parse_workbook(workbook_chunks)
            relationships = parse_relationships(rels_chunks)
            self._formats = driver.parse_styles(styles_chunks)
        except SheetstreamError:
            raise
        except Exception as e:
            logger.exception("Error reading workbook parts: %s", e)
            raise WorkbookError(f"Failed to read workbook: {e}") from e

        self.date1904 = info.date1904
        for entry in info.sheets:
            relationship = relationships.get(entry.rel_id or "")
            if relationship is None:
                raise WorkbookError(f"Sheet {entry.name!r} has no relationship {entry.rel_id!r}")
            metadata = SheetMetadata.from_raw(entry.name, relationship.type, entry.state)
            part = resolve_part(relationship.target)
            self._sheets.append(_SheetRef(metadata=metadata, part=part))

        logger.debug(
            "Workbook parts read: %d sheets, %d shared strings, %r",
            len(self._sheets),
            len(self._shared_strings),
            self._formats,
        )

    def _ref_by_name(self, name: str) -> _SheetRef:
        for ref in self._sheets:
            if ref.metadata.name == name:
                return ref
        raise WorksheetNotFound(f"Sheet {name!r} not found in workbook")

    def _ref_by_index(self, index: int) -> _SheetRef:
        if not 0 <= index < len(self._sheets):
            raise WorksheetNotFound(
                f"Sheet index {index} out of range (workbook has {len(self._sheets)} sheets)"
            )
        return self._sheets[index]

    def _open_lazy(self, ref: _SheetRef) -> LazySheet:
        name = ref.metadata.name
        logger.debug("Opening sheet %s (%s)", name, ref.part)
        try:
            reader = self._driver.open_reader(
                _member_chunks(self.source, ref.part), self._shared_strings, self._formats
            )
        except Exception as e:
            logger.exception("Error opening sheet %s: %s", name, e)
            raise SheetReadError(f"Failed to open sheet {name!r}: {e}") from e
        return LazySheet(name, reader, epoch=self.epoch)  # type: ignore[arg-type]

    def _materialize(self, ref: _SheetRef) -> MaterializedSheet:
        with self._open_lazy(ref) as lazy:
            grid = Range.from_sparse(lazy)
        logger.info("Sheet %s loaded: %r", ref.metadata.name, grid.dimensions)
        return MaterializedSheet(ref.metadata.name, grid, epoch=self.epoch)

    def get_sheet_by_name(self, name: str) -> MaterializedSheet:
        """
        Read a whole sheet into memory.

        Raises:
            WorksheetNotFound: If there is no sheet with that name.
            SheetReadError: If the sheet cannot be read completely.
        """
        return self._materialize(self._ref_by_name(name))

    def get_sheet_by_index(self, index: int) -> MaterializedSheet:
        """Read the sheet at ``index`` (workbook order) into memory."""
        return self._materialize(self._ref_by_index(index))

    def get_lazy_sheet_by_name(self, name: str) -> LazySheet:
        """
        Open a single-pass cursor over a sheet's cells.

        Raises:
            WorksheetNotFound: If there is no sheet with that name.
            SheetReadError: If the sheet header cannot be read.
        """
        return self._open_lazy(self._ref_by_name(name))

    def get_lazy_sheet_by_index(self, index: int) -> LazySheet:
        """Open a single-pass cursor over the sheet at ``index``."""
        return self._open_lazy(self._ref_by_index(index))

    @staticmethod
    def _create_source(
        source: Any,
        chunk_size: int,
        options: dict[str, Any],
    ) -> StreamSource:
        """
        Create a StreamSource from a URI, path, bytes or file object.

        Args:
            source: ``s3://bucket/key``, ``http(s)://`` URL, local path
                (str or PathLike), bytes, or a seekable binary file object.
            chunk_size: Chunk size for streaming.
            options: Source-specific options (S3: client; HTTP: headers,
                auth, timeout, cache).

        Raises:
            ValueError: If an S3 URI is malformed.
            TypeError: If ``source`` is of an unsupported type.
        """
        if isinstance(source, StreamSource):
            return source
        if isinstance(source, (bytes, bytearray)) or hasattr(source, "read"):
            return MemorySource(source, chunk_size=chunk_size)
        if isinstance(source, os.PathLike):
            return LocalFileSource(source, chunk_size=chunk_size)
        if not isinstance(source, str):
            raise TypeError(f"Unsupported workbook source: {type(source).__name__}")

        parsed = urlparse(source)

        if parsed.scheme == "s3":
            bucket = parsed.netloc
            key = parsed.path.lstrip("/")
            if not bucket or not key:
                raise ValueError(f"Invalid S3 URI: {source}. Expected: s3://bucket/key")
            return S3Source(
                bucket=bucket,
                key=key,
                chunk_size=chunk_size,
                **{k: v for k, v in options.items() if k == "client"},
            )

        if parsed.scheme in ("http", "https"):
            return HTTPSource(
                url=source,
                chunk_size=chunk_size,
                **{k: v for k, v in options.items() if k in _HTTP_OPTIONS},
            )

        return LocalFileSource(file_path=source, chunk_size=chunk_size)

    @classmethod
    def from_object(
        cls,
        path_or_filelike: Any,
        fmt: WorkbookFormat | str = WorkbookFormat.XLSX,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        **source_options: Any,
    ) -> "Workbook":
        """Open a workbook from any supported source (see ``_create_source``)."""
        return cls(cls._create_source(path_or_filelike, chunk_size, source_options), fmt=fmt)

    @classmethod
    def from_path(
        cls,
        path: str | os.PathLike[str],
        fmt: WorkbookFormat | str = WorkbookFormat.XLSX,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> "Workbook":
        return cls(LocalFileSource(path, chunk_size=chunk_size), fmt=fmt)

    @classmethod
    def from_filelike(
        cls,
        filelike: BinaryIO,
        fmt: WorkbookFormat | str = WorkbookFormat.XLSX,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> "Workbook":
        return cls(MemorySource(filelike, chunk_size=chunk_size), fmt=fmt)

    def __repr__(self) -> str:
        return f"Workbook(format={self.fmt.value}, sheets={self.sheet_names!r})"


def load_workbook(
    path_or_filelike: Any,
    fmt: WorkbookFormat | str = WorkbookFormat.XLSX,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    **source_options: Any,
) -> Workbook:
    """
    Open a workbook from a path, URL, S3 URI, bytes or binary file object.

    Args:
        path_or_filelike: Where to read the workbook from.
        fmt: Container format, ``"xlsx"`` (default) or ``"xlsb"``.
        chunk_size: Chunk size for streaming (default: 16MB).
        **source_options: Passed to the HTTP or S3 source.
    """
    return Workbook.from_object(path_or_filelike, fmt=fmt, chunk_size=chunk_size, **source_options)
