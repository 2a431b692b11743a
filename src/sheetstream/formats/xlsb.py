"""Streaming decoder for binary workbooks (xlsb, BIFF12 records)."""

from collections.abc import Iterable, Iterator, Sequence
from enum import IntEnum
import logging
import struct

from sheetstream.dimensions import BoundsTracker, Dimensions
from sheetstream.formats.chunks import ChunkBuffer
from sheetstream.formats.common import FormatDriver, SheetEntry, WorkbookInfo
from sheetstream.formats.styles import NumberFormats
from sheetstream.values import Cell, RawCell, RawKind

logger = logging.getLogger(__name__)


class XlsbRecord(IntEnum):
    """BIFF12 record types this decoder understands."""

    ROW_HDR = 0
    CELL_BLANK = 1
    CELL_RK = 2
    CELL_ERROR = 3
    CELL_BOOL = 4
    CELL_REAL = 5
    CELL_ST = 6
    CELL_ISST = 7
    FMLA_STRING = 8
    FMLA_NUM = 9
    FMLA_BOOL = 10
    FMLA_ERROR = 11
    SST_ITEM = 19
    FMT = 44
    XF = 47
    BEGIN_SHEET = 129
    END_SHEET = 130
    BEGIN_SHEET_DATA = 145
    END_SHEET_DATA = 146
    WS_DIM = 148
    WB_PROP = 153
    BUNDLE_SH = 156
    BEGIN_CELL_XFS = 617
    END_CELL_XFS = 618


# BErr values
ERROR_CODES = {
    0x00: "#NULL!",
    0x07: "#DIV/0!",
    0x0F: "#VALUE!",
    0x17: "#REF!",
    0x1D: "#NAME?",
    0x24: "#NUM!",
    0x2A: "#N/A",
    0x2B: "#GETTING_DATA",
}

_NULL_STRING_LENGTH = 0xFFFFFFFF


class XlsbFormatError(ValueError):
    """The binary record stream is malformed or ends early."""


def read_record(buffer: ChunkBuffer) -> tuple[int, bytes] | None:
    """
    Read one record header and payload.

    The type is a 7-bit varint of at most two bytes, the size one of at most
    four bytes.

    Returns:
        ``(record_type, payload)``, or None at a clean end of stream.

    Raises:
        EOFError: If the stream ends inside a record.
    """
    first = buffer.read(1)
    if not first:
        return None

    record_type = first[0] & 0x7F
    if first[0] & 0x80:
        record_type |= (buffer.read_exact(1)[0] & 0x7F) << 7

    size = 0
    for shift in (0, 7, 14, 21):
        byte = buffer.read_exact(1)[0]
        size |= (byte & 0x7F) << shift
        if not byte & 0x80:
            break

    return record_type, buffer.read_exact(size)


def iter_records(chunks: Iterable[bytes]) -> Iterator[tuple[int, bytes]]:
    """Yield every record of a whole part."""
    buffer = ChunkBuffer(iter(chunks))
    while True:
        record = read_record(buffer)
        if record is None:
            return
        yield record


def read_wide_string(data: bytes, offset: int) -> tuple[str, int]:
    """Decode an XLWideString (uint32 character count + UTF-16LE) at ``offset``."""
    text, offset = read_nullable_wide_string(data, offset)
    if text is None:
        raise XlsbFormatError(f"Unexpected null string at offset {offset}")
    return text, offset


def read_nullable_wide_string(data: bytes, offset: int) -> tuple[str | None, int]:
    (length,) = struct.unpack_from("<I", data, offset)
    offset += 4
    if length == _NULL_STRING_LENGTH:
        return None, offset
    end = offset + 2 * length
    if end > len(data):
        raise XlsbFormatError(f"String of {length} characters overruns its record")
    return data[offset:end].decode("utf-16-le"), end


def decode_rk(rk: int) -> tuple[int | float, bool]:
    """
    Decode an RkNumber.

    Returns:
        ``(value, integral)`` where ``integral`` is True only for values stored
        as integers without the divide-by-100 flag.
    """
    divide = rk & 0x01
    if rk & 0x02:
        signed = rk - (1 << 32) if rk & 0x80000000 else rk
        number = signed >> 2
        if divide:
            return number / 100, False
        return number, True

    (value,) = struct.unpack("<d", struct.pack("<Q", (rk & 0xFFFFFFFC) << 32))
    if divide:
        value /= 100
    return value, False


def parse_workbook(chunks: Iterable[bytes]) -> WorkbookInfo:
    """Parse ``xl/workbook.bin`` into the ordered sheet list and calendar flag."""
    info = WorkbookInfo()
    for record_type, payload in iter_records(chunks):
        if record_type == XlsbRecord.WB_PROP:
            (flags,) = struct.unpack_from("<I", payload, 0)
            info.date1904 = bool(flags & 0x01)
        elif record_type == XlsbRecord.BUNDLE_SH:
            state, _tab_id = struct.unpack_from("<II", payload, 0)
            rel_id, offset = read_nullable_wide_string(payload, 8)
            name, _ = read_wide_string(payload, offset)
            info.sheets.append(SheetEntry(name=name, rel_id=rel_id, state=state))

    logger.debug("Parsed workbook: %d sheets, date1904=%s", len(info.sheets), info.date1904)
    return info


def parse_shared_strings(chunks: Iterable[bytes]) -> list[str]:
    """Stream-parse ``xl/sharedStrings.bin``; rich-text runs are flattened."""
    shared_strings: list[str] = []
    for record_type, payload in iter_records(chunks):
        if record_type == XlsbRecord.SST_ITEM:
            # RichStr: one flags byte, then the plain text
            text, _ = read_wide_string(payload, 1)
            shared_strings.append(text)

    logger.debug("Parsed %d shared strings", len(shared_strings))
    return shared_strings


def parse_styles(chunks: Iterable[bytes]) -> NumberFormats:
    """Parse ``xl/styles.bin`` into the cell-style -> number-format table."""
    custom: dict[int, str] = {}
    cell_formats: list[int] = []
    in_cell_xfs = False
    for record_type, payload in iter_records(chunks):
        if record_type == XlsbRecord.FMT:
            (format_id,) = struct.unpack_from("<H", payload, 0)
            custom[format_id], _ = read_wide_string(payload, 2)
        elif record_type == XlsbRecord.BEGIN_CELL_XFS:
            in_cell_xfs = True
        elif record_type == XlsbRecord.END_CELL_XFS:
            in_cell_xfs = False
        elif record_type == XlsbRecord.XF and in_cell_xfs:
            _parent, format_id = struct.unpack_from("<HH", payload, 0)
            cell_formats.append(format_id)

    logger.debug("Parsed styles: %d custom formats, %d cell styles", len(custom), len(cell_formats))
    return NumberFormats(custom=custom, cell_formats=cell_formats)


_CELL_RECORDS = frozenset(
    {
        XlsbRecord.CELL_BLANK,
        XlsbRecord.CELL_RK,
        XlsbRecord.CELL_ERROR,
        XlsbRecord.CELL_BOOL,
        XlsbRecord.CELL_REAL,
        XlsbRecord.CELL_ST,
        XlsbRecord.CELL_ISST,
        XlsbRecord.FMLA_STRING,
        XlsbRecord.FMLA_NUM,
        XlsbRecord.FMLA_BOOL,
        XlsbRecord.FMLA_ERROR,
    }
)


class XlsbCellReader:
    """
    Forward-only cell cursor over one worksheet ``.bin`` part.

    Records are read one at a time from the decompressed chunks. Opening the
    reader consumes records up to ``BrtBeginSheetData`` so that a declared
    ``BrtWsDim`` is known before the first cell is requested.
    """

    def __init__(
        self,
        chunks: Iterator[bytes],
        shared_strings: Sequence[str],
        formats: NumberFormats,
    ) -> None:
        self._buffer = ChunkBuffer(chunks)
        self._shared_strings = shared_strings
        self._formats = formats
        self._declared: Dimensions | None = None
        self._bounds = BoundsTracker()
        self._row = 0
        self._done = False

        while not self._done:
            record_type, payload = self._read()
            if record_type == XlsbRecord.WS_DIM:
                first_row, last_row, first_col, last_col = struct.unpack_from("<IIII", payload, 0)
                self._declared = Dimensions(start=(first_row, first_col), end=(last_row, last_col))
            elif record_type == XlsbRecord.BEGIN_SHEET_DATA:
                break
            elif record_type == XlsbRecord.END_SHEET:
                # Sheets without cell data (chart sheets) end here
                self._done = True

    def _read(self) -> tuple[int, bytes]:
        record = read_record(self._buffer)
        if record is None:
            raise XlsbFormatError("Worksheet stream ended before the end of its sheet data")
        return record

    def next_cell(self) -> Cell | None:
        """
        Return the next cell in document order, or None once the sheet data ends.

        Raises:
            XlsbFormatError: If the stream ends before ``BrtEndSheetData`` or a
                record is too short for its type.
            EOFError: If the stream ends inside a record.
        """
        while not self._done:
            record_type, payload = self._read()
            if record_type == XlsbRecord.END_SHEET_DATA:
                self._done = True
            elif record_type == XlsbRecord.ROW_HDR or record_type in _CELL_RECORDS:
                cell = self._decode_record(record_type, payload)
                if cell is not None:
                    self._bounds.observe(cell.row, cell.col)
                    return cell
        return None

    def _decode_record(self, record_type: int, payload: bytes) -> Cell | None:
        try:
            if record_type == XlsbRecord.ROW_HDR:
                (self._row,) = struct.unpack_from("<I", payload, 0)
                return None
            return self._decode_cell(record_type, payload)
        except (struct.error, IndexError) as e:
            raise XlsbFormatError(
                f"Record {record_type} after row {self._row} is too short ({len(payload)} bytes)"
            ) from e

    def _decode_cell(self, record_type: int, payload: bytes) -> Cell | None:
        col, style_and_flags = struct.unpack_from("<II", payload, 0)
        number_format = self._formats.format_for(style_and_flags & 0xFFFFFF)

        if record_type == XlsbRecord.CELL_BLANK:
            return None
        if record_type == XlsbRecord.CELL_RK:
            (rk,) = struct.unpack_from("<I", payload, 8)
            number, integral = decode_rk(rk)
            kind = RawKind.INTEGER if integral else RawKind.NUMBER
            raw = RawCell(kind, number, number_format)
        elif record_type in (XlsbRecord.CELL_REAL, XlsbRecord.FMLA_NUM):
            (value,) = struct.unpack_from("<d", payload, 8)
            raw = RawCell(RawKind.NUMBER, value, number_format)
        elif record_type in (XlsbRecord.CELL_BOOL, XlsbRecord.FMLA_BOOL):
            raw = RawCell(RawKind.BOOLEAN, payload[8] != 0)
        elif record_type in (XlsbRecord.CELL_ERROR, XlsbRecord.FMLA_ERROR):
            code = ERROR_CODES.get(payload[8])
            if code is None:
                logger.debug("Unknown error code 0x%02x at (%d, %d)", payload[8], self._row, col)
                return None
            raw = RawCell(RawKind.ERROR, code)
        elif record_type in (XlsbRecord.CELL_ST, XlsbRecord.FMLA_STRING):
            text, _ = read_wide_string(payload, 8)
            raw = RawCell(RawKind.STRING, text)
        else:
            (index,) = struct.unpack_from("<I", payload, 8)
            if index >= len(self._shared_strings):
                logger.debug("Shared string index %d out of range", index)
                return None
            raw = RawCell(RawKind.STRING, self._shared_strings[index])

        return Cell(self._row, col, raw)

    def dimensions(self) -> Dimensions | None:
        """Declared ``BrtWsDim`` if present, else the bounds seen so far."""
        if self._declared is not None:
            return self._declared
        return self._bounds.dimensions

    def close(self) -> None:
        self._done = True
        self._buffer.close()


XLSB_DRIVER = FormatDriver(
    name="xlsb",
    workbook_part="xl/workbook.bin",
    relationships_part="xl/_rels/workbook.bin.rels",
    shared_strings_part="xl/sharedStrings.bin",
    styles_part="xl/styles.bin",
    parse_workbook=parse_workbook,
    parse_shared_strings=parse_shared_strings,
    parse_styles=parse_styles,
    open_reader=XlsbCellReader,
)
