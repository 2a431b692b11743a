"""Streaming decoder for xlsx-family (SpreadsheetML) packages."""

from collections import deque
from collections.abc import Iterable, Iterator, Sequence
import logging
import xml.etree.ElementTree as ET

from sheetstream.dimensions import BoundsTracker, Dimensions, split_address
from sheetstream.formats.common import (
    FormatDriver,
    SheetEntry,
    WorkbookInfo,
    XlsxNamespaces,
    local_name,
)
from sheetstream.formats.styles import NumberFormats
from sheetstream.values import Cell, RawCell, RawKind

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true"}
_FALSE_VALUES = {"0", "false"}


def parse_workbook(chunks: Iterable[bytes]) -> WorkbookInfo:
    """
    Parse ``xl/workbook.xml`` into the ordered sheet list and calendar flag.

    Raises:
        xml.etree.ElementTree.ParseError: If the part is not well-formed XML.
    """
    xml_data = b"".join(chunks)
    info = WorkbookInfo()
    if not xml_data:
        return info

    root = ET.fromstring(xml_data)
    rel_namespace = XlsxNamespaces.REL.value

    for element in root:
        tag = local_name(element.tag)
        if tag == "workbookPr":
            info.date1904 = element.get("date1904", "0").lower() in _TRUE_VALUES
        elif tag == "sheets":
            for sheet_element in element:
                if local_name(sheet_element.tag) != "sheet":
                    continue
                # r:id lives in the relationships namespace; strict files use a
                # different URI, so fall back to any attribute named "id".
                rel_id = sheet_element.get(f"{{{rel_namespace}}}id")
                if rel_id is None:
                    rel_id = next(
                        (v for k, v in sheet_element.attrib.items() if local_name(k) == "id"),
                        None,
                    )
                info.sheets.append(
                    SheetEntry(
                        name=sheet_element.get("name", ""),
                        rel_id=rel_id,
                        state=sheet_element.get("state"),
                    )
                )

    logger.debug(
        "Parsed workbook: %d sheets, date1904=%s",
        len(info.sheets),
        info.date1904,
    )
    return info


def parse_shared_strings(chunk_iter: Iterable[bytes]) -> list[str]:
    """
    Stream-parse ``xl/sharedStrings.xml`` from an iterator of byte chunks.

    Each ``<si>`` becomes one string: plain ``<t>`` text or the concatenated
    rich-text runs, without phonetic (``<rPh>``) annotations.
    """
    shared_strings: list[str] = []
    parser = ET.XMLPullParser(events=("end",))

    def drain() -> None:
        for _, elem in parser.read_events():
            if local_name(elem.tag) == "si":
                shared_strings.append(_collect_text(elem))
                elem.clear()

    for chunk in chunk_iter:
        parser.feed(chunk)
        drain()
    parser.close()
    drain()

    logger.debug("Parsed %d shared strings", len(shared_strings))
    return shared_strings


def _collect_text(elem: ET.Element) -> str:
    parts: list[str] = []
    for child in elem:
        tag = local_name(child.tag)
        if tag == "t":
            parts.append(child.text or "")
        elif tag == "r":
            parts.extend(t.text or "" for t in child if local_name(t.tag) == "t")
    return "".join(parts)


def parse_styles(chunks: Iterable[bytes]) -> NumberFormats:
    """Parse ``xl/styles.xml`` into the cell-style -> number-format table."""
    xml_data = b"".join(chunks)
    if not xml_data:
        return NumberFormats()

    root = ET.fromstring(xml_data)
    custom: dict[int, str] = {}
    cell_formats: list[int] = []
    for element in root:
        tag = local_name(element.tag)
        if tag == "numFmts":
            for fmt in element:
                format_id = fmt.get("numFmtId")
                if format_id is not None and format_id.isdigit():
                    custom[int(format_id)] = fmt.get("formatCode", "")
        elif tag == "cellXfs":
            for xf in element:
                format_id = xf.get("numFmtId", "0")
                cell_formats.append(int(format_id) if format_id.isdigit() else 0)

    logger.debug("Parsed styles: %d custom formats, %d cell styles", len(custom), len(cell_formats))
    return NumberFormats(custom=custom, cell_formats=cell_formats)


class XlsxCellReader:
    """
    Forward-only cell cursor over one worksheet XML part.

    Decompressed chunks are fed to an ``XMLPullParser`` on demand, so only the
    cells of the current chunk are held in memory. Opening the reader consumes
    the sheet header up to ``<sheetData>`` so that a declared ``<dimension>``
    is known before the first cell is requested.

    A parse error inside the sheet data is held back until every cell decoded
    before it has been handed out.
    """

    def __init__(
        self,
        chunks: Iterator[bytes],
        shared_strings: Sequence[str],
        formats: NumberFormats,
    ) -> None:
        self._chunks = chunks
        self._shared_strings = shared_strings
        self._formats = formats
        self._parser = ET.XMLPullParser(events=("start", "end"))
        self._pending: deque[Cell] = deque()
        self._declared: Dimensions | None = None
        self._bounds = BoundsTracker()
        self._in_sheet_data = False
        self._done = False
        self._error: ET.ParseError | None = None

        self._row = -1
        self._col = -1
        self._cell_type = "n"
        self._cell_style = 0
        self._value: str | None = None
        self._inline_parts: list[str] | None = None
        self._in_inline = False
        self._in_phonetic = False

        while not self._in_sheet_data and not self._done:
            self._feed()
        if self._error is not None and not self._in_sheet_data:
            raise self._error

    def _feed(self) -> None:
        try:
            chunk = next(self._chunks)
        except StopIteration:
            try:
                # Raises ParseError if the document stopped before its root closed
                self._parser.close()
            except ET.ParseError as e:
                self._error = e
            self._drain_events()
            self._done = True
            return
        self._parser.feed(chunk)
        self._drain_events()

    def _drain_events(self) -> None:
        try:
            for event, elem in self._parser.read_events():
                tag = local_name(elem.tag)
                if event == "start":
                    self._on_start(tag, elem)
                else:
                    self._on_end(tag, elem)
                if self._done:
                    break
        except ET.ParseError as e:
            # read_events yields the good events before raising the queued error
            self._error = e
            self._done = True

    def _on_start(self, tag: str, elem: ET.Element) -> None:
        if tag == "c":
            address = elem.get("r")
            if address:
                self._row, self._col = split_address(address)
            else:
                self._col += 1
            self._cell_type = elem.get("t", "n")
            style = elem.get("s", "0")
            self._cell_style = int(style) if style.isdigit() else 0
            self._value = None
            self._inline_parts = None
        elif tag == "row":
            number = elem.get("r")
            self._row = int(number) - 1 if number else self._row + 1
            self._col = -1
        elif tag == "is":
            self._in_inline = True
            self._inline_parts = []
        elif tag == "rPh":
            self._in_phonetic = True
        elif tag == "sheetData":
            self._in_sheet_data = True
        elif tag == "dimension":
            ref = elem.get("ref")
            if ref:
                try:
                    self._declared = Dimensions.from_ref(ref)
                except ValueError:
                    logger.debug("Ignoring unreadable dimension ref %r", ref)

    def _on_end(self, tag: str, elem: ET.Element) -> None:
        if tag == "v":
            self._value = elem.text or ""
        elif tag == "t":
            if self._in_inline and not self._in_phonetic and self._inline_parts is not None:
                self._inline_parts.append(elem.text or "")
        elif tag == "rPh":
            self._in_phonetic = False
        elif tag == "is":
            self._in_inline = False
        elif tag == "c":
            raw = self._raw_value()
            if raw is not None:
                self._pending.append(Cell(self._row, self._col, raw))
            elem.clear()
        elif tag == "row":
            elem.clear()
        elif tag == "sheetData":
            self._done = True

    def _raw_value(self) -> RawCell | None:
        """Decode the current ``<c>``; None when it holds no value or an unreadable one."""
        cell_type = self._cell_type
        value = self._value

        if cell_type == "inlineStr" and self._inline_parts is not None:
            return RawCell(RawKind.STRING, "".join(self._inline_parts))
        if value is None:
            return None

        if cell_type == "n":
            number_format = self._formats.format_for(self._cell_style)
            try:
                return RawCell(RawKind.NUMBER, float(value), number_format)
            except ValueError:
                return RawCell(RawKind.NUMBER, value, number_format)
        if cell_type == "s":
            try:
                return RawCell(RawKind.STRING, self._shared_strings[int(value)])
            except (ValueError, IndexError):
                logger.debug("Shared string index %r out of range", value)
                return None
        if cell_type in ("str", "inlineStr"):
            return RawCell(RawKind.STRING, value)
        if cell_type == "b":
            flag = value.strip().lower()
            if flag in _TRUE_VALUES:
                return RawCell(RawKind.BOOLEAN, True)
            if flag in _FALSE_VALUES:
                return RawCell(RawKind.BOOLEAN, False)
            return RawCell(RawKind.BOOLEAN, value)
        if cell_type == "e":
            return RawCell(RawKind.ERROR, value)
        if cell_type == "d":
            return RawCell(RawKind.DATE_ISO, value)

        logger.debug("Unknown cell type %r at (%d, %d)", cell_type, self._row, self._col)
        return None

    def next_cell(self) -> Cell | None:
        """
        Return the next cell in document order, or None once the sheet data ends.

        Raises:
            xml.etree.ElementTree.ParseError: If the XML is malformed or truncated.
        """
        while not self._pending:
            if self._error is not None:
                raise self._error
            if self._done:
                return None
            self._feed()
        cell = self._pending.popleft()
        self._bounds.observe(cell.row, cell.col)
        return cell

    def dimensions(self) -> Dimensions | None:
        """Declared ``<dimension>`` if present, else the bounds of the cells returned so far."""
        if self._declared is not None:
            return self._declared
        return self._bounds.dimensions

    def close(self) -> None:
        self._done = True
        self._pending.clear()
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()


XLSX_DRIVER = FormatDriver(
    name="xlsx",
    workbook_part="xl/workbook.xml",
    relationships_part="xl/_rels/workbook.xml.rels",
    shared_strings_part="xl/sharedStrings.xml",
    styles_part="xl/styles.xml",
    parse_workbook=parse_workbook,
    parse_shared_strings=parse_shared_strings,
    parse_styles=parse_styles,
    open_reader=XlsxCellReader,
)
