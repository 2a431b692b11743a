"""Helpers for building small xlsx/xlsb packages in tests."""

from collections.abc import Iterator
import io
from pathlib import Path
import struct
import tempfile
from typing import Any
import zipfile

import pytest

MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
REL_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
PACKAGE_REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"

WORKSHEET_REL = f"{REL_NS}/worksheet"
CHARTSHEET_REL = f"{REL_NS}/chartsheet"
DIALOGSHEET_REL = f"{REL_NS}/dialogsheet"
MACROSHEET_REL = "http://schemas.microsoft.com/office/2006/relationships/xlMacrosheet"


def zip_bytes(parts: dict[str, bytes]) -> bytes:
    """Pack ``{member name: content}`` into a deflated zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, content in parts.items():
            zf.writestr(name, content)
    return buffer.getvalue()


def sheet_xml(rows: str, dimension: str | None = None) -> bytes:
    """Wrap ``<row>`` markup in a worksheet document."""
    dim = f'<dimension ref="{dimension}"/>' if dimension else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">{dim}'
        f"<sheetData>{rows}</sheetData></worksheet>"
    ).encode()


def build_xlsx(
    sheets: list[dict[str, Any]],
    shared_strings: list[str] | None = None,
    styles: bytes | None = None,
    date1904: bool = False,
) -> bytes:
    """
    Build an xlsx package.

    Each sheet dict takes ``name``, ``xml`` and optionally ``state``,
    ``rel_type`` and ``target`` (relative to ``xl/``).
    """
    sheet_elements = []
    relationships = []
    parts: dict[str, bytes] = {}
    for index, sheet in enumerate(sheets, 1):
        state = f' state="{sheet["state"]}"' if sheet.get("state") else ""
        sheet_elements.append(
            f'<sheet name="{sheet["name"]}" sheetId="{index}" r:id="rId{index}"{state}/>'
        )
        target = sheet.get("target", f"worksheets/sheet{index}.xml")
        relationships.append(
            f'<Relationship Id="rId{index}" '
            f'Type="{sheet.get("rel_type", WORKSHEET_REL)}" Target="{target}"/>'
        )
        parts[f"xl/{target}"] = sheet["xml"]

    workbook_pr = '<workbookPr date1904="1"/>' if date1904 else "<workbookPr/>"
    parts["xl/workbook.xml"] = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<workbook xmlns="{MAIN_NS}" xmlns:r="{REL_NS}">{workbook_pr}'
        f'<sheets>{"".join(sheet_elements)}</sheets></workbook>'
    ).encode()
    parts["xl/_rels/workbook.xml.rels"] = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<Relationships xmlns="{PACKAGE_REL_NS}">{"".join(relationships)}</Relationships>'
    ).encode()

    if shared_strings is not None:
        items = "".join(f"<si><t>{text}</t></si>" for text in shared_strings)
        parts["xl/sharedStrings.xml"] = (
            f'<?xml version="1.0" encoding="UTF-8"?>'
            f'<sst xmlns="{MAIN_NS}" count="{len(shared_strings)}">{items}</sst>'
        ).encode()
    if styles is not None:
        parts["xl/styles.xml"] = styles

    return zip_bytes(parts)


def styles_xml(cell_formats: list[int], custom: dict[int, str] | None = None) -> bytes:
    """Build a styles part whose cellXfs use the given number-format ids."""
    num_fmts = ""
    if custom:
        entries = "".join(
            f'<numFmt numFmtId="{format_id}" formatCode="{code}"/>'
            for format_id, code in custom.items()
        )
        num_fmts = f"<numFmts>{entries}</numFmts>"
    xfs = "".join(f'<xf numFmtId="{format_id}" fontId="0"/>' for format_id in cell_formats)
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<styleSheet xmlns="{MAIN_NS}">{num_fmts}<cellXfs>{xfs}</cellXfs></styleSheet>'
    ).encode()


# --- xlsb -----------------------------------------------------------------


def record(record_type: int, payload: bytes = b"") -> bytes:
    """Encode one BIFF12 record (varint type and size, then payload)."""
    header = bytearray()
    if record_type < 0x80:
        header.append(record_type)
    else:
        header.append((record_type & 0x7F) | 0x80)
        header.append(record_type >> 7)

    size = len(payload)
    while True:
        byte = size & 0x7F
        size >>= 7
        if size:
            header.append(byte | 0x80)
        else:
            header.append(byte)
            break
    return bytes(header) + payload


def wide(text: str) -> bytes:
    """Encode an XLWideString."""
    return struct.pack("<I", len(text)) + text.encode("utf-16-le")


def cell(col: int, style: int = 0) -> bytes:
    return struct.pack("<II", col, style)


def xlsb_sheet(
    rows: list[tuple[int, list[bytes]]],
    dimension: tuple[int, int, int, int] | None = None,
    terminate: bool = True,
) -> bytes:
    """Build a worksheet ``.bin`` part from ``(row, [cell records])`` pairs."""
    data = record(129)
    if dimension is not None:
        data += record(148, struct.pack("<IIII", *dimension))
    data += record(145)
    for row_index, cells in rows:
        data += record(0, struct.pack("<I", row_index) + b"\x00" * 13)
        data += b"".join(cells)
    if terminate:
        data += record(146) + record(130)
    return data


def build_xlsb(
    sheets: list[dict[str, Any]],
    shared_strings: list[str] | None = None,
    cell_formats: list[int] | None = None,
    custom_formats: dict[int, str] | None = None,
    date1904: bool = False,
) -> bytes:
    """Build an xlsb package; sheet dicts take ``name``, ``data``, ``state``, ``rel_type``."""
    parts: dict[str, bytes] = {}
    workbook = record(131) + record(153, struct.pack("<I", 1 if date1904 else 0) + b"\x00" * 8)
    workbook += record(143)
    relationships = []
    for index, sheet in enumerate(sheets, 1):
        rel_id = f"rId{index}"
        workbook += record(
            156,
            struct.pack("<II", sheet.get("state", 0), index) + wide(rel_id) + wide(sheet["name"]),
        )
        target = f"worksheets/sheet{index}.bin"
        relationships.append(
            f'<Relationship Id="{rel_id}" '
            f'Type="{sheet.get("rel_type", WORKSHEET_REL)}" Target="{target}"/>'
        )
        parts[f"xl/{target}"] = sheet["data"]
    workbook += record(144) + record(132)

    parts["xl/workbook.bin"] = workbook
    parts["xl/_rels/workbook.bin.rels"] = (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<Relationships xmlns="{PACKAGE_REL_NS}">{"".join(relationships)}</Relationships>'
    ).encode()

    if shared_strings is not None:
        sst = record(159, struct.pack("<II", len(shared_strings), len(shared_strings)))
        sst += b"".join(record(19, b"\x00" + wide(text)) for text in shared_strings)
        sst += record(160)
        parts["xl/sharedStrings.bin"] = sst

    if cell_formats is not None:
        styles = record(278)
        for format_id, code in (custom_formats or {}).items():
            styles += record(44, struct.pack("<H", format_id) + wide(code))
        styles += record(617, struct.pack("<I", len(cell_formats)))
        for format_id in cell_formats:
            styles += record(47, struct.pack("<HH", 0xFFFF, format_id) + b"\x00" * 12)
        styles += record(618) + record(279)
        parts["xl/styles.bin"] = styles

    return zip_bytes(parts)


def chunked(data: bytes, size: int) -> Iterator[bytes]:
    for offset in range(0, len(data), size):
        yield data[offset : offset + size]


@pytest.fixture
def tmp_xlsx_path() -> Iterator[str]:
    """Path of a temporary ``.xlsx`` file, removed afterwards."""
    with tempfile.NamedTemporaryFile(suffix=".xlsx", delete=False) as tmp:
        path = tmp.name
    try:
        yield path
    finally:
        Path(path).unlink(missing_ok=True)
