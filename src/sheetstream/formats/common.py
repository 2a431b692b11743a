"""Pieces shared by the xlsx and xlsb decoders."""

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
import logging
import posixpath
from typing import Any, Protocol
import xml.etree.ElementTree as ET

from sheetstream.dimensions import Dimensions
from sheetstream.formats.styles import NumberFormats
from sheetstream.values import Cell

logger = logging.getLogger(__name__)


class XlsxNamespaces(Enum):
    """Standard XML namespace URIs used in OOXML packages."""

    MAIN = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
    REL = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
    PACKAGE_REL = "http://schemas.openxmlformats.org/package/2006/relationships"


def local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an element tag."""
    return tag.split("}")[-1] if "}" in tag else tag


@dataclass(frozen=True)
class SheetEntry:
    """A sheet as listed in the workbook part, before classification."""

    name: str
    rel_id: str | None
    state: Any = None


@dataclass
class WorkbookInfo:
    sheets: list[SheetEntry] = field(default_factory=list)
    date1904: bool = False


@dataclass(frozen=True)
class Relationship:
    type: str
    target: str


def parse_relationships(chunks: Iterable[bytes]) -> dict[str, Relationship]:
    """
    Parse a workbook ``.rels`` part into relationship id -> (type, target).

    Both xlsx and xlsb packages store relationships as XML.
    """
    xml_data = b"".join(chunks)
    if not xml_data:
        return {}

    root = ET.fromstring(xml_data)
    relationships: dict[str, Relationship] = {}
    for element in root:
        if local_name(element.tag) != "Relationship":
            continue
        rel_id = element.get("Id")
        if rel_id:
            relationships[rel_id] = Relationship(
                type=element.get("Type", ""), target=element.get("Target", "")
            )
    logger.debug("Parsed %d workbook relationships", len(relationships))
    return relationships


def resolve_part(target: str, base: str = "xl") -> str:
    """
    Turn a relationship target into a path inside the zip archive.

    Targets are either absolute (``/xl/worksheets/sheet1.xml``) or relative to
    the workbook part's folder (``worksheets/sheet1.xml``).
    """
    if target.startswith("/"):
        return posixpath.normpath(target.lstrip("/"))
    return posixpath.normpath(posixpath.join(base, target))


class SupportsCellReading(Protocol):
    """Contract every format-specific streaming cursor fulfils."""

    def next_cell(self) -> Cell | None: ...

    def dimensions(self) -> Dimensions | None: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class FormatDriver:
    """Part names and decoders for one container format."""

    name: str
    workbook_part: str
    relationships_part: str
    shared_strings_part: str
    styles_part: str
    parse_workbook: Callable[[Iterable[bytes]], WorkbookInfo]
    parse_shared_strings: Callable[[Iterable[bytes]], list[str]]
    parse_styles: Callable[[Iterable[bytes]], NumberFormats]
    open_reader: Callable[[Iterator[bytes], Sequence[str], NumberFormats], SupportsCellReading]
