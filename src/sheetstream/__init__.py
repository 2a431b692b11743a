"""sheetstream: streaming reader for xlsx and xlsb workbooks from S3, HTTP, and local files."""

from sheetstream.dimensions import Dimensions
from sheetstream.exceptions import (
    CellConversionError,
    SheetReadError,
    SheetstreamError,
    UnknownSheetKindError,
    UnknownVisibilityError,
    WorkbookError,
    WorksheetNotFound,
)
from sheetstream.grid import Range
from sheetstream.lazy import CursorState, LazySheet
from sheetstream.metadata import SheetMetadata, SheetTypeEnum, SheetVisibleEnum
from sheetstream.sheet import MaterializedSheet
from sheetstream.values import (
    EMPTY,
    Boolean,
    Cell,
    CellError,
    CellValue,
    DateTime,
    Duration,
    Empty,
    Float,
    Integer,
    RawCell,
    RawKind,
    TemporalKind,
    Text,
    to_cell_value,
)
from sheetstream.workbook import Workbook, WorkbookFormat, load_workbook

__all__ = [
    "EMPTY",
    "Boolean",
    "Cell",
    "CellConversionError",
    "CellError",
    "CellValue",
    "CursorState",
    "DateTime",
    "Dimensions",
    "Duration",
    "Empty",
    "Float",
    "Integer",
    "LazySheet",
    "MaterializedSheet",
    "Range",
    "RawCell",
    "RawKind",
    "SheetMetadata",
    "SheetReadError",
    "SheetTypeEnum",
    "SheetVisibleEnum",
    "SheetstreamError",
    "TemporalKind",
    "Text",
    "UnknownSheetKindError",
    "UnknownVisibilityError",
    "Workbook",
    "WorkbookError",
    "WorkbookFormat",
    "WorksheetNotFound",
    "load_workbook",
    "to_cell_value",
]
