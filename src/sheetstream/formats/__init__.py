"""Format-specific decoders for the zip-based workbook containers."""

from sheetstream.formats.common import FormatDriver
from sheetstream.formats.xlsb import XLSB_DRIVER, XlsbCellReader
from sheetstream.formats.xlsx import XLSX_DRIVER, XlsxCellReader

__all__ = [
    "XLSB_DRIVER",
    "XLSX_DRIVER",
    "FormatDriver",
    "XlsbCellReader",
    "XlsxCellReader",
]
