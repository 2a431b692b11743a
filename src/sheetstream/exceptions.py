"""Exception hierarchy for sheetstream."""


class SheetstreamError(Exception):
    """Base class for all sheetstream errors."""


class UnknownSheetKindError(SheetstreamError, ValueError):
    """A sheet classification reported by the workbook is not recognised."""


class UnknownVisibilityError(SheetstreamError, ValueError):
    """A sheet visibility flag reported by the workbook is not recognised."""


class CellConversionError(SheetstreamError, ValueError):
    """A raw cell could not be converted (raised only in strict mode)."""


class WorksheetNotFound(SheetstreamError, KeyError):
    """The requested sheet name or index does not exist in the workbook."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the message readable
        return str(self.args[0]) if self.args else ""


class WorkbookError(SheetstreamError, OSError):
    """The workbook parts could not be read."""


class SheetReadError(SheetstreamError, OSError):
    """Reading a sheet's cells failed part way through."""
