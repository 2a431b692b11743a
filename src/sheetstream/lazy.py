"""Single-pass streaming access to one sheet's cells."""

import datetime
from enum import Enum
import logging
import threading
from types import TracebackType
from typing import Union

from openpyxl.utils.datetime import WINDOWS_EPOCH

from sheetstream.dimensions import Dimensions
from sheetstream.exceptions import SheetReadError
from sheetstream.formats.xlsb import XlsbCellReader
from sheetstream.formats.xlsx import XlsxCellReader
from sheetstream.values import Cell

logger = logging.getLogger(__name__)

# Every supported streaming cursor; a new container format adds one member here.
CellReader = Union[XlsxCellReader, XlsbCellReader]


class CursorState(Enum):
    """Lifecycle of a lazy sheet; transitions only ever leave ACTIVE."""

    ACTIVE = "active"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class LazySheet:
    """
    Forward-only iterator over the cells of one sheet.

    Cells come back in document order (rows never go backwards). The sheet can
    be read once: after the end of data, a read failure, or ``close()``, every
    further call returns None (or stops iteration) without touching the
    underlying reader again.

    A LazySheet holds mutable cursor state and is bound to the thread that
    created it. Open one per sheet per thread to read in parallel.
    """

    def __init__(
        self,
        name: str,
        reader: CellReader,
        epoch: datetime.datetime = WINDOWS_EPOCH,
    ) -> None:
        """
        Initialize the lazy sheet.

        Args:
            name: Sheet name.
            reader: Format-specific cursor positioned at the sheet's first cell.
            epoch: Calendar origin for date cells (1900 or 1904 system).
        """
        self.name = name
        self.epoch = epoch
        self._reader = reader
        self._state = CursorState.ACTIVE
        self._owner = threading.get_ident()
        self._cells_read = 0

    def __repr__(self) -> str:
        return f"LazySheet(name={self.name!r}, state={self._state.value})"

    def _check_owner(self) -> None:
        if threading.get_ident() != self._owner:
            raise RuntimeError(
                f"LazySheet {self.name!r} was opened in another thread; open a new one instead"
            )

    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def exhausted(self) -> bool:
        """True once no further cells will be produced."""
        return self._state is not CursorState.ACTIVE

    @property
    def failed(self) -> bool:
        """True when reading stopped because of a read error."""
        return self._state is CursorState.FAILED

    def _finish(self, state: CursorState) -> None:
        self._state = state
        self._reader.close()

    def next_cell(self) -> Cell | None:
        """
        Return the next cell, or None at the end of the sheet data.

        Returns:
            Cell | None: ``(row, col, value)`` with the raw decoded value.

        Raises:
            SheetReadError: If the underlying reader fails. The sheet is then
                exhausted; call sites must treat the cells already received
                as a truncated result.
            RuntimeError: If called from a thread other than the creating one.
        """
        self._check_owner()
        if self._state is not CursorState.ACTIVE:
            return None

        try:
            cell = self._reader.next_cell()
        except Exception as e:
            self._finish(CursorState.FAILED)
            logger.exception(
                "Error reading sheet %s after %d cells: %s", self.name, self._cells_read, e
            )
            raise SheetReadError(f"Failed to read sheet {self.name!r}: {e}") from e

        if cell is None:
            self._finish(CursorState.EXHAUSTED)
            logger.debug("Sheet %s exhausted after %d cells", self.name, self._cells_read)
            return None

        self._cells_read += 1
        return cell

    def __iter__(self) -> "LazySheet":
        return self

    def __next__(self) -> Cell:
        cell = self.next_cell()
        if cell is None:
            raise StopIteration
        return cell

    def dimensions(self) -> Dimensions | None:
        """
        Best-known bounding box.

        Exact when the sheet declares its dimensions up front; otherwise the
        box of the cells read so far, which can grow until the sheet is
        exhausted. None when nothing is known yet.
        """
        self._check_owner()
        return self._reader.dimensions()

    def close(self) -> None:
        """Stop reading and release the underlying stream."""
        self._check_owner()
        if self._state is CursorState.ACTIVE:
            self._finish(CursorState.EXHAUSTED)

    def __enter__(self) -> "LazySheet":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
