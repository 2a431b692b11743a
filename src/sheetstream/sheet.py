"""Fully loaded sheets with windowed export."""

import datetime
from itertools import islice
from typing import Any

from openpyxl.utils.datetime import WINDOWS_EPOCH

from sheetstream.dimensions import Dimensions, Position
from sheetstream.grid import Range
from sheetstream.values import CellValue, to_cell_value


class MaterializedSheet:
    """
    A sheet whose cells were all read into memory.

    The backing ``Range`` is never modified; exports that need a different
    window build a new ``Range`` and leave the original untouched.
    """

    def __init__(
        self,
        name: str,
        grid: Range,
        epoch: datetime.datetime = WINDOWS_EPOCH,
    ) -> None:
        """
        Initialize the sheet.

        Args:
            name: Sheet name.
            grid: Backing cells; may be shared with other sheets or views.
            epoch: Calendar origin for date cells (1900 or 1904 system).
        """
        self.name = name
        self.epoch = epoch
        self._grid = grid

    def __repr__(self) -> str:
        return f"MaterializedSheet(name={self.name!r})"

    @property
    def grid(self) -> Range:
        return self._grid

    @property
    def height(self) -> int:
        """Number of rows between the first and last populated row."""
        return self._grid.height

    @property
    def width(self) -> int:
        """Number of columns between the first and last populated column."""
        return self._grid.width

    @property
    def total_height(self) -> int:
        """Rows as addressed from the sheet origin, i.e. ``end.row + 1``."""
        end = self._grid.end
        return end[0] + 1 if end else 0

    @property
    def total_width(self) -> int:
        """Columns as addressed from the sheet origin, i.e. ``end.col + 1``."""
        end = self._grid.end
        return end[1] + 1 if end else 0

    @property
    def start(self) -> Position | None:
        return self._grid.start

    @property
    def end(self) -> Position | None:
        return self._grid.end

    @property
    def dimensions(self) -> Dimensions | None:
        return self._grid.dimensions

    def _window(self, skip_empty_area: bool, nrows: int | None) -> tuple[Range, int]:
        end = self._grid.end
        if nrows is None:
            nrows = end[0] + 1 if end else 0
        elif nrows < 0:
            raise ValueError(f"nrows must not be negative, got {nrows}")

        if end is None or nrows == 0:
            return self._grid, 0

        if skip_empty_area or self._grid.start == (0, 0):
            return self._grid, nrows

        # Re-anchor at the sheet origin so leading blank rows/columns are kept,
        # clipped to the requested row count.
        last_row = end[0] if nrows > end[0] else nrows - 1
        return self._grid.range((0, 0), (last_row, end[1])), nrows

    def export(
        self,
        skip_empty_area: bool = True,
        nrows: int | None = None,
    ) -> list[list[CellValue]]:
        """
        Return the sheet as rows of ``CellValue``.

        Args:
            skip_empty_area: Start at the first populated cell (default). Set
                to False to keep the empty rows and columns before the data so
                that list indexes match sheet coordinates.
            nrows: Maximum number of rows to return (default: ``end.row + 1``).

        Returns:
            list[list[CellValue]]: Row-major cell values.

        Raises:
            ValueError: If ``nrows`` is negative.
        """
        window, nrows = self._window(skip_empty_area, nrows)
        return [
            [to_cell_value(cell, epoch=self.epoch) for cell in row]
            for row in islice(window.rows(), nrows)
        ]

    def to_python(
        self,
        skip_empty_area: bool = True,
        nrows: int | None = None,
    ) -> list[list[Any]]:
        """
        Return the sheet as rows of native Python values.

        Empty cells become ``""``, dates become ``datetime`` objects resolved
        against the workbook epoch, errors become their code string.
        """
        return [
            [value.to_python(self.epoch) for value in row]
            for row in self.export(skip_empty_area=skip_empty_area, nrows=nrows)
        ]
