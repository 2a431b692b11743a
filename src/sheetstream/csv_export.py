"""Write sheet rows as CSV."""

from collections.abc import Iterable, Iterator
import csv
import datetime
import logging
import os
from pathlib import Path
from typing import Any, TextIO

from openpyxl.utils.datetime import WINDOWS_EPOCH

from sheetstream.exceptions import SheetstreamError
from sheetstream.values import Cell

logger = logging.getLogger(__name__)


def _sparse_to_dense_row(sparse_row: dict[int, Any]) -> list[Any]:
    """
    Convert a sparse row (col_index -> value) into a dense list.

    Missing columns up to the highest populated one are filled with ``""``.
    """
    if not sparse_row:
        return []

    dense_row: list[Any] = [""] * (max(sparse_row) + 1)
    for col_index, value in sparse_row.items():
        dense_row[col_index] = value
    return dense_row


def rows_from_cells(
    cells: Iterable[Cell],
    epoch: datetime.datetime = WINDOWS_EPOCH,
) -> Iterator[list[Any]]:
    """
    Group a row-ordered cell stream into dense rows of Python values.

    Columns are addressed from column 0. Rows between two populated rows are
    yielded as empty lists; blank rows before the first cell are not.

    Args:
        cells: Cells in document order, e.g. a ``LazySheet``.
        epoch: Calendar origin for date cells.

    Yields:
        list[Any]: One row of native values per sheet row.
    """
    current_row: int | None = None
    sparse_row: dict[int, Any] = {}

    for cell in cells:
        if cell.row != current_row:
            if current_row is not None:
                yield _sparse_to_dense_row(sparse_row)
                for _ in range(cell.row - current_row - 1):
                    yield []
            current_row = cell.row
            sparse_row = {}
        sparse_row[cell.col] = cell.to_cell_value(epoch).to_python(epoch)

    if current_row is not None:
        yield _sparse_to_dense_row(sparse_row)


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def _write_rows(rows: Iterable[Iterable[Any]], stream: TextIO, delimiter: str) -> int:
    writer = csv.writer(stream, delimiter=delimiter, quoting=csv.QUOTE_MINIMAL)
    count = 0
    for row in rows:
        writer.writerow([_format_value(value) for value in row])
        count += 1
        if count % 10000 == 0:
            logger.info("Wrote %d rows", count)
    return count


def write_csv(
    rows: Iterable[Iterable[Any]],
    output: str | os.PathLike[str] | TextIO,
    delimiter: str = ",",
) -> int:
    """
    Write rows to a CSV file path or an open text stream.

    Booleans are written as ``TRUE``/``FALSE``, dates and times in ISO 8601.

    Args:
        rows: Row-major values, e.g. ``MaterializedSheet.to_python()``.
        output: File path or text file object.
        delimiter: Field separator (default: comma).

    Returns:
        int: Number of rows written.

    Raises:
        SheetReadError: If the rows come from a sheet that fails mid-read.
        IOError: If the output cannot be written.
    """
    try:
        if isinstance(output, (str, os.PathLike)):
            with Path(output).open("w", encoding="utf-8", newline="") as f:
                count = _write_rows(rows, f, delimiter)
        else:
            count = _write_rows(rows, output, delimiter)
    except SheetstreamError:
        raise
    except Exception as e:
        logger.exception("Error writing CSV: %s", e)
        raise OSError(f"Failed to write CSV: {e}") from e

    logger.info("CSV export complete: %d rows", count)
    return count
