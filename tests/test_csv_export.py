"""Tests for CSV export helpers."""

from collections.abc import Iterator
import datetime
import io
from pathlib import Path
import tempfile

import pytest

from sheetstream.csv_export import rows_from_cells, write_csv
from sheetstream.exceptions import SheetReadError
from sheetstream.values import Cell, RawCell, RawKind


def text(value: str) -> RawCell:
    return RawCell(RawKind.STRING, value)


def test_rows_from_cells_pads_columns_and_gaps() -> None:
    """Test that sparse cells become dense rows."""
    cells = [
        Cell(0, 0, text("a")),
        Cell(0, 2, text("c")),
        Cell(2, 1, RawCell(RawKind.NUMBER, 1.5)),
    ]
    assert list(rows_from_cells(cells)) == [
        ["a", "", "c"],
        [],
        ["", 1.5],
    ]


def test_rows_from_cells_converts_dates() -> None:
    cells = [Cell(0, 0, RawCell(RawKind.NUMBER, 45306.0, "yyyy-mm-dd"))]
    assert list(rows_from_cells(cells)) == [[datetime.date(2024, 1, 15)]]


def test_rows_from_cells_empty() -> None:
    assert list(rows_from_cells([])) == []


def test_write_csv_to_stream() -> None:
    """Test value formatting and quoting."""
    output = io.StringIO()
    count = write_csv(
        [
            ["name", "flag", "when", "note"],
            ["x", True, datetime.date(2024, 1, 15), "a,b"],
            [None, False, datetime.datetime(2024, 1, 15, 6, 30), ""],
        ],
        output,
    )

    assert count == 3
    assert output.getvalue().splitlines() == [
        "name,flag,when,note",
        'x,TRUE,2024-01-15,"a,b"',
        ",FALSE,2024-01-15T06:30:00,",
    ]


def test_write_csv_to_path() -> None:
    with tempfile.NamedTemporaryFile(suffix=".csv", delete=False) as out:
        csv_path = out.name

    try:
        assert write_csv([["A", "B"], [1.0, 2]], csv_path, delimiter=";") == 2
        assert Path(csv_path).read_text().splitlines() == ["A;B", "1.0;2"]
    finally:
        Path(csv_path).unlink()


def test_write_csv_propagates_read_errors() -> None:
    """Test that a sheet failing mid-read is not hidden behind a write error."""

    def failing_rows() -> Iterator[list[str]]:
        yield ["ok"]
        raise SheetReadError("Failed to read sheet 'Data'")

    output = io.StringIO()
    with pytest.raises(SheetReadError):
        write_csv(failing_rows(), output)
    assert output.getvalue() == "ok\r\n"


def test_write_csv_wraps_output_errors() -> None:
    with pytest.raises(OSError, match="Failed to write CSV"):
        write_csv([["a"]], "/nonexistent/dir/out.csv")


def test_rows_from_cells_out_of_range_date() -> None:
    cells = [Cell(0, 0, RawCell(RawKind.NUMBER, 1e9, "yyyy-mm-dd"))]
    rows = list(rows_from_cells(cells))
    assert rows == [[1e9]]

    output = io.StringIO()
    write_csv(rows, output)
    assert output.getvalue() == "1000000000.0\r\n"
