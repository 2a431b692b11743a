"""Immutable rectangular grid of raw cells."""

from collections.abc import Iterable, Iterator

from sheetstream.dimensions import Dimensions, Position
from sheetstream.values import EMPTY_RAW, RawCell

Row = tuple[RawCell, ...]


class Range:
    """
    A read-only block of raw cells addressed by absolute sheet coordinates.

    Rows are stored as tuples and no method mutates them, so one ``Range`` can
    back any number of sheets or windows at once. Sub-ranges are new objects.
    """

    __slots__ = ("_dimensions", "_rows")

    def __init__(self, dimensions: Dimensions | None, rows: Iterable[Iterable[RawCell]]) -> None:
        """
        Initialize the range.

        Args:
            dimensions: Absolute bounding box, or None for an empty range.
            rows: Dense rows matching ``dimensions`` exactly.

        Raises:
            ValueError: If the rows do not match the bounding box.
        """
        self._dimensions = dimensions
        self._rows: tuple[Row, ...] = tuple(tuple(row) for row in rows)

        expected_height = dimensions.height if dimensions else 0
        if len(self._rows) != expected_height:
            raise ValueError(
                f"Range expects {expected_height} rows, got {len(self._rows)}"
            )
        if dimensions and any(len(row) != dimensions.width for row in self._rows):
            raise ValueError(f"Every row must hold {dimensions.width} cells")

    @classmethod
    def empty(cls) -> "Range":
        return cls(None, ())

    @classmethod
    def from_sparse(cls, cells: Iterable[tuple[int, int, RawCell]]) -> "Range":
        """
        Build the smallest range holding every given ``(row, col, value)``.

        Positions not listed are filled with empty raw cells. A later value for
        the same position replaces an earlier one.
        """
        values: dict[Position, RawCell] = {}
        for row, col, value in cells:
            values[(row, col)] = value
        if not values:
            return cls.empty()

        rows = [pos[0] for pos in values]
        cols = [pos[1] for pos in values]
        dimensions = Dimensions(start=(min(rows), min(cols)), end=(max(rows), max(cols)))

        dense = [
            [EMPTY_RAW] * dimensions.width for _ in range(dimensions.height)
        ]
        for (row, col), value in values.items():
            dense[row - dimensions.start[0]][col - dimensions.start[1]] = value
        return cls(dimensions, dense)

    @property
    def dimensions(self) -> Dimensions | None:
        return self._dimensions

    @property
    def start(self) -> Position | None:
        return self._dimensions.start if self._dimensions else None

    @property
    def end(self) -> Position | None:
        return self._dimensions.end if self._dimensions else None

    @property
    def height(self) -> int:
        return len(self._rows)

    @property
    def width(self) -> int:
        return self._dimensions.width if self._dimensions else 0

    def is_empty(self) -> bool:
        return self._dimensions is None

    def rows(self) -> Iterator[Row]:
        """Iterate rows top to bottom."""
        return iter(self._rows)

    def get(self, row: int, col: int) -> RawCell:
        """Return the cell at an absolute position, empty when outside the range."""
        if self._dimensions is None:
            return EMPTY_RAW
        start, end = self._dimensions.start, self._dimensions.end
        if start[0] <= row <= end[0] and start[1] <= col <= end[1]:
            return self._rows[row - start[0]][col - start[1]]
        return EMPTY_RAW

    def range(self, start: Position, end: Position) -> "Range":
        """
        Return a new range covering exactly ``start``..``end`` (absolute, inclusive).

        Positions outside this range come back as empty cells.
        """
        window = Dimensions(start=start, end=end)
        rows = [
            [self.get(row, col) for col in range(start[1], end[1] + 1)]
            for row in range(start[0], end[0] + 1)
        ]
        return Range(window, rows)

    def __repr__(self) -> str:
        return f"Range(dimensions={self._dimensions!r})"
