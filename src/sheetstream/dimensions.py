"""Sheet bounding boxes and A1-style address helpers."""

from dataclasses import dataclass

Position = tuple[int, int]


def column_index(letters: str) -> int:
    """Convert column letters to a zero-based index (``"A"`` -> 0, ``"AA"`` -> 26)."""
    index = 0
    for char in letters.upper():
        if not "A" <= char <= "Z":
            raise ValueError(f"Invalid column letters: {letters!r}")
        index = index * 26 + (ord(char) - ord("A") + 1)
    if index == 0:
        raise ValueError("Column letters must not be empty")
    return index - 1


def split_address(address: str) -> Position:
    """
    Convert an A1-style cell address into a zero-based ``(row, col)`` pair.

    Absolute markers (``$B$3``) are accepted.

    Raises:
        ValueError: If the address has no column letters or no row number.
    """
    cleaned = address.replace("$", "").strip()
    letters = "".join(filter(str.isalpha, cleaned))
    digits = cleaned[len(letters) :]
    if not letters or not digits.isdigit() or int(digits) < 1:
        raise ValueError(f"Invalid cell address: {address!r}")
    return int(digits) - 1, column_index(letters)


@dataclass(frozen=True)
class Dimensions:
    """
    Inclusive, zero-based bounding box of a sheet or sub-range.

    Attributes:
        start: Top-left ``(row, col)``.
        end: Bottom-right ``(row, col)``.
    """

    start: Position
    end: Position

    def __post_init__(self) -> None:
        if self.start[0] > self.end[0] or self.start[1] > self.end[1]:
            raise ValueError(f"Dimensions start {self.start} lies after end {self.end}")
        if min(self.start) < 0:
            raise ValueError(f"Dimensions start {self.start} must not be negative")

    @property
    def height(self) -> int:
        return self.end[0] - self.start[0] + 1

    @property
    def width(self) -> int:
        return self.end[1] - self.start[1] + 1

    @classmethod
    def from_ref(cls, ref: str) -> "Dimensions":
        """Parse an xlsx ``<dimension ref=...>`` value such as ``A1:E10`` or ``B2``."""
        first, _, last = ref.partition(":")
        start = split_address(first)
        end = split_address(last) if last else start
        return cls(start=start, end=end)

    def __repr__(self) -> str:
        return f"Dimensions(start={self.start}, end={self.end})"


class BoundsTracker:
    """Accumulates the bounding box of the cells seen so far during a scan."""

    def __init__(self) -> None:
        self._min_row: int | None = None
        self._min_col = 0
        self._max_row = 0
        self._max_col = 0

    def observe(self, row: int, col: int) -> None:
        if self._min_row is None:
            self._min_row, self._min_col = row, col
            self._max_row, self._max_col = row, col
            return
        self._min_row = min(self._min_row, row)
        self._min_col = min(self._min_col, col)
        self._max_row = max(self._max_row, row)
        self._max_col = max(self._max_col, col)

    @property
    def dimensions(self) -> Dimensions | None:
        if self._min_row is None:
            return None
        return Dimensions(
            start=(self._min_row, self._min_col), end=(self._max_row, self._max_col)
        )
