"""Tests for bounding boxes and cell addresses."""

import pytest

from sheetstream.dimensions import BoundsTracker, Dimensions, column_index, split_address


def test_column_index() -> None:
    assert column_index("A") == 0
    assert column_index("z") == 25
    assert column_index("AA") == 26
    assert column_index("XFD") == 16383


def test_split_address() -> None:
    """Test A1 addresses, including absolute markers."""
    assert split_address("A1") == (0, 0)
    assert split_address("C10") == (9, 2)
    assert split_address("$B$3") == (2, 1)

    for bad in ("", "12", "A", "A0", "1A"):
        with pytest.raises(ValueError):
            split_address(bad)


def test_dimensions_size() -> None:
    """Test height and width of a box."""
    dims = Dimensions(start=(1, 0), end=(3, 1))
    assert dims.height == 3
    assert dims.width == 2
    assert repr(dims) == "Dimensions(start=(1, 0), end=(3, 1))"


def test_dimensions_validation() -> None:
    """Test that inverted or negative boxes are rejected."""
    with pytest.raises(ValueError, match="lies after end"):
        Dimensions(start=(2, 0), end=(1, 0))
    with pytest.raises(ValueError, match="must not be negative"):
        Dimensions(start=(-1, 0), end=(1, 0))


def test_dimensions_from_ref() -> None:
    assert Dimensions.from_ref("A1:E10") == Dimensions(start=(0, 0), end=(9, 4))
    assert Dimensions.from_ref("B2") == Dimensions(start=(1, 1), end=(1, 1))


def test_bounds_tracker() -> None:
    """Test that observed cells grow the box."""
    tracker = BoundsTracker()
    assert tracker.dimensions is None

    tracker.observe(2, 3)
    assert tracker.dimensions == Dimensions(start=(2, 3), end=(2, 3))

    tracker.observe(5, 1)
    tracker.observe(4, 7)
    assert tracker.dimensions == Dimensions(start=(2, 1), end=(5, 7))
