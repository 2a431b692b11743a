"""Tests for sheet metadata classification."""

import pytest

from sheetstream.exceptions import UnknownSheetKindError, UnknownVisibilityError
from sheetstream.metadata import SheetMetadata, SheetTypeEnum, SheetVisibleEnum


def test_sheet_kind_from_relationship_type() -> None:
    """Test classification from workbook relationship URIs."""
    base = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
    assert SheetTypeEnum.from_raw(f"{base}/worksheet") is SheetTypeEnum.WorkSheet
    assert SheetTypeEnum.from_raw(f"{base}/chartsheet") is SheetTypeEnum.ChartSheet
    assert SheetTypeEnum.from_raw(f"{base}/dialogsheet") is SheetTypeEnum.DialogSheet
    assert (
        SheetTypeEnum.from_raw(
            "http://schemas.microsoft.com/office/2006/relationships/xlMacrosheet"
        )
        is SheetTypeEnum.MacroSheet
    )
    # Strict namespace
    assert (
        SheetTypeEnum.from_raw("http://purl.oclc.org/ooxml/officeDocument/relationships/worksheet")
        is SheetTypeEnum.WorkSheet
    )


def test_sheet_kind_from_name() -> None:
    assert SheetTypeEnum.from_raw("Vba") is SheetTypeEnum.Vba
    assert SheetTypeEnum.from_raw(SheetTypeEnum.ChartSheet) is SheetTypeEnum.ChartSheet


def test_unknown_sheet_kind() -> None:
    """Test that unknown kinds are reported, never guessed."""
    with pytest.raises(UnknownSheetKindError, match="Unknown sheet kind"):
        SheetTypeEnum.from_raw("http://example.com/relationships/pivotTable")
    with pytest.raises(UnknownSheetKindError):
        SheetTypeEnum.from_raw("worksheet")
    with pytest.raises(ValueError):
        SheetTypeEnum.from_raw(3)


def test_visibility() -> None:
    """Test visibility from xlsx states and xlsb flags."""
    assert SheetVisibleEnum.from_raw(None) is SheetVisibleEnum.Visible
    assert SheetVisibleEnum.from_raw("visible") is SheetVisibleEnum.Visible
    assert SheetVisibleEnum.from_raw("hidden") is SheetVisibleEnum.Hidden
    assert SheetVisibleEnum.from_raw("veryHidden") is SheetVisibleEnum.VeryHidden
    assert SheetVisibleEnum.from_raw(1) is SheetVisibleEnum.Hidden
    assert SheetVisibleEnum.from_raw(2) is SheetVisibleEnum.VeryHidden


def test_unknown_visibility() -> None:
    with pytest.raises(UnknownVisibilityError, match="Unknown sheet visibility"):
        SheetVisibleEnum.from_raw("invisible")
    with pytest.raises(UnknownVisibilityError):
        SheetVisibleEnum.from_raw(7)
    with pytest.raises(UnknownVisibilityError):
        SheetVisibleEnum.from_raw(True)


def test_metadata_repr() -> None:
    """Test the textual form of sheet metadata."""
    metadata = SheetMetadata("Data", SheetTypeEnum.WorkSheet, SheetVisibleEnum.Hidden)
    assert repr(metadata) == (
        "SheetMetadata(name='Data', typ=SheetTypeEnum.WorkSheet, visible=SheetVisibleEnum.Hidden)"
    )
    assert str(SheetTypeEnum.MacroSheet) == "SheetTypeEnum.MacroSheet"


def test_metadata_equality() -> None:
    """Test that metadata compares by value."""
    first = SheetMetadata.from_raw("Sheet1", "WorkSheet", None)
    second = SheetMetadata("Sheet1", SheetTypeEnum.WorkSheet, SheetVisibleEnum.Visible)
    assert first == second
    assert first != SheetMetadata("Sheet1", SheetTypeEnum.WorkSheet, SheetVisibleEnum.Hidden)
