"""Sheet classification and visibility, independent of cell content."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from sheetstream.exceptions import UnknownSheetKindError, UnknownVisibilityError

# Last path segment of the workbook relationship type that points at a sheet part.
# Transitional (schemas.openxmlformats.org) and strict (purl.oclc.org) namespaces
# share the same segments.
_RELATIONSHIP_KINDS = {
    "worksheet": "WorkSheet",
    "chartsheet": "ChartSheet",
    "dialogsheet": "DialogSheet",
    "xlMacrosheet": "MacroSheet",
    "xlIntlMacrosheet": "MacroSheet",
}

# xlsx <sheet state="..."> and xlsb BrtBundleSh.hsState
_VISIBILITY_STATES = {
    "visible": "Visible",
    "hidden": "Hidden",
    "veryHidden": "VeryHidden",
    0: "Visible",
    1: "Hidden",
    2: "VeryHidden",
}


class SheetTypeEnum(Enum):
    """Kind of sheet as declared by the workbook."""

    WorkSheet = "WorkSheet"
    DialogSheet = "DialogSheet"
    MacroSheet = "MacroSheet"
    ChartSheet = "ChartSheet"
    Vba = "Vba"

    def __str__(self) -> str:
        return f"SheetTypeEnum.{self.name}"

    @classmethod
    def from_raw(cls, raw: Any) -> "SheetTypeEnum":
        """
        Map a format-reported sheet classification onto the canonical enum.

        Args:
            raw: An enum member, a canonical member name, or a workbook
                relationship type URI.

        Raises:
            UnknownSheetKindError: If ``raw`` is not a known classification.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            if raw in cls.__members__:
                return cls[raw]
            segment = raw.rstrip("/").rsplit("/", 1)[-1]
            if "/" in raw and segment in _RELATIONSHIP_KINDS:
                return cls[_RELATIONSHIP_KINDS[segment]]
        raise UnknownSheetKindError(f"Unknown sheet kind: {raw!r}")


class SheetVisibleEnum(Enum):
    """Visibility of a sheet tab."""

    Visible = "Visible"
    Hidden = "Hidden"
    # Hidden and cannot be shown again through the user interface
    VeryHidden = "VeryHidden"

    def __str__(self) -> str:
        return f"SheetVisibleEnum.{self.name}"

    @classmethod
    def from_raw(cls, raw: Any) -> "SheetVisibleEnum":
        """
        Map a format-reported visibility flag onto the canonical enum.

        ``None`` stands for an absent attribute, which means visible.

        Raises:
            UnknownVisibilityError: If ``raw`` is not a known visibility value.
        """
        if isinstance(raw, cls):
            return raw
        if raw is None:
            return cls.Visible
        if isinstance(raw, str) and raw in cls.__members__:
            return cls[raw]
        if isinstance(raw, (str, int)) and not isinstance(raw, bool) and raw in _VISIBILITY_STATES:
            return cls[_VISIBILITY_STATES[raw]]
        raise UnknownVisibilityError(f"Unknown sheet visibility: {raw!r}")


@dataclass(frozen=True)
class SheetMetadata:
    """Name, kind and visibility of one sheet."""

    name: str
    typ: SheetTypeEnum
    visible: SheetVisibleEnum

    @classmethod
    def from_raw(cls, name: str, raw_kind: Any, raw_visibility: Any) -> "SheetMetadata":
        return cls(
            name=name,
            typ=SheetTypeEnum.from_raw(raw_kind),
            visible=SheetVisibleEnum.from_raw(raw_visibility),
        )

    def __repr__(self) -> str:
        return f"SheetMetadata(name={self.name!r}, typ={self.typ}, visible={self.visible})"
