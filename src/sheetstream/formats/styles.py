"""Number-format lookup used to recognise date and duration cells."""

from openpyxl.styles.numbers import BUILTIN_FORMATS


class NumberFormats:
    """
    Resolves a cell style index to its number-format code.

    Attributes:
        custom: Workbook-defined format codes keyed by format id.
        cell_formats: Format id of each entry in the cell style table, indexed
            by the style index cells refer to.
    """

    def __init__(
        self,
        custom: dict[int, str] | None = None,
        cell_formats: list[int] | None = None,
    ) -> None:
        self.custom = custom or {}
        self.cell_formats = cell_formats or []

    def format_for(self, style_index: int) -> str | None:
        """Return the format code for a cell style, or None for unknown styles."""
        if style_index < 0 or style_index >= len(self.cell_formats):
            return None
        format_id = self.cell_formats[style_index]
        return self.custom.get(format_id, BUILTIN_FORMATS.get(format_id))

    def __repr__(self) -> str:
        return f"NumberFormats(custom={len(self.custom)}, cell_formats={len(self.cell_formats)})"
