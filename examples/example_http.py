"""Example: Reading a workbook from an HTTP/HTTPS URL."""

from sheetstream import load_workbook

# Every sheet read streams the archive again, so cache the download
workbook = load_workbook(
    "https://example.com/path/to/file.xlsx",
    headers={"Authorization": "Bearer token123"},
    timeout=60,
    cache=True,
)

print("Sheets:", workbook.sheet_names)

with workbook.get_lazy_sheet_by_index(0) as lazy_sheet:
    print("Declared dimensions:", lazy_sheet.dimensions())
    for i, cell in enumerate(lazy_sheet, 1):
        print(f"Cell {i}: row={cell.row} col={cell.col} value={cell.value.value!r}")
        if i >= 10:
            break
