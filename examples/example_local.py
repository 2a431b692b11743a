"""Example: Reading a workbook from the local filesystem."""

from sheetstream import load_workbook

workbook = load_workbook("examples/report.xlsx")

print("Sheets:")
for metadata in workbook.sheets_metadata:
    print(f"  {metadata.name} ({metadata.typ.name}, {metadata.visible.name})")

# Load the first sheet into memory
sheet = workbook.get_sheet_by_index(0)
print("\nDimensions:", sheet.dimensions)
for i, row in enumerate(sheet.to_python(nrows=10), 1):
    print(f"Row {i}: {row}")

# Or walk a large sheet one cell at a time
# with workbook.get_lazy_sheet_by_index(0) as lazy_sheet:
#     for row, col, raw in lazy_sheet:
#         print(row, col, raw.value)
