"""Command-line interface for reading spreadsheet workbooks."""

import logging
import sys

import typer

from sheetstream.csv_export import rows_from_cells, write_csv
from sheetstream.workbook import WorkbookFormat, load_workbook

app = typer.Typer(add_completion=False, help="List and export sheets of xlsx/xlsb workbooks.")

_SOURCE_HELP = "Data source: s3://bucket/key, https://url, or /path/to/file.xlsx"


def _configure_logging(verbose: bool) -> None:
    # WARNING by default so CSV written to stdout stays clean
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def _fail(message: str, verbose: bool) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    if verbose:
        import traceback

        traceback.print_exc(file=sys.stderr)
    return typer.Exit(code=1)


@app.command()
def sheets(
    source: str = typer.Argument(..., help=_SOURCE_HELP),
    fmt: WorkbookFormat = typer.Option(
        WorkbookFormat.XLSX,
        "--format",
        help="Workbook container format",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """List the sheets of a workbook with their kind and visibility."""
    _configure_logging(verbose)

    try:
        workbook = load_workbook(source, fmt=fmt)
        for metadata in workbook.sheets_metadata:
            typer.echo(f"{metadata.name}\t{metadata.typ.name}\t{metadata.visible.name}")
    except ImportError as e:
        typer.echo(
            f"Error: Missing dependency: {e}\nInstall with: pip install sheetstream[all]",
            err=True,
        )
        raise typer.Exit(code=1) from None
    except Exception as e:
        raise _fail(str(e), verbose) from None


@app.command()
def export(
    source: str = typer.Argument(..., help=_SOURCE_HELP),
    sheet: str | None = typer.Option(
        None,
        "--sheet",
        help="Sheet name to export (default: first sheet)",
    ),
    fmt: WorkbookFormat = typer.Option(
        WorkbookFormat.XLSX,
        "--format",
        help="Workbook container format",
    ),
    lazy: bool = typer.Option(
        False,
        "--lazy",
        help="Stream cells instead of loading the sheet into memory",
    ),
    nrows: int | None = typer.Option(
        None,
        "--nrows",
        min=0,
        help="Maximum number of rows to export (ignored with --lazy)",
    ),
    keep_empty_area: bool = typer.Option(
        False,
        "--keep-empty-area",
        help="Keep the blank rows and columns before the first populated cell",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        help="Output CSV file path (default: stdout)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Export one sheet of a workbook as CSV.

    Sources:
    - Local files: /path/to/file.xlsx
    - S3: s3://bucket/key
    - HTTP/HTTPS: https://example.com/file.xlsx
    """
    _configure_logging(verbose)

    try:
        workbook = load_workbook(source, fmt=fmt)
        if lazy:
            if sheet is None:
                lazy_sheet = workbook.get_lazy_sheet_by_index(0)
            else:
                lazy_sheet = workbook.get_lazy_sheet_by_name(sheet)
            with lazy_sheet:
                rows = rows_from_cells(lazy_sheet, epoch=workbook.epoch)
                count = write_csv(rows, output if output else sys.stdout)
        else:
            if sheet is None:
                materialized = workbook.get_sheet_by_index(0)
            else:
                materialized = workbook.get_sheet_by_name(sheet)
            rows = materialized.to_python(skip_empty_area=not keep_empty_area, nrows=nrows)
            count = write_csv(rows, output if output else sys.stdout)

        if output:
            typer.echo(f"CSV written to: {output} ({count} rows)", err=True)

    except FileNotFoundError as e:
        typer.echo(f"Error: File not found: {e}", err=True)
        raise typer.Exit(code=1) from None
    except ImportError as e:
        typer.echo(
            f"Error: Missing dependency: {e}\nInstall with: pip install sheetstream[all]",
            err=True,
        )
        raise typer.Exit(code=1) from None
    except Exception as e:
        raise _fail(str(e), verbose) from None


if __name__ == "__main__":
    app()
