"""
Spreadsheet reading (.xlsx / .csv -> header-keyed rows).

- the header row is the first row naming all 8 columns; a title or
  instruction rows above it are skipped
- columns are matched by header name (trimmed, case-insensitive),
  so column order in the file does not matter
- fully empty rows are dropped
- every cell comes back as a trimmed string ('' for empty cells)
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from openpyxl import load_workbook

from coursedesk.model import HEADERS

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 5 * 1024 * 1024
SUPPORTED_SUFFIXES = (".xlsx", ".csv")


class SheetError(Exception):
    """
    The file cannot be used as an import sheet.
    """


def cell_text(value: Any) -> str:
    """
    Spreadsheet cell -> string. Whole floats lose their '.0' (class numbers).
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _is_blank_row(row: Iterable[Any]) -> bool:
    return all(cell_text(v) == "" for v in row)


def _header_columns(cells: list[Any]) -> list[str]:
    """
    Cell values of a candidate header row, canonical header spelling where they match.
    """
    canonical = {h.lower(): h for h in HEADERS}
    names = [cell_text(c) for c in cells]
    return [canonical.get(n.lower(), n) for n in names]


def rows_from_table(table: Iterable[Iterable[Any]]) -> list[dict[str, str]]:
    """
    Turn raw cell rows into dicts keyed by HEADERS.

    Rows above the header row (a title, instructions) are ignored: the
    header is the first row that names all 8 columns.
    """
    header_row: Optional[list[str]] = None
    # closest miss, for the error message
    best_missing: Optional[list[str]] = None
    seen_content = False
    out: list[dict[str, str]] = []

    for raw in table:
        cells = list(raw)
        if _is_blank_row(cells):
            continue

        if header_row is None:
            seen_content = True
            columns = _header_columns(cells)
            missing = [h for h in HEADERS if h not in columns]
            if not missing:
                header_row = columns
            elif len(missing) < len(HEADERS) and (best_missing is None or len(missing) < len(best_missing)):
                best_missing = missing
            continue

        row = {h: "" for h in HEADERS}
        for i, value in enumerate(cells):
            if i < len(header_row) and header_row[i] in row:
                row[header_row[i]] = cell_text(value)
        out.append(row)

    if header_row is None:
        if not seen_content:
            raise SheetError("The file is empty")
        if best_missing:
            raise SheetError(
                f"Could not find header row (missing column(s): {', '.join(best_missing)}). "
                "Please use the template format."
            )
        raise SheetError("Could not find header row. Please use the template format.")
    return out


def _read_xlsx(path: Path) -> list[dict[str, str]]:
    try:
        wb = load_workbook(str(path), read_only=True, data_only=True)
    except Exception as e:
        raise SheetError(f"Error reading file. Please ensure it is a valid Excel file ({e})") from e

    try:
        ws = wb.active
        return rows_from_table(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def _read_csv(path: Path) -> list[dict[str, str]]:
    try:
        with path.open(encoding="utf-8-sig", newline="") as fh:
            return rows_from_table(csv.reader(fh))
    except (UnicodeDecodeError, csv.Error) as e:
        raise SheetError(f"Error reading CSV file ({e})") from e


def read_sheet(path: str | Path) -> list[dict[str, str]]:
    """
    Load an import sheet. Raises SheetError for wrong type, size or layout.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SheetError("Invalid file type. Please upload an Excel (.xlsx) or CSV file.")
    if not p.exists():
        raise SheetError(f"File not found: {p}")
    if p.stat().st_size > MAX_FILE_BYTES:
        raise SheetError("File size too large. Maximum size is 5MB.")

    rows = _read_xlsx(p) if suffix == ".xlsx" else _read_csv(p)
    logger.info("Read %d row(s) from %s", len(rows), p.name)
    return rows
