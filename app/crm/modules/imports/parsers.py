from __future__ import annotations

import csv
import io
import zipfile
from dataclasses import dataclass, field
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.crm.modules.imports.coerce import is_blank
from app.crm.modules.imports.headers import dedupe_headers, field_for_header, is_header_row

SUPPORTED_EXTENSIONS = (".xlsx", ".csv")
HEADER_SEARCH_ROWS = 10


@dataclass
class SheetRow:
    row_number: int  # 1-based row in the source sheet
    values: dict[str, Any] = field(default_factory=dict)  # field name -> raw cell
    raw: dict[str, Any] = field(default_factory=dict)  # header label -> raw cell


def read_xlsx_rows(file_bytes: bytes) -> list[list[Any]]:
    try:
        wb = load_workbook(io.BytesIO(file_bytes), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, OSError) as e:
        raise ValueError("Not a valid .xlsx file.") from e
    try:
        ws = wb.active
        return [list(r) for r in ws.iter_rows(values_only=True)]
    finally:
        wb.close()


def guess_delimiter(text: str) -> str:
    """Czech Excel writes ';'-separated CSV; pick the most frequent separator of the first line."""
    for line in text.splitlines():
        if not line.strip():
            continue
        counts = {d: line.count(d) for d in (";", ",", "\t")}
        best = max(counts, key=counts.__getitem__)
        return best if counts[best] else ","
    return ","


def decode_csv(file_bytes: bytes) -> str:
    """UTF-8 (with or without BOM), else cp1250 as written by Czech Excel."""
    try:
        return file_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        return file_bytes.decode("cp1250", errors="replace")


def read_csv_rows(file_bytes: bytes) -> list[list[Any]]:
    text = decode_csv(file_bytes)
    return [row for row in csv.reader(io.StringIO(text), delimiter=guess_delimiter(text))]


def read_rows(filename: str, file_bytes: bytes) -> list[list[Any]]:
    name = (filename or "").lower()
    if name.endswith(".xlsx"):
        return read_xlsx_rows(file_bytes)
    if name.endswith(".csv"):
        return read_csv_rows(file_bytes)
    raise ValueError("Unsupported file type. Upload an .xlsx or .csv file.")


def find_header_index(rows: list[list[Any]]) -> int | None:
    """
    The tracking sheet carries a category banner above the real header, so the
    header is the first row naming both the company and the IČO column.
    Falls back to the first non-empty row.
    """
    first_non_empty = None
    for idx, cells in enumerate(rows[:HEADER_SEARCH_ROWS]):
        if all(is_blank(c) for c in cells):
            continue
        if first_non_empty is None:
            first_non_empty = idx
        if is_header_row(cells):
            return idx
    return first_non_empty


def parse_sheet(rows: list[list[Any]]) -> list[SheetRow]:
    """
    Turn raw sheet rows into SheetRow records keyed by Client field name.
    Fully empty rows are skipped; unknown columns only appear in `raw`.
    """
    header_idx = find_header_index(rows)
    if header_idx is None:
        return []
    headers = dedupe_headers(list(rows[header_idx]))
    fields = [field_for_header(h) if h else None for h in headers]

    out: list[SheetRow] = []
    for offset, cells in enumerate(rows[header_idx + 1:], start=header_idx + 2):
        if all(is_blank(c) for c in cells):
            continue
        rec = SheetRow(row_number=offset)
        for col, value in enumerate(cells):
            if col >= len(headers) or not headers[col]:
                continue
            rec.raw[headers[col]] = value
            f = fields[col]
            # first non-empty column wins when two headers map to one field
            if f and (f not in rec.values or is_blank(rec.values[f])):
                rec.values[f] = value
        out.append(rec)
    return out
