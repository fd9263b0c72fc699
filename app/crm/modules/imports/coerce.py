"""
Cell coercion for spreadsheet/CSV imports and JSON edits.

The tracking sheets are filled in by hand in Czech: booleans come as
"ANO"/"NE", decimals use a comma, dates are written as DD.MM.YYYY. Excel
cells may also arrive already typed (numbers, datetimes, serial dates).
Every parser returns None for values it cannot understand.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

from openpyxl.utils.datetime import from_excel

TRUE_VALUES = frozenset({"ano", "true", "1", "yes", "hotovo"})
FALSE_VALUES = frozenset({"ne", "false", "0", "no"})

MIN_YEAR = 1900
MAX_YEAR = 2100

_CZ_DATE_RE = re.compile(r"^(\d{1,2})\.\s*(\d{1,2})\.\s*(\d{4})(?:\s+\d{1,2}:\d{2}(?::\d{2})?)?$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_NUMBER_JUNK_RE = re.compile(r"[^0-9,.\-]")
_INT_FLOAT_RE = re.compile(r"^(\d+)\.0+$")

# Excel serial day numbers for 1900-01-01 .. 2100-12-31
_EXCEL_SERIAL_MIN = 1
_EXCEL_SERIAL_MAX = 73415


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def parse_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # phone numbers and IDs typed into numeric cells
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if is_blank(value):
        return None
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    return None


def parse_number(value: Any) -> float | None:
    """
    "1 234,50 Kč" -> 1234.5, "1.234,5" -> 1234.5, "1,234.5" -> 1234.5.
    When both separators occur the last one is the decimal separator.
    """
    if isinstance(value, bool) or is_blank(value):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
        return None if math.isnan(f) or math.isinf(f) else f

    s = _NUMBER_JUNK_RE.sub("", str(value))
    negative = s.startswith("-")
    s = s.replace("-", "")
    if not s or not any(ch.isdigit() for ch in s):
        return None

    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", "") if s.count(",") > 1 else s.replace(",", ".")
    elif s.count(".") > 1:
        s = s.replace(".", "")

    try:
        f = float(s)
    except ValueError:
        return None
    return -f if negative else f


def _checked(d: date) -> date | None:
    return d if MIN_YEAR <= d.year <= MAX_YEAR else None


def parse_date(value: Any) -> date | None:
    if isinstance(value, bool) or is_blank(value):
        return None
    if isinstance(value, datetime):
        return _checked(value.date())
    if isinstance(value, date):
        return _checked(value)
    if isinstance(value, (int, float)):
        if not (_EXCEL_SERIAL_MIN <= value <= _EXCEL_SERIAL_MAX):
            return None
        converted = from_excel(value)
        if isinstance(converted, datetime):
            return _checked(converted.date())
        return None

    s = str(value).strip()
    if s.startswith(("+", "-")):
        return None
    m = _CZ_DATE_RE.match(s)
    if m:
        day, month, year = (int(x) for x in m.groups())
    else:
        m = _ISO_DATE_RE.match(s)
        if not m:
            return None
        year, month, day = (int(x) for x in m.groups())
    try:
        return _checked(date(year, month, day))
    except ValueError:
        return None


def normalize_ico(value: Any) -> str | None:
    """
    IČO is an 8-digit identifier; spreadsheets often store it as a number and
    drop the leading zeros.
    """
    if isinstance(value, bool) or is_blank(value):
        return None
    if isinstance(value, int):
        return str(value).zfill(8)
    if isinstance(value, float):
        return str(int(value)).zfill(8) if value.is_integer() else str(value)
    s = re.sub(r"\s+", "", str(value))
    m = _INT_FLOAT_RE.match(s)
    if m:
        s = m.group(1)
    if s.isdigit() and len(s) < 8:
        s = s.zfill(8)
    return s or None


def parse_int(value: Any) -> int | None:
    f = parse_number(value)
    if f is None or not f.is_integer():
        return None
    return int(f)


_PARSERS = {
    "text": parse_text,
    "bool": parse_bool,
    "number": parse_number,
    "date": parse_date,
    "int": parse_int,
}


def coerce(kind: str, value: Any) -> Any:
    return _PARSERS[kind](value)
