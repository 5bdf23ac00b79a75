from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any
from zoneinfo import ZoneInfo

# Spreadsheet serial day 0.
_SERIAL_EPOCH = date(1899, 12, 30)

_DMY_RE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$")

Cell = str | int | float | date | datetime | None


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.hour == value.minute == value.second == 0 and not value.microsecond:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def cell_date(value: Any, *, tz: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(ZoneInfo(tz)).date()
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _SERIAL_EPOCH + timedelta(days=int(value))

    raw = str(value).strip()
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None:
        return cell_date(parsed, tz=tz)
    m = _DMY_RE.match(raw)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None


def today(*, tz: str) -> date:
    return datetime.now(ZoneInfo(tz)).date()


def compact_date(d: date) -> str:
    return d.strftime("%Y%m%d")


def iso_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def day_first_date(d: date) -> str:
    return d.strftime("%d-%m-%Y")


def column_value(row: list[Any], col: int | None) -> Any:
    if col is None or col < 1 or col > len(row):
        return None
    return row[col - 1]
