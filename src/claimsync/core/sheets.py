from __future__ import annotations

import os
import time
from datetime import date, datetime
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from openpyxl import Workbook, load_workbook

from claimsync.core.config import Settings
from claimsync.core.errors import ExternalCallFailure, SheetNotFound
from claimsync.core.google import SHEETS_BASE_URL, GoogleApiClient
from claimsync.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)


class RowStore:
    """Spreadsheet rows addressed by sheet name and 1-based row/column numbers."""

    def read_row(self, *, sheet: str, row: int) -> list[Any]:  # pragma: no cover
        raise NotImplementedError

    def read_all(self, *, sheet: str) -> list[list[Any]]:  # pragma: no cover
        raise NotImplementedError

    def write_cell(self, *, sheet: str, row: int, col: int, value: Any) -> None:  # pragma: no cover
        raise NotImplementedError

    def delete_row(self, *, sheet: str, row: int) -> None:  # pragma: no cover
        raise NotImplementedError

    def append_row(self, *, sheet: str, values: list[Any]) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        return None


class WorkbookRowStore(RowStore):
    def __init__(self, path: Path):
        self._path = path

    def ensure_sheets(self, headers_by_sheet: dict[str, list[str]]) -> None:
        if self._path.exists():
            wb = load_workbook(self._path)
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            wb = Workbook()
            wb.remove(wb.active)
        changed = False
        for name, headers in headers_by_sheet.items():
            if name in wb.sheetnames:
                continue
            ws = wb.create_sheet(title=name)
            ws.append(headers)
            changed = True
        if changed:
            wb.save(self._path)
            log_event(logger, "sheets.workbook.initialized", path=str(self._path))

    def _open(self):
        if not self._path.exists():
            raise ExternalCallFailure(f"Workbook not found: {self._path}", service="sheets")
        try:
            return load_workbook(self._path)
        except Exception as e:  # noqa: BLE001
            log_exception(logger, "sheets.workbook.load.failure", path=str(self._path))
            raise ExternalCallFailure(f"Workbook unreadable: {e}", service="sheets") from e

    def _sheet(self, wb, sheet: str):
        if sheet not in wb.sheetnames:
            raise SheetNotFound(f"{sheet} sheet not found")
        return wb[sheet]

    def _save(self, wb) -> None:
        try:
            wb.save(self._path)
        except Exception as e:  # noqa: BLE001
            log_exception(logger, "sheets.workbook.save.failure", path=str(self._path))
            raise ExternalCallFailure(f"Workbook not writable: {e}", service="sheets") from e

    def read_row(self, *, sheet: str, row: int) -> list[Any]:
        ws = self._sheet(self._open(), sheet)
        if row > ws.max_row:
            return []
        values = [ws.cell(row=row, column=col).value for col in range(1, ws.max_column + 1)]
        while values and values[-1] is None:
            values.pop()
        return values

    def read_all(self, *, sheet: str) -> list[list[Any]]:
        ws = self._sheet(self._open(), sheet)
        return [list(r) for r in ws.iter_rows(values_only=True)]

    def write_cell(self, *, sheet: str, row: int, col: int, value: Any) -> None:
        wb = self._open()
        ws = self._sheet(wb, sheet)
        ws.cell(row=row, column=col, value=value)
        self._save(wb)

    def delete_row(self, *, sheet: str, row: int) -> None:
        wb = self._open()
        ws = self._sheet(wb, sheet)
        ws.delete_rows(row)
        self._save(wb)

    def append_row(self, *, sheet: str, values: list[Any]) -> None:
        wb = self._open()
        ws = self._sheet(wb, sheet)
        ws.append([None if v == "" else v for v in values])
        self._save(wb)


class GoogleSheetsRowStore(RowStore):
    def __init__(
        self,
        *,
        spreadsheet_id: str,
        access_token: str | None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._spreadsheet_id = spreadsheet_id
        self._api = GoogleApiClient(
            service="sheets",
            base_url=SHEETS_BASE_URL,
            access_token=access_token,
            timeout_s=timeout_s,
            transport=transport,
        )
        self._sheet_ids: dict[str, int] | None = None

    def close(self) -> None:
        self._api.close()

    def _values_path(self, a1_range: str, suffix: str = "") -> str:
        return f"spreadsheets/{self._spreadsheet_id}/values/{quote(a1_range, safe='')}{suffix}"

    def _get_values(self, a1_range: str, *, sheet: str) -> list[list[Any]]:
        try:
            payload = self._api.json(
                "GET",
                self._values_path(a1_range),
                params={
                    "valueRenderOption": "UNFORMATTED_VALUE",
                    "dateTimeRenderOption": "SERIAL_NUMBER",
                },
            )
        except ExternalCallFailure as e:
            if e.status_code == 400 and "Unable to parse range" in str(e):
                raise SheetNotFound(f"{sheet} sheet not found") from e
            raise
        values = payload.get("values") or []
        return [list(r) for r in values]

    def read_row(self, *, sheet: str, row: int) -> list[Any]:
        values = self._get_values(f"{_quote_sheet(sheet)}!A{row}:{row}", sheet=sheet)
        return values[0] if values else []

    def read_all(self, *, sheet: str) -> list[list[Any]]:
        return self._get_values(_quote_sheet(sheet), sheet=sheet)

    def write_cell(self, *, sheet: str, row: int, col: int, value: Any) -> None:
        a1 = f"{_quote_sheet(sheet)}!{column_letter(col)}{row}"
        start = time.monotonic()
        self._api.request(
            "PUT",
            self._values_path(a1),
            params={"valueInputOption": "USER_ENTERED"},
            json={"range": a1, "values": [[_serialize(value)]]},
        )
        log_event(
            logger,
            "sheets.write.success",
            target=a1,
            duration_ms=monotonic_ms(start),
        )

    def append_row(self, *, sheet: str, values: list[Any]) -> None:
        a1 = f"{_quote_sheet(sheet)}!A1"
        self._api.request(
            "POST",
            self._values_path(a1, ":append"),
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"values": [[_serialize(v) for v in values]]},
        )

    def delete_row(self, *, sheet: str, row: int) -> None:
        sheet_id = self._sheet_id(sheet)
        self._api.request(
            "POST",
            f"spreadsheets/{self._spreadsheet_id}:batchUpdate",
            json={
                "requests": [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": sheet_id,
                                "dimension": "ROWS",
                                "startIndex": row - 1,
                                "endIndex": row,
                            }
                        }
                    }
                ]
            },
        )

    def _sheet_id(self, sheet: str) -> int:
        if self._sheet_ids is None:
            payload = self._api.json(
                "GET", f"spreadsheets/{self._spreadsheet_id}", params={"fields": "sheets.properties"}
            )
            self._sheet_ids = {
                s["properties"]["title"]: s["properties"]["sheetId"]
                for s in payload.get("sheets") or []
                if isinstance(s, dict) and "properties" in s
            }
        if sheet not in self._sheet_ids:
            raise SheetNotFound(f"{sheet} sheet not found")
        return self._sheet_ids[sheet]


def column_letter(col: int) -> str:
    letters = ""
    while col > 0:
        col, rem = divmod(col - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def _quote_sheet(sheet: str) -> str:
    return "'" + sheet.replace("'", "''") + "'"


def _serialize(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def build_row_store(
    settings: Settings, *, transport: httpx.BaseTransport | None = None
) -> RowStore:
    if settings.sheets_backend == "google":
        return GoogleSheetsRowStore(
            spreadsheet_id=settings.require("spreadsheet_id"),
            access_token=settings.google_access_token,
            timeout_s=settings.google_timeout_s,
            transport=transport,
        )
    path = settings.local_workbook_path
    if not path.is_absolute():
        path = Path(os.getcwd()) / path
    return WorkbookRowStore(path)
