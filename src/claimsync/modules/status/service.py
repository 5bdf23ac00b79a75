from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from claimsync.core.cells import cell_date, cell_text, column_value, day_first_date, today
from claimsync.core.context import ClaimsContext
from claimsync.core.errors import InvalidFileReference, StaleStatus, ValidationError
from claimsync.core.logging import get_logger, log_event, reset_row_context, set_row_context
from claimsync.modules.notifications.service import send_claim_notice
from claimsync.modules.receipts.service import (
    claimed_name,
    description_of,
    expense_date,
    extension_of,
    parse_file_reference,
    rebuild_name,
    rename_file,
    strip_claimed_prefix,
)
from claimsync.modules.sheets.models import SheetConfig, SheetKind, UnclaimMode
from claimsync.modules.sheets.service import config_for
from claimsync.modules.status.models import TODO_STATUS, ToggleAction, is_done

logger = get_logger(__name__)

_STATUS_DATE_RE = re.compile(r"(\d{2}-\d{2}-\d{4})")


@dataclass
class ToggleResult:
    row: int
    new_status: str
    action: ToggleAction
    file_name: str | None = None
    file_renamed: bool = False
    email_sent: bool = False
    file_error: str | None = None

    def to_response(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": True,
            "row": self.row,
            "newStatus": self.new_status,
            "action": self.action.value,
            "fileRenamed": self.file_renamed,
            "emailSent": self.email_sent,
        }
        if self.file_name:
            payload["fileName"] = self.file_name
        if self.file_error:
            payload["fileError"] = self.file_error
        return payload


def toggle_status(
    ctx: ClaimsContext,
    *,
    kind: SheetKind,
    row_number: int,
    current_status: str | None,
    description: str | None = None,
    expense_on: Any = None,
) -> ToggleResult:
    config = config_for(kind)
    if config.status_col is None:
        raise ValidationError(f"{config.sheet_name} has no status column")
    if row_number < 2:
        raise ValidationError("Row must be a data row (2 or later)")

    client_done = is_done(current_status)
    # Resolved before any write so a missing secret leaves the row untouched.
    recipient = (
        ctx.settings.require("recipient_email") if config.claim_notify and not client_done else None
    )

    tokens = set_row_context(sheet=config.sheet_name, row=row_number)
    try:
        row = ctx.rows.read_row(sheet=config.sheet_name, row=row_number)
        if not any(cell_text(v).strip() for v in row):
            raise ValidationError(f"Row {row_number} not found")
        if ctx.settings.status_check == "compare":
            stored = cell_text(column_value(row, config.status_col)).strip()
            if is_done(stored) != client_done:
                log_event(logger, "status.toggle.stale", stored=stored, client=current_status)
                raise StaleStatus(
                    f"Row {row_number} status is {stored or 'empty'!r}, not {current_status!r}; "
                    "reload and try again"
                )
        if client_done:
            return _mark_todo(
                ctx,
                config=config,
                row_number=row_number,
                row=row,
                previous_status=current_status or "",
                description=description,
                expense_on=expense_on,
            )
        return _mark_done(
            ctx, config=config, row_number=row_number, row=row, recipient=recipient
        )
    finally:
        reset_row_context(tokens)


def _write_status(ctx: ClaimsContext, *, config: SheetConfig, row_number: int, value: str) -> None:
    ctx.rows.write_cell(sheet=config.sheet_name, row=row_number, col=config.status_col, value=value)


def _mark_done(
    ctx: ClaimsContext,
    *,
    config: SheetConfig,
    row_number: int,
    row: list[Any],
    recipient: str | None,
) -> ToggleResult:
    on = today(tz=ctx.settings.timezone)
    new_status = f"{config.claim_label} {day_first_date(on)}"
    action = ToggleAction.FATURA if config.claim_label == "Fatura" else ToggleAction.CLAIMED
    _write_status(ctx, config=config, row_number=row_number, value=new_status)
    result = ToggleResult(row=row_number, new_status=new_status, action=action)
    log_event(logger, "status.toggle.done", status=new_status)

    file_id = None
    if config.claim_rename:

        def _prefixed(name: str) -> str:
            if strip_claimed_prefix(name) is not None:
                return name
            return claimed_name(name, claimed_on=on)

        file_id = _rename(ctx, config=config, row=row, result=result, transform=_prefixed)

    if config.claim_notify and recipient:
        notice = send_claim_notice(
            ctx,
            config=config,
            row=row,
            recipient=recipient,
            new_status=new_status,
            file_id=file_id,
            file_name=result.file_name,
        )
        result.email_sent = notice.sent
    return result


def _mark_todo(
    ctx: ClaimsContext,
    *,
    config: SheetConfig,
    row_number: int,
    row: list[Any],
    previous_status: str,
    description: str | None,
    expense_on: Any,
) -> ToggleResult:
    _write_status(ctx, config=config, row_number=row_number, value=TODO_STATUS)
    result = ToggleResult(row=row_number, new_status=TODO_STATUS, action=ToggleAction.TODO)
    log_event(logger, "status.toggle.todo", previous=previous_status)

    if config.unclaim_mode == UnclaimMode.STRIP_PREFIX:
        m = _STATUS_DATE_RE.search(previous_status)
        claimed_on = m.group(1) if m else None
        _rename(
            ctx,
            config=config,
            row=row,
            result=result,
            transform=lambda name: strip_claimed_prefix(name, claimed_on=claimed_on),
        )
    elif config.unclaim_mode == UnclaimMode.REBUILD_NAME:
        tz = ctx.settings.timezone
        try:
            name_description = (description or "").strip() or description_of(config, row)
            name_date = cell_date(expense_on, tz=tz) if expense_on else None
            name_date = name_date or expense_date(config, row, tz=tz)
            if not name_description:
                raise ValidationError("Description is required to rebuild the file name")
        except ValidationError as e:
            result.file_error = str(e)
            return result
        _rename(
            ctx,
            config=config,
            row=row,
            result=result,
            transform=lambda name: rebuild_name(
                description=name_description,
                expensed_on=name_date,
                extension=extension_of(name),
            ),
        )
    return result


def _rename(
    ctx: ClaimsContext,
    *,
    config: SheetConfig,
    row: list[Any],
    result: ToggleResult,
    transform: Callable[[str], str | None],
) -> str | None:
    try:
        file_id = parse_file_reference(column_value(row, config.file_col))
    except InvalidFileReference as e:
        result.file_error = str(e)
        return None
    if not file_id:
        return None
    renamed = rename_file(ctx, file_id=file_id, transform=transform)
    result.file_renamed = renamed.renamed
    result.file_name = renamed.new_name or renamed.old_name
    result.file_error = renamed.error
    return file_id
