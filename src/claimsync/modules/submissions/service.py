from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from claimsync.core.cells import cell_text, column_value
from claimsync.core.context import ClaimsContext
from claimsync.core.logging import get_logger, log_event, reset_row_context, set_row_context
from claimsync.modules.descriptions.service import apply_description
from claimsync.modules.notifications.service import email_already_sent, send_receipt
from claimsync.modules.receipts.service import description_of, drive_link, rename_for_submission
from claimsync.modules.runlog.service import (
    OUTCOME_ERROR,
    OUTCOME_SKIPPED,
    OUTCOME_SUCCESS,
    record_run,
)
from claimsync.modules.sheets.models import SheetConfig, SheetKind
from claimsync.modules.sheets.service import classify
from claimsync.modules.status.models import TODO_STATUS

logger = get_logger(__name__)


@dataclass
class SubmissionResult:
    sheet: str
    row: int
    processed: bool = False
    skipped_reason: str | None = None
    status_defaulted: bool = False
    description: str | None = None
    file_id: str | None = None
    file_name: str | None = None
    renamed: bool = False
    email_sent: bool = False
    errors: list[str] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {
            "success": not self.errors,
            "sheet": self.sheet,
            "row": self.row,
            "processed": self.processed,
            "skipped": self.skipped_reason,
            "statusDefaulted": self.status_defaulted,
            "description": self.description,
            "fileId": self.file_id,
            "fileName": self.file_name,
            "renamed": self.renamed,
            "emailSent": self.email_sent,
            **({"error": "; ".join(self.errors)} if self.errors else {}),
        }


def _subject_description(config: SheetConfig, row: list[Any]) -> str:
    description = description_of(config, row)
    if config.kind == SheetKind.TRAVEL:
        return re.sub(r"\s+", "_", description)
    return description


def process_submission(ctx: ClaimsContext, *, sheet_name: str, row_number: int) -> SubmissionResult:
    result = SubmissionResult(sheet=sheet_name, row=row_number)
    config = classify(sheet_name)
    if config is None:
        result.skipped_reason = "unknown sheet"
        log_event(logger, "submission.skipped", sheet=sheet_name, reason=result.skipped_reason)
        return result
    if row_number <= 1:
        result.skipped_reason = "header row"
        return result

    tokens = set_row_context(sheet=sheet_name, row=row_number)
    try:
        return _process(ctx, config=config, row_number=row_number, result=result)
    finally:
        reset_row_context(tokens)


def _process(
    ctx: ClaimsContext, *, config: SheetConfig, row_number: int, result: SubmissionResult
) -> SubmissionResult:
    sheet = config.sheet_name
    row = ctx.rows.read_row(sheet=sheet, row=row_number)
    if not any(cell_text(v).strip() for v in row):
        result.skipped_reason = "empty row"
        log_event(logger, "submission.skipped", reason=result.skipped_reason)
        return result

    if email_already_sent(config, row):
        result.skipped_reason = "already sent"
        record_run(
            ctx, sheet=sheet, row=row_number, action="Skipped (already sent)", outcome=OUTCOME_SKIPPED
        )
        return result

    recipient = ctx.settings.require("recipient_email") if config.send_email else None
    result.processed = True

    if config.status_col is not None and not cell_text(column_value(row, config.status_col)).strip():
        ctx.rows.write_cell(sheet=sheet, row=row_number, col=config.status_col, value=TODO_STATUS)
        result.status_defaulted = True
        log_event(logger, "submission.status.defaulted", status=TODO_STATUS)

    if config.calculate_description:
        row = apply_description(ctx, config=config, row_number=row_number, row=row)
    result.description = description_of(config, row)

    rename = rename_for_submission(ctx, config=config, row=row)
    result.file_id = rename.file_id
    result.file_name = rename.new_name
    result.renamed = rename.renamed
    if rename.error:
        result.errors.append(rename.error)

    detail = drive_link(rename.file_id) if rename.file_id else None
    if config.send_email and recipient:
        if rename.file_id:
            notify = send_receipt(
                ctx,
                config=config,
                row_number=row_number,
                row=row,
                file_id=rename.file_id,
                description=_subject_description(config, row),
                recipient=recipient,
            )
            result.email_sent = notify.sent
            if notify.error:
                result.errors.append(notify.error)
        else:
            result.errors.append("No receipt file to attach")

    record_run(
        ctx,
        sheet=sheet,
        row=row_number,
        action="Rename + Email" if config.send_email else "Rename",
        outcome=OUTCOME_ERROR if result.errors else OUTCOME_SUCCESS,
        file_name=rename.new_name,
        recipient=recipient,
        detail="; ".join(result.errors) if result.errors else (f"Link: {detail}" if detail else None),
    )
    return result
