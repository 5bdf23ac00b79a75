from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from claimsync.core.context import ClaimsContext
from claimsync.core.errors import ClaimsError
from claimsync.core.logging import get_logger, log_event, log_exception

logger = get_logger(__name__)

OUTCOME_SUCCESS = "Success"
OUTCOME_ERROR = "Error"
OUTCOME_SKIPPED = "Skipped"


def record_run(
    ctx: ClaimsContext,
    *,
    sheet: str,
    row: int,
    action: str,
    outcome: str,
    file_name: str | None = None,
    recipient: str | None = None,
    detail: str | None = None,
) -> None:
    log_event(
        logger,
        "run.recorded",
        level=logging.WARNING if outcome == OUTCOME_ERROR else logging.INFO,
        action=action,
        outcome=outcome,
        file_name=file_name,
        recipient=recipient,
        detail=detail,
    )
    log_sheet = ctx.settings.run_log_sheet
    if not log_sheet:
        return
    stamp = datetime.now(ZoneInfo(ctx.settings.timezone)).strftime("%Y-%m-%d %H:%M:%S")
    try:
        ctx.rows.append_row(
            sheet=log_sheet,
            values=[stamp, sheet, row, action, file_name or "", recipient or "", outcome, detail or ""],
        )
    except ClaimsError:
        log_exception(logger, "run.append.failure", run_log_sheet=log_sheet)
