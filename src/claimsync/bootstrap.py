from __future__ import annotations

import logging

from claimsync.core.context import ClaimsContext
from claimsync.core.forms import LocalFormStore
from claimsync.core.logging import get_logger, log_event
from claimsync.core.sheets import WorkbookRowStore
from claimsync.modules.sheets.service import workbook_headers

logger = get_logger(__name__)

_SECRETS = ("delete_api_key", "recipient_email", "form_id")


def bootstrap(ctx: ClaimsContext) -> None:
    settings = ctx.settings
    for name in _SECRETS:
        if not getattr(settings, name):
            log_event(logger, "config.missing", level=logging.WARNING, setting=name.upper())

    if settings.environment != "dev":
        return

    # Seed local backends so a fresh checkout can serve requests.
    if settings.sheets_backend == "local":
        rows = ctx.rows
        if isinstance(rows, WorkbookRowStore):
            rows.ensure_sheets(workbook_headers(run_log_sheet=settings.run_log_sheet))
    if settings.forms_backend == "local":
        forms = ctx.forms
        if isinstance(forms, LocalFormStore):
            forms.ensure_dropdown(title="Expense Reason")
