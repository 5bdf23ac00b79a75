from __future__ import annotations

from typing import Any

from claimsync.core.cells import cell_text
from claimsync.core.context import ClaimsContext
from claimsync.core.errors import ClaimsError, ValidationError
from claimsync.core.forms import Dropdown
from claimsync.core.logging import get_logger, log_event, log_exception
from claimsync.modules.sheets.service import TRAVEL_REASON_COL, TRAVEL_SHEET

logger = get_logger(__name__)

DROPDOWN_KEYWORDS = ("trip", "expense", "reason")


def find_dropdown(ctx: ClaimsContext) -> Dropdown:
    ctx.settings.require("form_id")
    for dropdown in ctx.forms.list_dropdowns():
        title = dropdown.title.lower()
        if any(keyword in title for keyword in DROPDOWN_KEYWORDS):
            return dropdown
    raise ValidationError("Expense reason dropdown not found in form")


def _required(value: Any) -> str:
    text = cell_text(value).strip()
    if not text:
        raise ValidationError("Expense reason is required")
    return text


def add_choice(ctx: ClaimsContext, *, value: Any) -> dict[str, Any]:
    reason = _required(value)
    dropdown = find_dropdown(ctx)
    if reason in dropdown.choices:
        raise ValidationError(f'Expense reason "{reason}" already exists in form')
    choices = sorted([*dropdown.choices, reason])
    ctx.forms.set_choices(dropdown, choices)
    log_event(logger, "dropdown.choice.added", reason=reason, choice_count=len(choices))
    return {"success": True, "tripName": reason, "totalTrips": len(choices)}


def remove_choice(ctx: ClaimsContext, *, value: Any) -> dict[str, Any]:
    reason = cell_text(value)
    dropdown = find_dropdown(ctx)
    choices = [c for c in dropdown.choices if cell_text(c) != reason]
    if len(choices) != len(dropdown.choices):
        ctx.forms.set_choices(dropdown, choices)
    log_event(
        logger,
        "dropdown.choice.removed",
        reason=reason,
        removed=len(dropdown.choices) - len(choices),
        choice_count=len(choices),
    )
    return {"success": True, "tripName": reason, "totalTrips": len(choices)}


def distinct_reasons(ctx: ClaimsContext) -> list[str]:
    rows = ctx.rows.read_all(sheet=TRAVEL_SHEET)
    reasons = set()
    for row in rows[1:]:
        text = cell_text(row[TRAVEL_REASON_COL - 1] if row else None)
        if text.strip():
            reasons.add(text)
    return sorted(reasons)


def sync_choices(ctx: ClaimsContext) -> dict[str, Any]:
    reasons = distinct_reasons(ctx)
    dropdown = find_dropdown(ctx)
    ctx.forms.set_choices(dropdown, reasons)
    log_event(logger, "dropdown.synced", choice_count=len(reasons))
    return {"success": True, "tripNames": reasons, "totalTrips": len(reasons)}


def delete_expense_reason(ctx: ClaimsContext, *, value: Any) -> dict[str, Any]:
    reason = _required(value)
    rows = ctx.rows.read_all(sheet=TRAVEL_SHEET)
    deleted = 0
    # Bottom-up so earlier row numbers stay valid; row 1 is the header.
    for idx in range(len(rows) - 1, 0, -1):
        row = rows[idx]
        if cell_text(row[TRAVEL_REASON_COL - 1] if row else None) == reason:
            ctx.rows.delete_row(sheet=TRAVEL_SHEET, row=idx + 1)
            deleted += 1
    log_event(logger, "expense_reason.rows.deleted", reason=reason, deleted_rows=deleted)

    remaining = distinct_reasons(ctx)
    form_updated = True
    try:
        remove_choice(ctx, value=reason)
    except ClaimsError:
        form_updated = False
        log_exception(logger, "expense_reason.dropdown.failure", reason=reason)

    return {
        "success": True,
        "trip": reason,
        "deletedRows": deleted,
        "remainingTrips": len(remaining),
        "formUpdated": form_updated,
    }
