from __future__ import annotations

import json
import logging
import secrets
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError as PayloadError

from claimsync.core.config import VERSION, Settings
from claimsync.core.context import ClaimsContext
from claimsync.core.errors import AuthError, ClaimsError, ValidationError
from claimsync.core.logging import get_logger, log_event, log_exception
from claimsync.modules.dropdowns.service import add_choice, delete_expense_reason, sync_choices
from claimsync.modules.endpoint.schemas import (
    EndpointRequest,
    ExpenseReasonRequest,
    FormSubmitRequest,
    ToggleRequest,
)
from claimsync.modules.sheets.models import SheetKind
from claimsync.modules.status.service import toggle_status
from claimsync.modules.submissions.service import process_submission

logger = get_logger(__name__)

TOGGLE_ACTIONS: dict[str, SheetKind] = {
    "toggleIvaStatus": SheetKind.IVA,
    "toggleWorkStatus": SheetKind.WORK,
    "toggleHealthStatus": SheetKind.HEALTH,
    "toggleIncomeStatus": SheetKind.INCOME,
}
ADD_ACTIONS = {"addTrip", "addExpenseReason"}
DELETE_ACTIONS = {"delete", "deleteTrip", "deleteExpenseReason"}
SYNC_ACTIONS = {"syncExpenseReasons"}


def failure(error: str) -> dict[str, Any]:
    return {"success": False, "error": error}


def status_payload() -> dict[str, Any]:
    return {"service": "claimsync", "status": "ok", "version": VERSION}


def verify_api_key(settings: Settings, api_key: str | None) -> None:
    expected = settings.require("delete_api_key")
    if not api_key or not secrets.compare_digest(api_key.encode(), expected.encode()):
        raise AuthError("Invalid API key")


def _parse_body(body: bytes | str | dict[str, Any]) -> dict[str, Any]:
    if isinstance(body, dict):
        return body
    try:
        data = json.loads(body or b"{}")
    except ValueError as e:
        raise ValidationError("Request body must be JSON") from e
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _payload_error(error: PayloadError) -> str:
    first = error.errors()[0] if error.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ())) or "body"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def resolve_action(settings: Settings, action: str | None) -> str:
    if not action:
        if settings.legacy_default_delete:
            return "delete"
        raise ValidationError("Action is required")
    if action in TOGGLE_ACTIONS or action in ADD_ACTIONS | DELETE_ACTIONS | SYNC_ACTIONS:
        return action
    raise ValidationError(f"Unknown action: {action}")


def _run_action(ctx: ClaimsContext, action: str, data: dict[str, Any]) -> dict[str, Any]:
    if action in TOGGLE_ACTIONS:
        req = ToggleRequest.model_validate(data)
        result = toggle_status(
            ctx,
            kind=TOGGLE_ACTIONS[action],
            row_number=req.row,
            current_status=req.current_status,
            description=req.description,
            expense_on=req.expense_date,
        )
        return result.to_response()
    if action in SYNC_ACTIONS:
        return sync_choices(ctx)

    reason = ExpenseReasonRequest.model_validate(data).trip_name
    if action in ADD_ACTIONS:
        return add_choice(ctx, value=reason)
    return delete_expense_reason(ctx, value=reason)


def _guarded(handler: Callable[[], dict[str, Any]], *, event: str) -> dict[str, Any]:
    try:
        return handler()
    except AuthError as e:
        log_event(logger, f"{event}.unauthorized", level=logging.WARNING)
        return failure(str(e))
    except PayloadError as e:
        return failure(_payload_error(e))
    except ClaimsError as e:
        log_event(
            logger, f"{event}.failure", level=logging.WARNING, error_type=type(e).__name__, error=str(e)
        )
        return failure(str(e))
    except Exception as e:  # noqa: BLE001
        log_exception(logger, f"{event}.error")
        return failure(str(e) or type(e).__name__)


def dispatch(ctx: ClaimsContext, body: bytes | str | dict[str, Any]) -> dict[str, Any]:
    def _handle() -> dict[str, Any]:
        data = _parse_body(body)
        envelope = EndpointRequest.model_validate(data)
        verify_api_key(ctx.settings, envelope.api_key)
        action = resolve_action(ctx.settings, envelope.action)
        log_event(logger, "endpoint.action", action=action)
        return _run_action(ctx, action, data)

    return _guarded(_handle, event="endpoint")


def handle_form_submit(ctx: ClaimsContext, body: bytes | str | dict[str, Any]) -> dict[str, Any]:
    def _handle() -> dict[str, Any]:
        data = _parse_body(body)
        verify_api_key(ctx.settings, EndpointRequest.model_validate(data).api_key)
        req = FormSubmitRequest.model_validate(data)
        return process_submission(ctx, sheet_name=req.sheet_name, row_number=req.row).to_response()

    return _guarded(_handle, event="submission")
