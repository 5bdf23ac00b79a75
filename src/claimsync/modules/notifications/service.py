from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from claimsync.core.cells import cell_text, column_value
from claimsync.core.context import ClaimsContext
from claimsync.core.errors import ClaimsError
from claimsync.core.logging import get_logger, log_event, log_exception
from claimsync.core.mail import Attachment, OutgoingMessage
from claimsync.modules.receipts.service import drive_link
from claimsync.modules.sheets.models import SheetConfig, SheetKind
from claimsync.modules.sheets.service import TRAVEL_REASON_COL

logger = get_logger(__name__)

EMAIL_SENT_FLAG = "Yes"


@dataclass
class NotifyResult:
    sent: bool
    recipient: str
    subject: str
    error: str | None = None


def email_already_sent(config: SheetConfig, row: list[Any]) -> bool:
    if config.email_sent_col is None:
        return False
    return bool(cell_text(column_value(row, config.email_sent_col)).strip())


def _amount_line(config: SheetConfig, row: list[Any]) -> str | None:
    if config.amount_col is None:
        return None
    amount = cell_text(column_value(row, config.amount_col)).strip()
    currency = cell_text(column_value(row, config.currency_col)).strip()
    if not amount:
        return None
    return f"Amount: {amount} {currency}".rstrip()


def compose_receipt_message(
    config: SheetConfig,
    row: list[Any],
    *,
    recipient: str,
    file_id: str,
    description: str,
    attachment: Attachment | None,
) -> OutgoingMessage:
    link = drive_link(file_id)
    if config.kind == SheetKind.TRAVEL:
        trip = cell_text(column_value(row, TRAVEL_REASON_COL)).strip()
        subject = f"travel claim {trip} {description}".strip()
        intro = f"Here is the travel claim receipt for {trip} ({description})."
    else:
        subject = f"{config.label} claim {description}".strip()
        intro = f"Here is the {config.label} claim receipt ({description})."

    lines = ["Hi,", "", intro, ""]
    amount_line = _amount_line(config, row)
    if amount_line:
        lines += [amount_line, ""]
    lines += ["You can also access the file here:", link, "", "Regards,", "Automated System"]
    return OutgoingMessage(
        to=recipient,
        subject=subject,
        body="\n".join(lines),
        attachments=[attachment] if attachment else [],
    )


def send_receipt(
    ctx: ClaimsContext,
    *,
    config: SheetConfig,
    row_number: int,
    row: list[Any],
    file_id: str,
    description: str,
    recipient: str,
) -> NotifyResult:
    """Email the receipt and set the email-sent flag; failures leave the flag unset."""
    subject = ""
    try:
        stored = ctx.files.get(file_id=file_id)
        message = compose_receipt_message(
            config,
            row,
            recipient=recipient,
            file_id=file_id,
            description=description,
            attachment=Attachment(
                filename=stored.name, content_type=stored.content_type, body=stored.body
            ),
        )
        subject = message.subject
        ctx.mailer.send(message)
    except ClaimsError as e:
        log_exception(logger, "notification.receipt.failure", file_id=file_id, to=recipient)
        return NotifyResult(sent=False, recipient=recipient, subject=subject, error=str(e))

    if config.email_sent_col is not None:
        ctx.rows.write_cell(
            sheet=config.sheet_name,
            row=row_number,
            col=config.email_sent_col,
            value=EMAIL_SENT_FLAG,
        )
    log_event(logger, "notification.receipt.sent", file_id=file_id, to=recipient, subject=subject)
    return NotifyResult(sent=True, recipient=recipient, subject=subject)


def send_claim_notice(
    ctx: ClaimsContext,
    *,
    config: SheetConfig,
    row: list[Any],
    recipient: str,
    new_status: str,
    file_id: str | None,
    file_name: str | None,
) -> NotifyResult:
    description = cell_text(column_value(row, config.description_col)).strip()
    subject = f"{config.label} claim filed {description}".strip()
    lines = ["Hi,", "", f"The {config.label} claim {description} is now: {new_status}.", ""]
    amount_line = _amount_line(config, row)
    if amount_line:
        lines += [amount_line, ""]
    if file_id:
        lines += [f"Receipt: {file_name or file_id}", drive_link(file_id), ""]
    lines += ["Regards,", "Automated System"]
    message = OutgoingMessage(to=recipient, subject=subject, body="\n".join(lines))
    try:
        ctx.mailer.send(message)
    except ClaimsError as e:
        log_exception(logger, "notification.claim.failure", to=recipient)
        return NotifyResult(sent=False, recipient=recipient, subject=subject, error=str(e))
    log_event(logger, "notification.claim.sent", to=recipient, subject=subject)
    return NotifyResult(sent=True, recipient=recipient, subject=subject)
