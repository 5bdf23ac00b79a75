from __future__ import annotations

import email
from email import policy

import pytest

from claimsync.core.errors import ConfigMissing, StaleStatus, ValidationError
from claimsync.modules.sheets.models import SheetKind
from claimsync.modules.status.models import ToggleAction, is_done
from claimsync.modules.status.service import toggle_status

from conftest import FILE_ID


def _seed_income(ctx):
    for n in range(2, 6):
        ctx.rows.append_row(
            sheet="Income",
            values=["ts", "2025-12-01", f"Client {n}", 100 * n, "Consulting", FILE_ID, "", "To do"],
        )


def test_is_done_recognises_claimed_and_fatura_labels():
    assert is_done("Claimed 15-01-2026")
    assert is_done("fatura 15-01-2026")
    assert not is_done("To do")
    assert not is_done("")
    assert not is_done(None)


def test_income_toggle_writes_fatura_status_and_touches_only_status_cell(ctx, frozen_today):
    ctx.files.put(name="invoice.pdf", body=b"pdf", file_id=FILE_ID)
    _seed_income(ctx)
    before = ctx.rows.read_all(sheet="Income")

    result = toggle_status(ctx, kind=SheetKind.INCOME, row_number=5, current_status="To do")

    assert result.new_status == "Fatura 15-01-2026"
    assert result.action == ToggleAction.FATURA
    assert result.file_renamed is False
    after = ctx.rows.read_all(sheet="Income")
    assert after[4][7] == "Fatura 15-01-2026"
    after[4][7] = before[4][7]
    assert after == before
    assert ctx.files.get_name(file_id=FILE_ID) == "invoice.pdf"
    assert result.to_response() == {
        "success": True,
        "row": 5,
        "newStatus": "Fatura 15-01-2026",
        "action": "fatura",
        "fileRenamed": False,
        "emailSent": False,
    }


def test_iva_round_trip_restores_status_and_file_name(ctx, frozen_today):
    ctx.files.put(name="20250302_Chair.jpg", body=b"jpg", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="IVA",
        values=["ts", "2025-03-02", "Loja", "123", 10, 2.3, "Chair", FILE_ID, "", "To do"],
    )

    claimed = toggle_status(ctx, kind=SheetKind.IVA, row_number=2, current_status="To do")

    assert claimed.new_status == "Claimed 15-01-2026"
    assert claimed.action == ToggleAction.CLAIMED
    assert claimed.file_renamed is True
    assert ctx.files.get_name(file_id=FILE_ID) == "Claimed (15-01-2026) 20250302_Chair.jpg"

    undone = toggle_status(
        ctx, kind=SheetKind.IVA, row_number=2, current_status="Claimed 15-01-2026"
    )

    assert undone.new_status == "To do"
    assert undone.action == ToggleAction.TODO
    assert ctx.rows.read_row(sheet="IVA", row=2)[9] == "To do"
    assert ctx.files.get_name(file_id=FILE_ID) == "20250302_Chair.jpg"


def test_claim_prefix_is_not_added_twice(ctx, frozen_today):
    ctx.files.put(name="Claimed (01-01-2026) 20250302_Chair.jpg", body=b"jpg", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="IVA",
        values=["ts", "2025-03-02", "Loja", "123", 10, 2.3, "Chair", FILE_ID, "", "To do"],
    )

    result = toggle_status(ctx, kind=SheetKind.IVA, row_number=2, current_status="To do")

    assert result.file_renamed is False
    assert ctx.files.get_name(file_id=FILE_ID) == "Claimed (01-01-2026) 20250302_Chair.jpg"


def test_work_unclaim_rebuilds_name_from_supplied_description_and_date(ctx, frozen_today):
    ctx.files.put(name="Claimed (15-01-2026) AWT 2025-02-01.png", body=b"png", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="Work",
        values=["ts", "2025-02-01", "a", "w", "t", "AWT", FILE_ID, "Yes", "Claimed 15-01-2026"],
    )

    result = toggle_status(
        ctx,
        kind=SheetKind.WORK,
        row_number=2,
        current_status="Claimed 15-01-2026",
        description="AWX",
        expense_on="2025-02-03",
    )

    assert result.new_status == "To do"
    assert result.file_renamed is True
    assert result.file_name == "AWX 2025-02-03.png"
    assert ctx.files.get_name(file_id=FILE_ID) == "AWX 2025-02-03.png"


def test_work_unclaim_falls_back_to_row_cells(ctx, frozen_today):
    ctx.files.put(name="Claimed (15-01-2026) AWT 2025-02-01.png", body=b"png", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="Work",
        values=["ts", "2025-02-01", "a", "w", "t", "AWT", FILE_ID, "Yes", "Claimed 15-01-2026"],
    )

    toggle_status(ctx, kind=SheetKind.WORK, row_number=2, current_status="Claimed 15-01-2026")

    assert ctx.files.get_name(file_id=FILE_ID) == "AWT 2025-02-01.png"


def test_health_claim_sends_notice(ctx, frozen_today):
    ctx.files.put(name="20250405_Ana-Clinic.pdf", body=b"pdf", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="Health",
        values=["ts", "2025-04-05", "Ana", "Clinic", 45, "Ana-Clinic", FILE_ID, "Yes", "To do"],
    )

    result = toggle_status(ctx, kind=SheetKind.HEALTH, row_number=2, current_status="To do")

    assert result.email_sent is True
    assert result.file_name == "Claimed (15-01-2026) 20250405_Ana-Clinic.pdf"
    sent = ctx.mailer.sent_messages()
    assert len(sent) == 1
    msg = email.message_from_bytes(sent[0].read_bytes(), policy=policy.default)
    assert msg["Subject"] == "health claim filed Ana-Clinic"
    assert "Claimed 15-01-2026" in msg.get_content()


def test_stale_client_status_is_rejected_without_changes(ctx, frozen_today):
    ctx.files.put(name="20250302_Chair.jpg", body=b"jpg", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="IVA",
        values=["ts", "2025-03-02", "Loja", "123", 10, 2.3, "Chair", FILE_ID, "", "Claimed 14-01-2026"],
    )

    with pytest.raises(StaleStatus):
        toggle_status(ctx, kind=SheetKind.IVA, row_number=2, current_status="To do")

    assert ctx.rows.read_row(sheet="IVA", row=2)[9] == "Claimed 14-01-2026"
    assert ctx.files.get_name(file_id=FILE_ID) == "20250302_Chair.jpg"


def test_trust_client_mode_follows_submitted_status(ctx, frozen_today):
    ctx.settings.status_check = "trust-client"
    ctx.rows.append_row(
        sheet="Income",
        values=["ts", "2025-12-01", "Client", 100, "Consulting", "", "", "Fatura 10-01-2026"],
    )

    result = toggle_status(ctx, kind=SheetKind.INCOME, row_number=2, current_status="To do")

    assert result.new_status == "Fatura 15-01-2026"


def test_toggle_rejects_header_row_and_statusless_sheet(ctx):
    with pytest.raises(ValidationError):
        toggle_status(ctx, kind=SheetKind.IVA, row_number=1, current_status="To do")
    with pytest.raises(ValidationError):
        toggle_status(ctx, kind=SheetKind.TRAVEL, row_number=2, current_status="To do")


def test_unparseable_file_reference_is_reported_not_raised(ctx, frozen_today):
    ctx.rows.append_row(
        sheet="IVA",
        values=["ts", "2025-03-02", "Loja", "123", 10, 2.3, "Chair", "see email", "", "To do"],
    )

    result = toggle_status(ctx, kind=SheetKind.IVA, row_number=2, current_status="To do")

    assert result.new_status == "Claimed 15-01-2026"
    assert result.file_renamed is False
    assert "No file id found" in result.to_response()["fileError"]


def test_toggle_of_missing_row_is_rejected_without_writes(ctx, frozen_today):
    ctx.rows.append_row(
        sheet="IVA",
        values=["ts", "2025-03-02", "Loja", "123", 10, 2.3, "Chair", FILE_ID, "", "To do"],
    )
    before = ctx.rows.read_all(sheet="IVA")

    with pytest.raises(ValidationError, match="Row 999 not found"):
        toggle_status(ctx, kind=SheetKind.IVA, row_number=999, current_status="To do")

    ctx.settings.status_check = "trust-client"
    with pytest.raises(ValidationError, match="Row 999 not found"):
        toggle_status(ctx, kind=SheetKind.IVA, row_number=999, current_status="To do")

    assert ctx.rows.read_all(sheet="IVA") == before


def test_health_claim_without_recipient_leaves_row_and_file_untouched(ctx, frozen_today):
    ctx.settings.recipient_email = None
    ctx.files.put(name="20250405_Ana-Clinic.pdf", body=b"pdf", file_id=FILE_ID)
    ctx.rows.append_row(
        sheet="Health",
        values=["ts", "2025-04-05", "Ana", "Clinic", 45, "Ana-Clinic", FILE_ID, "Yes", "To do"],
    )

    with pytest.raises(ConfigMissing, match="RECIPIENT_EMAIL not configured"):
        toggle_status(ctx, kind=SheetKind.HEALTH, row_number=2, current_status="To do")

    assert ctx.rows.read_row(sheet="Health", row=2)[8] == "To do"
    assert ctx.files.get_name(file_id=FILE_ID) == "20250405_Ana-Clinic.pdf"
    assert ctx.mailer.sent_messages() == []
