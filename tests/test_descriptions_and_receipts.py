from __future__ import annotations

from datetime import date

import pytest

from claimsync.core.errors import InvalidFileReference, ValidationError
from claimsync.modules.descriptions.service import (
    apply_description,
    compute_description,
    concat,
    first_letters,
)
from claimsync.modules.receipts.service import (
    base_name,
    claimed_name,
    extension_of,
    parse_file_reference,
    rename_file,
    strip_claimed_prefix,
)
from claimsync.modules.sheets.models import SheetKind
from claimsync.modules.sheets.service import SHEET_CONFIGS, TRAVEL_SHEET

from conftest import FILE_ID


def test_first_letters_uppercases_trimmed_initials_in_column_order():
    row = ["ts", "2025-02-01", "  acme corp", "website", "", "x"]
    assert first_letters(row, (3, 4, 5)) == "AW"
    assert first_letters(row, (4, 3)) == "WA"


def test_concat_joins_two_columns_with_hyphen():
    row = ["ts", "2025-04-05", " Ana ", "Clinic Lx"]
    assert concat(row, 3, 4) == "Ana-Clinic Lx"


def test_compute_description_only_for_calculated_sheets():
    row = ["ts", "2025-04-05", "Ana", "Clinic", "45"]
    assert compute_description(SHEET_CONFIGS[SheetKind.HEALTH], row) == "Ana-Clinic"
    assert compute_description(SHEET_CONFIGS[SheetKind.TRAVEL], row) is None


def test_apply_description_writes_cell_and_returns_reread_row(ctx):
    config = SHEET_CONFIGS[SheetKind.WORK]
    ctx.rows.append_row(
        sheet="Work", values=["ts", "2025-02-01", "acme", "website", "travel", "", "", "", ""]
    )
    row = ctx.rows.read_row(sheet="Work", row=2)

    updated = apply_description(ctx, config=config, row_number=2, row=row)

    assert updated[5] == "AWT"
    assert ctx.rows.read_row(sheet="Work", row=2)[5] == "AWT"


@pytest.mark.parametrize(
    "raw",
    [
        FILE_ID,
        f"https://drive.google.com/open?id={FILE_ID}",
        f"https://drive.google.com/file/d/{FILE_ID}/view?usp=sharing",
        f"https://drive/.../{FILE_ID}",
        f"https://drive.google.com/open?id={FILE_ID}, https://drive.google.com/open?id=other",
    ],
)
def test_parse_file_reference_extracts_drive_id(raw):
    assert parse_file_reference(raw) == FILE_ID


def test_parse_file_reference_empty_is_absent():
    assert parse_file_reference("") is None
    assert parse_file_reference(None) is None


@pytest.mark.parametrize("raw", ["receipt.pdf", "https://example.com/short", "see attached"])
def test_parse_file_reference_fails_closed_on_mismatch(raw):
    with pytest.raises(InvalidFileReference):
        parse_file_reference(raw)


def test_extension_of_keeps_trailing_suffix_only():
    assert extension_of("scan.final.PDF") == ".PDF"
    assert extension_of("no extension") == ""
    assert extension_of("weird. name") == ""


def test_base_name_templates():
    travel = SHEET_CONFIGS[SheetKind.TRAVEL]
    row = ["TripA", "2025-01-10", "", 50.0, "EUR", "Team lunch  out", FILE_ID]
    assert base_name(travel, row, tz="Europe/Lisbon") == "20250110_Team_lunch_out_50_EUR"

    work = SHEET_CONFIGS[SheetKind.WORK]
    row = ["ts", "2025-02-01", "a", "w", "t", "AWT", FILE_ID]
    assert base_name(work, row, tz="Europe/Lisbon") == "AWT 2025-02-01"


def test_base_name_requires_a_date():
    with pytest.raises(ValidationError):
        base_name(SHEET_CONFIGS[SheetKind.IVA], ["ts", "", "x"], tz="Europe/Lisbon")


def test_claimed_prefix_is_added_and_removed_exactly():
    name = claimed_name("20250302_Chair.jpg", claimed_on=date(2026, 1, 15))
    assert name == "Claimed (15-01-2026) 20250302_Chair.jpg"
    assert strip_claimed_prefix(name, claimed_on="15-01-2026") == "20250302_Chair.jpg"
    assert strip_claimed_prefix(name, claimed_on="14-01-2026") is None
    assert strip_claimed_prefix(name) == "20250302_Chair.jpg"
    assert strip_claimed_prefix("20250302_Chair.jpg") is None


def test_rename_file_reports_storage_failures_without_raising(ctx):
    result = rename_file(ctx, file_id="missing-file-id-0000000000000", transform=lambda n: "x.pdf")
    assert result.renamed is False
    assert "File not found" in result.error


def test_travel_sheet_constant_matches_form_sheet():
    assert SHEET_CONFIGS[SheetKind.TRAVEL].sheet_name == TRAVEL_SHEET
