from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from claimsync.core.cells import cell_date, cell_text, column_value
from claimsync.modules.sheets.models import CalcMethod, NameTemplate, SheetKind
from claimsync.modules.sheets.service import SHEET_CONFIGS, TRAVEL_SHEET, classify


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, ""),
        (50.0, "50"),
        (12.5, "12.5"),
        (202511, "202511"),
        (" Lunch ", " Lunch "),
        (date(2025, 1, 10), "2025-01-10"),
        (datetime(2025, 1, 10), "2025-01-10"),
    ],
)
def test_cell_text_renders_spreadsheet_values(value, expected):
    assert cell_text(value) == expected


def test_cell_date_accepts_iso_day_first_and_serial_values():
    assert cell_date("2025-01-10", tz="Europe/Lisbon") == date(2025, 1, 10)
    assert cell_date("10/01/2025", tz="Europe/Lisbon") == date(2025, 1, 10)
    assert cell_date(45667, tz="Europe/Lisbon") == date(2025, 1, 10)
    assert cell_date(datetime(2025, 1, 9, 23, 30, tzinfo=timezone.utc), tz="Europe/Berlin") == date(
        2025, 1, 10
    )
    assert cell_date("", tz="Europe/Lisbon") is None
    assert cell_date("soon", tz="Europe/Lisbon") is None


def test_column_value_is_one_based_and_tolerates_short_rows():
    row = ["a", "b"]
    assert column_value(row, 1) == "a"
    assert column_value(row, 5) is None
    assert column_value(row, None) is None


def test_classify_returns_one_config_per_known_sheet():
    names = [cfg.sheet_name for cfg in SHEET_CONFIGS.values()]
    assert len(names) == len(set(names))
    for cfg in SHEET_CONFIGS.values():
        assert classify(cfg.sheet_name) is cfg


def test_classify_unknown_sheet_is_no_match():
    assert classify("Sheet1") is None
    assert classify("iva") is None
    assert classify("") is None
    assert classify(None) is None


def test_sheet_configs_carry_their_rules():
    travel = classify(TRAVEL_SHEET)
    assert travel.kind == SheetKind.TRAVEL
    assert travel.send_email and travel.email_sent_col == 9
    assert not travel.calculate_description

    work = SHEET_CONFIGS[SheetKind.WORK]
    assert work.calc_method == CalcMethod.FIRST_LETTERS
    assert work.name_template == NameTemplate.DESCRIPTION_SPACE_DATE

    income = SHEET_CONFIGS[SheetKind.INCOME]
    assert income.status_col == 8
    assert income.claim_label == "Fatura"
    assert not income.claim_rename
