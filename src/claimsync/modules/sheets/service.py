from __future__ import annotations

from claimsync.modules.sheets.models import (
    CalcMethod,
    NameTemplate,
    SheetConfig,
    SheetKind,
    UnclaimMode,
)

TRAVEL_SHEET = "Claims Form (Responses)"
# Travel column A holds the expense reason (trip) name.
TRAVEL_REASON_COL = 1
RUN_LOG_HEADERS = ["Timestamp", "Sheet", "Row", "Action", "File", "Recipient", "Outcome", "Detail"]

SHEET_CONFIGS: dict[SheetKind, SheetConfig] = {
    SheetKind.TRAVEL: SheetConfig(
        kind=SheetKind.TRAVEL,
        sheet_name=TRAVEL_SHEET,
        headers=(
            "Expense Reason",
            "Expense Date",
            "Timestamp",
            "Amount",
            "Currency",
            "Description",
            "Receipt",
            "Notes",
            "Email sent?",
        ),
        date_col=2,
        description_col=6,
        file_col=7,
        email_sent_col=9,
        send_email=True,
        name_part_cols=(6, 4, 5),
        amount_col=4,
        currency_col=5,
    ),
    SheetKind.IVA: SheetConfig(
        kind=SheetKind.IVA,
        sheet_name="IVA",
        headers=(
            "Timestamp",
            "Invoice Date",
            "Supplier",
            "NIF",
            "Amount",
            "IVA",
            "Description",
            "Invoice",
            "Notes",
            "Status",
        ),
        date_col=2,
        description_col=7,
        file_col=8,
        status_col=10,
        amount_col=5,
        claim_rename=True,
        unclaim_mode=UnclaimMode.STRIP_PREFIX,
    ),
    SheetKind.WORK: SheetConfig(
        kind=SheetKind.WORK,
        sheet_name="Work",
        headers=(
            "Timestamp",
            "Expense Date",
            "Client",
            "Project",
            "Category",
            "Description",
            "Receipt",
            "Email sent?",
            "Status",
        ),
        date_col=2,
        description_col=6,
        file_col=7,
        email_sent_col=8,
        status_col=9,
        send_email=True,
        calc_method=CalcMethod.FIRST_LETTERS,
        calc_cols=(3, 4, 5),
        name_template=NameTemplate.DESCRIPTION_SPACE_DATE,
        claim_rename=True,
        unclaim_mode=UnclaimMode.REBUILD_NAME,
    ),
    SheetKind.HEALTH: SheetConfig(
        kind=SheetKind.HEALTH,
        sheet_name="Health",
        headers=(
            "Timestamp",
            "Expense Date",
            "Patient",
            "Provider",
            "Amount",
            "Description",
            "Receipt",
            "Email sent?",
            "Status",
        ),
        date_col=2,
        description_col=6,
        file_col=7,
        email_sent_col=8,
        status_col=9,
        send_email=True,
        calc_method=CalcMethod.CONCAT,
        calc_cols=(3, 4),
        amount_col=5,
        claim_rename=True,
        claim_notify=True,
        unclaim_mode=UnclaimMode.STRIP_PREFIX,
    ),
    SheetKind.INCOME: SheetConfig(
        kind=SheetKind.INCOME,
        sheet_name="Income",
        headers=(
            "Timestamp",
            "Invoice Date",
            "Client",
            "Amount",
            "Description",
            "Invoice",
            "Notes",
            "Status",
        ),
        date_col=2,
        description_col=5,
        file_col=6,
        status_col=8,
        amount_col=4,
        claim_label="Fatura",
    ),
}

_BY_SHEET_NAME = {cfg.sheet_name: cfg for cfg in SHEET_CONFIGS.values()}


def classify(sheet_name: str | None) -> SheetConfig | None:
    if not sheet_name:
        return None
    return _BY_SHEET_NAME.get(sheet_name)


def config_for(kind: SheetKind) -> SheetConfig:
    return SHEET_CONFIGS[kind]


def workbook_headers(*, run_log_sheet: str | None) -> dict[str, list[str]]:
    headers = {cfg.sheet_name: list(cfg.headers) for cfg in SHEET_CONFIGS.values()}
    if run_log_sheet:
        headers[run_log_sheet] = list(RUN_LOG_HEADERS)
    return headers
