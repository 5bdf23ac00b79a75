from __future__ import annotations

from typing import Any

from claimsync.core.cells import cell_text, column_value
from claimsync.core.context import ClaimsContext
from claimsync.core.logging import get_logger, log_event
from claimsync.modules.sheets.models import CalcMethod, SheetConfig

logger = get_logger(__name__)


def first_letters(row: list[Any], cols: tuple[int, ...]) -> str:
    letters = []
    for col in cols:
        text = cell_text(column_value(row, col)).strip()
        if text:
            letters.append(text[0].upper())
    return "".join(letters)


def concat(row: list[Any], col1: int, col2: int) -> str:
    left = cell_text(column_value(row, col1)).strip()
    right = cell_text(column_value(row, col2)).strip()
    return f"{left}-{right}"


def compute_description(config: SheetConfig, row: list[Any]) -> str | None:
    if config.calc_method == CalcMethod.FIRST_LETTERS:
        return first_letters(row, config.calc_cols)
    if config.calc_method == CalcMethod.CONCAT:
        col1, col2 = config.calc_cols
        return concat(row, col1, col2)
    return None


def apply_description(
    ctx: ClaimsContext, *, config: SheetConfig, row_number: int, row: list[Any]
) -> list[Any]:
    """Write the computed description and return the re-read row."""
    description = compute_description(config, row)
    if description is None:
        return row
    ctx.rows.write_cell(
        sheet=config.sheet_name, row=row_number, col=config.description_col, value=description
    )
    log_event(
        logger,
        "description.calculated",
        method=config.calc_method.value if config.calc_method else None,
        description=description,
    )
    return ctx.rows.read_row(sheet=config.sheet_name, row=row_number)
