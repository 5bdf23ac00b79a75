from __future__ import annotations

import enum
from dataclasses import dataclass


class SheetKind(str, enum.Enum):
    TRAVEL = "TRAVEL"
    IVA = "IVA"
    WORK = "WORK"
    HEALTH = "HEALTH"
    INCOME = "INCOME"


class CalcMethod(str, enum.Enum):
    FIRST_LETTERS = "FIRST_LETTERS"
    CONCAT = "CONCAT"


class NameTemplate(str, enum.Enum):
    # {yyyyMMdd}_{part}_{part}...{ext}
    DATE_FIRST = "DATE_FIRST"
    # {description} {yyyy-MM-dd}{ext}
    DESCRIPTION_SPACE_DATE = "DESCRIPTION_SPACE_DATE"


class UnclaimMode(str, enum.Enum):
    NONE = "NONE"
    STRIP_PREFIX = "STRIP_PREFIX"
    REBUILD_NAME = "REBUILD_NAME"


@dataclass(frozen=True)
class SheetConfig:
    kind: SheetKind
    sheet_name: str
    headers: tuple[str, ...]
    date_col: int
    description_col: int
    file_col: int
    status_col: int | None = None
    email_sent_col: int | None = None
    send_email: bool = False
    calc_method: CalcMethod | None = None
    calc_cols: tuple[int, ...] = ()
    name_template: NameTemplate = NameTemplate.DATE_FIRST
    # Columns joined after the date in DATE_FIRST names; defaults to the description.
    name_part_cols: tuple[int, ...] = ()
    amount_col: int | None = None
    currency_col: int | None = None
    claim_label: str = "Claimed"
    claim_rename: bool = False
    claim_notify: bool = False
    unclaim_mode: UnclaimMode = UnclaimMode.NONE

    @property
    def calculate_description(self) -> bool:
        return self.calc_method is not None

    @property
    def label(self) -> str:
        return self.kind.value.lower()
