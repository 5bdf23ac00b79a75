from __future__ import annotations

import enum

TODO_STATUS = "To do"
DONE_PREFIXES = ("claimed", "fatura")


class ToggleAction(str, enum.Enum):
    CLAIMED = "claimed"
    FATURA = "fatura"
    TODO = "todo"


def is_done(status: str | None) -> bool:
    return (status or "").strip().lower().startswith(DONE_PREFIXES)
