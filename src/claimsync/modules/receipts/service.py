from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any
from urllib.parse import parse_qs, urlparse

from claimsync.core.cells import (
    cell_date,
    cell_text,
    column_value,
    compact_date,
    day_first_date,
    iso_date,
)
from claimsync.core.context import ClaimsContext
from claimsync.core.errors import ClaimsError, InvalidFileReference, ValidationError
from claimsync.core.logging import get_logger, log_event, log_exception
from claimsync.modules.sheets.models import NameTemplate, SheetConfig

logger = get_logger(__name__)

_FILE_ID_RE = re.compile(r"^[-\w]{25,}$")
_PATH_ID_RE = re.compile(r"/d/([-\w]{25,})")
_EXTENSION_RE = re.compile(r"(\.[^.\s]+)$")
_CLAIMED_PREFIX_RE = re.compile(r"^Claimed \(\d{2}-\d{2}-\d{4}\) ")


@dataclass
class RenameResult:
    file_id: str | None
    old_name: str | None = None
    new_name: str | None = None
    renamed: bool = False
    error: str | None = None


def parse_file_reference(raw: Any) -> str | None:
    text = cell_text(raw).strip()
    if not text:
        return None
    # Form uploads may hold several comma-separated links; the first is the receipt.
    text = text.split(",")[0].strip()
    if _FILE_ID_RE.match(text):
        return text

    parsed = urlparse(text)
    if parsed.scheme in {"http", "https"}:
        for candidate in parse_qs(parsed.query).get("id", []):
            if _FILE_ID_RE.match(candidate):
                return candidate
        m = _PATH_ID_RE.search(parsed.path)
        if m:
            return m.group(1)
        segments = [s for s in parsed.path.split("/") if s]
        if segments and _FILE_ID_RE.match(segments[-1]):
            return segments[-1]
    raise InvalidFileReference(f"No file id found in {text!r}")


def extension_of(name: str) -> str:
    m = _EXTENSION_RE.search(name or "")
    return m.group(1) if m else ""


def drive_link(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def expense_date(config: SheetConfig, row: list[Any], *, tz: str) -> date:
    value = column_value(row, config.date_col)
    parsed = cell_date(value, tz=tz)
    if parsed is None:
        raise ValidationError(f"Invalid expense date: {cell_text(value)!r}")
    return parsed


def description_of(config: SheetConfig, row: list[Any]) -> str:
    return cell_text(column_value(row, config.description_col)).strip()


def base_name(config: SheetConfig, row: list[Any], *, tz: str) -> str:
    expensed_on = expense_date(config, row, tz=tz)
    if config.name_template == NameTemplate.DESCRIPTION_SPACE_DATE:
        return f"{description_of(config, row)} {iso_date(expensed_on)}"

    parts = [compact_date(expensed_on)]
    for col in config.name_part_cols or (config.description_col,):
        text = cell_text(column_value(row, col)).strip()
        if col == config.description_col:
            text = re.sub(r"\s+", "_", text)
        parts.append(text)
    return "_".join(parts)


def rebuild_name(*, description: str, expensed_on: date, extension: str) -> str:
    return f"{description} {iso_date(expensed_on)}{extension}"


def claimed_name(name: str, *, claimed_on: date) -> str:
    return f"Claimed ({day_first_date(claimed_on)}) {name}"


def strip_claimed_prefix(name: str, *, claimed_on: str | None = None) -> str | None:
    if claimed_on:
        prefix = f"Claimed ({claimed_on}) "
        return name[len(prefix):] if name.startswith(prefix) else None
    m = _CLAIMED_PREFIX_RE.match(name)
    return name[m.end():] if m else None


def rename_file(
    ctx: ClaimsContext, *, file_id: str, transform: Callable[[str], str | None]
) -> RenameResult:
    result = RenameResult(file_id=file_id)
    try:
        result.old_name = ctx.files.get_name(file_id=file_id)
        result.new_name = transform(result.old_name)
        if result.new_name and result.new_name != result.old_name:
            ctx.files.rename(file_id=file_id, new_name=result.new_name)
            result.renamed = True
    except ClaimsError as e:
        log_exception(logger, "receipt.rename.failure", file_id=file_id, new_name=result.new_name)
        result.error = str(e)
        return result
    log_event(
        logger,
        "receipt.rename.success" if result.renamed else "receipt.rename.unchanged",
        file_id=file_id,
        old_name=result.old_name,
        new_name=result.new_name,
    )
    return result


def resolve_file_id(config: SheetConfig, row: list[Any]) -> str | None:
    try:
        file_id = parse_file_reference(column_value(row, config.file_col))
    except InvalidFileReference:
        log_exception(logger, "receipt.reference.invalid", col=config.file_col)
        raise
    if not file_id:
        log_event(logger, "receipt.reference.missing", col=config.file_col)
    return file_id


def rename_for_submission(ctx: ClaimsContext, *, config: SheetConfig, row: list[Any]) -> RenameResult:
    try:
        file_id = resolve_file_id(config, row)
    except InvalidFileReference as e:
        return RenameResult(file_id=None, error=str(e))
    if not file_id:
        return RenameResult(file_id=None)

    tz = ctx.settings.timezone
    try:
        stem = base_name(config, row, tz=tz)
    except ValidationError as e:
        log_event(logger, "receipt.rename.failure", file_id=file_id, error=str(e))
        return RenameResult(file_id=file_id, error=str(e))
    return rename_file(ctx, file_id=file_id, transform=lambda old: f"{stem}{extension_of(old)}")
