from __future__ import annotations

import json
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from claimsync.core.config import Settings
from claimsync.core.errors import ExternalCallFailure
from claimsync.core.google import FORMS_BASE_URL, GoogleApiClient
from claimsync.core.logging import get_logger, log_event, log_exception

logger = get_logger(__name__)


@dataclass
class Dropdown:
    item_id: str
    title: str
    choices: list[str] = field(default_factory=list)
    index: int = 0
    question_id: str | None = None


class FormsClient:
    def list_dropdowns(self) -> list[Dropdown]:  # pragma: no cover
        raise NotImplementedError

    def set_choices(self, dropdown: Dropdown, choices: list[str]) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        return None


class LocalFormStore(FormsClient):
    """A form kept as JSON: ``{"items": [{"itemId", "title", "type", "choices"}]}``."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def ensure_dropdown(self, *, title: str) -> None:
        if self._path.exists():
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._write(
            {"items": [{"itemId": uuid.uuid4().hex[:8], "title": title, "type": "DROP_DOWN", "choices": []}]}
        )
        log_event(logger, "forms.local.initialized", path=str(self._path))

    def _read(self) -> dict:
        if not self._path.exists():
            raise ExternalCallFailure(f"Form file not found: {self._path}", service="forms")
        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log_exception(logger, "forms.local.read.failure", path=str(self._path))
            raise ExternalCallFailure(f"Form file unreadable: {e}", service="forms") from e

    def _write(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def list_dropdowns(self) -> list[Dropdown]:
        out: list[Dropdown] = []
        for idx, item in enumerate(self._read().get("items") or []):
            if item.get("type") != "DROP_DOWN":
                continue
            out.append(
                Dropdown(
                    item_id=str(item.get("itemId")),
                    title=str(item.get("title") or ""),
                    choices=[str(c) for c in item.get("choices") or []],
                    index=idx,
                )
            )
        return out

    def set_choices(self, dropdown: Dropdown, choices: list[str]) -> None:
        data = self._read()
        for item in data.get("items") or []:
            if str(item.get("itemId")) == dropdown.item_id:
                item["choices"] = list(choices)
                break
        else:
            raise ExternalCallFailure(f"Form item not found: {dropdown.item_id}", service="forms")
        self._write(data)
        log_event(
            logger,
            "forms.choices.updated",
            backend="local",
            item_id=dropdown.item_id,
            choice_count=len(choices),
        )


class GoogleFormsClient(FormsClient):
    def __init__(
        self,
        *,
        form_id: str,
        access_token: str | None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._form_id = form_id
        self._api = GoogleApiClient(
            service="forms",
            base_url=FORMS_BASE_URL,
            access_token=access_token,
            timeout_s=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._api.close()

    def list_dropdowns(self) -> list[Dropdown]:
        payload = self._api.json("GET", f"forms/{self._form_id}")
        out: list[Dropdown] = []
        for idx, item in enumerate(payload.get("items") or []):
            question = (item.get("questionItem") or {}).get("question") or {}
            choice = question.get("choiceQuestion") or {}
            if choice.get("type") != "DROP_DOWN":
                continue
            out.append(
                Dropdown(
                    item_id=str(item.get("itemId")),
                    title=str(item.get("title") or ""),
                    choices=[str(o.get("value")) for o in choice.get("options") or [] if "value" in o],
                    index=idx,
                    question_id=question.get("questionId"),
                )
            )
        return out

    def set_choices(self, dropdown: Dropdown, choices: list[str]) -> None:
        question: dict = {
            "choiceQuestion": {"type": "DROP_DOWN", "options": [{"value": c} for c in choices]}
        }
        if dropdown.question_id:
            question["questionId"] = dropdown.question_id
        self._api.request(
            "POST",
            f"forms/{self._form_id}:batchUpdate",
            json={
                "requests": [
                    {
                        "updateItem": {
                            "item": {
                                "itemId": dropdown.item_id,
                                "title": dropdown.title,
                                "questionItem": {"question": question},
                            },
                            "location": {"index": dropdown.index},
                            "updateMask": "questionItem.question.choiceQuestion.options",
                        }
                    }
                ]
            },
        )
        log_event(
            logger,
            "forms.choices.updated",
            backend="google",
            item_id=dropdown.item_id,
            choice_count=len(choices),
        )


def build_forms_client(
    settings: Settings, *, transport: httpx.BaseTransport | None = None
) -> FormsClient:
    if settings.forms_backend == "google":
        return GoogleFormsClient(
            form_id=settings.require("form_id"),
            access_token=settings.google_access_token,
            timeout_s=settings.google_timeout_s,
            transport=transport,
        )
    path = settings.local_forms_path
    if not path.is_absolute():
        path = Path(os.getcwd()) / path
    return LocalFormStore(path)
