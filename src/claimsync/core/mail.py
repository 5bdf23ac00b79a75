from __future__ import annotations

import base64
import os
import time
import uuid
from dataclasses import dataclass, field
from email.message import EmailMessage
from pathlib import Path

import httpx

from claimsync.core.config import Settings
from claimsync.core.errors import ExternalCallFailure
from claimsync.core.google import GMAIL_BASE_URL, GoogleApiClient
from claimsync.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)


@dataclass(frozen=True)
class Attachment:
    filename: str
    content_type: str
    body: bytes


@dataclass(frozen=True)
class OutgoingMessage:
    to: str
    subject: str
    body: str
    attachments: list[Attachment] = field(default_factory=list)

    def to_mime(self) -> EmailMessage:
        msg = EmailMessage()
        msg["To"] = self.to
        msg["Subject"] = self.subject
        msg.set_content(self.body)
        for att in self.attachments:
            maintype, _, subtype = att.content_type.partition("/")
            msg.add_attachment(
                att.body,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=att.filename,
            )
        return msg


class Mailer:
    def send(self, message: OutgoingMessage) -> str:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        return None


class OutboxMailer(Mailer):
    """Writes each message as an .eml file instead of delivering it."""

    def __init__(self, root: Path):
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def send(self, message: OutgoingMessage) -> str:
        message_id = uuid.uuid4().hex
        path = self._root / f"{message_id}.eml"
        try:
            path.write_bytes(bytes(message.to_mime()))
        except Exception as e:  # noqa: BLE001
            log_exception(logger, "mail.send.failure", backend="outbox", to=message.to)
            raise ExternalCallFailure(f"Outbox write failed: {e}", service="mail") from e
        log_event(
            logger,
            "mail.send.success",
            backend="outbox",
            to=message.to,
            subject=message.subject,
            message_id=message_id,
        )
        return message_id

    def sent_messages(self) -> list[Path]:
        return sorted(self._root.glob("*.eml"), key=lambda p: p.stat().st_mtime_ns)


class GmailMailer(Mailer):
    def __init__(
        self,
        *,
        access_token: str | None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api = GoogleApiClient(
            service="gmail",
            base_url=GMAIL_BASE_URL,
            access_token=access_token,
            timeout_s=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._api.close()

    def send(self, message: OutgoingMessage) -> str:
        start = time.monotonic()
        raw = base64.urlsafe_b64encode(bytes(message.to_mime())).decode("ascii")
        payload = self._api.json("POST", "users/me/messages/send", json={"raw": raw})
        message_id = str(payload.get("id") or "")
        log_event(
            logger,
            "mail.send.success",
            backend="gmail",
            to=message.to,
            subject=message.subject,
            message_id=message_id,
            duration_ms=monotonic_ms(start),
        )
        return message_id


def build_mailer(settings: Settings, *, transport: httpx.BaseTransport | None = None) -> Mailer:
    if settings.mail_backend == "google":
        return GmailMailer(
            access_token=settings.google_access_token,
            timeout_s=settings.google_timeout_s,
            transport=transport,
        )
    root = settings.local_outbox_path
    if not root.is_absolute():
        root = Path(os.getcwd()) / root
    return OutboxMailer(root)
