from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from claimsync.core.errors import ConfigMissing, ExternalCallFailure
from claimsync.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)

SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/"
DRIVE_BASE_URL = "https://www.googleapis.com/drive/v3/"
GMAIL_BASE_URL = "https://gmail.googleapis.com/gmail/v1/"
FORMS_BASE_URL = "https://forms.googleapis.com/v1/"


class GoogleApiClient:
    def __init__(
        self,
        *,
        service: str,
        base_url: str,
        access_token: str | None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        if not access_token:
            raise ConfigMissing("GOOGLE_ACCESS_TOKEN not configured")
        self._service = service
        self._client = httpx.Client(
            base_url=base_url,
            timeout=timeout_s,
            headers={"Authorization": f"Bearer {access_token}"},
            transport=transport,
        )

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        start = time.monotonic()
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log_exception(
                logger,
                "google.request.failure",
                service=self._service,
                method=method,
                path=path,
                duration_ms=monotonic_ms(start),
            )
            raise ExternalCallFailure(
                f"{self._service} request failed: {e}", service=self._service
            ) from e
        if resp.status_code >= 400:
            log_event(
                logger,
                "google.request.failure",
                level=logging.WARNING,
                service=self._service,
                method=method,
                path=path,
                status_code=resp.status_code,
                duration_ms=monotonic_ms(start),
            )
            raise ExternalCallFailure(
                f"{self._service} returned HTTP {resp.status_code}: {_error_message(resp)}",
                service=self._service,
                status_code=resp.status_code,
            )
        log_event(
            logger,
            "google.request.success",
            level=logging.DEBUG,
            service=self._service,
            method=method,
            path=path,
            status_code=resp.status_code,
            duration_ms=monotonic_ms(start),
        )
        return resp

    def close(self) -> None:
        self._client.close()

    def json(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        resp = self.request(method, path, **kwargs)
        if not resp.content:
            return {}
        try:
            payload = resp.json()
        except ValueError as e:
            raise ExternalCallFailure(
                f"{self._service} returned a non-JSON response", service=self._service
            ) from e
        return payload if isinstance(payload, dict) else {}


def _error_message(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    err = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return str(payload)[:200]
