from __future__ import annotations

import mimetypes
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

import httpx

from claimsync.core.config import Settings
from claimsync.core.errors import ExternalCallFailure
from claimsync.core.google import DRIVE_BASE_URL, GoogleApiClient
from claimsync.core.logging import get_logger, log_event, log_exception, monotonic_ms

logger = get_logger(__name__)


class StorageError(ExternalCallFailure):
    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message, service="storage", status_code=status_code)


@dataclass(frozen=True)
class StoredFile:
    file_id: str
    name: str
    content_type: str
    body: bytes


class FileStore:
    def get_name(self, *, file_id: str) -> str:  # pragma: no cover
        raise NotImplementedError

    def get(self, *, file_id: str) -> StoredFile:  # pragma: no cover
        raise NotImplementedError

    def rename(self, *, file_id: str, new_name: str) -> None:  # pragma: no cover
        raise NotImplementedError

    def close(self) -> None:
        return None


class LocalFileStore(FileStore):
    """Files kept as ``<root>/<file_id>/<name>``; the id never changes on rename."""

    def __init__(self, root: Path):
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def put(self, *, name: str, body: bytes, file_id: str | None = None) -> StoredFile:
        file_id = file_id or uuid.uuid4().hex
        folder = self._root / file_id
        try:
            folder.mkdir(parents=True, exist_ok=True)
            (folder / name).write_bytes(body)
        except Exception:
            log_exception(logger, "storage.put.failure", backend="local", file_id=file_id)
            raise
        log_event(
            logger, "storage.put.success", backend="local", file_id=file_id, byte_size=len(body)
        )
        return StoredFile(
            file_id=file_id, name=name, content_type=_guess_type(name), body=body
        )

    def _path(self, file_id: str) -> Path:
        folder = self._root / file_id
        entries = sorted(p for p in folder.iterdir() if p.is_file()) if folder.is_dir() else []
        if not entries:
            raise StorageError(f"File not found: {file_id}", status_code=404)
        return entries[0]

    def get_name(self, *, file_id: str) -> str:
        return self._path(file_id).name

    def get(self, *, file_id: str) -> StoredFile:
        path = self._path(file_id)
        try:
            body = path.read_bytes()
        except Exception as e:  # noqa: BLE001
            log_exception(logger, "storage.get.failure", backend="local", file_id=file_id)
            raise StorageError(f"File unreadable: {file_id}") from e
        return StoredFile(
            file_id=file_id, name=path.name, content_type=_guess_type(path.name), body=body
        )

    def rename(self, *, file_id: str, new_name: str) -> None:
        start = time.monotonic()
        path = self._path(file_id)
        if path.name == new_name:
            return
        try:
            path.rename(path.with_name(new_name))
        except Exception as e:  # noqa: BLE001
            log_exception(
                logger, "storage.rename.failure", backend="local", file_id=file_id, new_name=new_name
            )
            raise StorageError(f"Rename failed for {file_id}: {e}") from e
        log_event(
            logger,
            "storage.rename.success",
            backend="local",
            file_id=file_id,
            new_name=new_name,
            duration_ms=monotonic_ms(start),
        )


class DriveFileStore(FileStore):
    def __init__(
        self,
        *,
        access_token: str | None,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._api = GoogleApiClient(
            service="drive",
            base_url=DRIVE_BASE_URL,
            access_token=access_token,
            timeout_s=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._api.close()

    def _metadata(self, file_id: str) -> dict:
        return self._api.json(
            "GET",
            f"files/{file_id}",
            params={"fields": "id,name,mimeType", "supportsAllDrives": "true"},
        )

    def get_name(self, *, file_id: str) -> str:
        return str(self._metadata(file_id).get("name") or "")

    def get(self, *, file_id: str) -> StoredFile:
        meta = self._metadata(file_id)
        resp = self._api.request(
            "GET", f"files/{file_id}", params={"alt": "media", "supportsAllDrives": "true"}
        )
        name = str(meta.get("name") or file_id)
        return StoredFile(
            file_id=file_id,
            name=name,
            content_type=str(meta.get("mimeType") or _guess_type(name)),
            body=resp.content,
        )

    def rename(self, *, file_id: str, new_name: str) -> None:
        start = time.monotonic()
        self._api.request(
            "PATCH",
            f"files/{file_id}",
            params={"supportsAllDrives": "true", "fields": "id,name"},
            json={"name": new_name},
        )
        log_event(
            logger,
            "storage.rename.success",
            backend="drive",
            file_id=file_id,
            new_name=new_name,
            duration_ms=monotonic_ms(start),
        )


def _guess_type(name: str) -> str:
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


def build_file_store(
    settings: Settings, *, transport: httpx.BaseTransport | None = None
) -> FileStore:
    if settings.storage_backend == "google":
        return DriveFileStore(
            access_token=settings.google_access_token,
            timeout_s=settings.google_timeout_s,
            transport=transport,
        )
    root = settings.local_storage_path
    if not root.is_absolute():
        root = Path(os.getcwd()) / root
    return LocalFileStore(root)
