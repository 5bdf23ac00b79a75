from __future__ import annotations

import httpx

from claimsync.core.config import Settings
from claimsync.core.forms import FormsClient, build_forms_client
from claimsync.core.mail import Mailer, build_mailer
from claimsync.core.sheets import RowStore, build_row_store
from claimsync.core.storage import FileStore, build_file_store


class ClaimsContext:
    """Settings plus the four external clients, built on first use."""

    def __init__(
        self,
        settings: Settings,
        *,
        rows: RowStore | None = None,
        files: FileStore | None = None,
        mailer: Mailer | None = None,
        forms: FormsClient | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings
        self._rows = rows
        self._files = files
        self._mailer = mailer
        self._forms = forms
        self._transport = transport

    @property
    def rows(self) -> RowStore:
        if self._rows is None:
            self._rows = build_row_store(self.settings, transport=self._transport)
        return self._rows

    @property
    def files(self) -> FileStore:
        if self._files is None:
            self._files = build_file_store(self.settings, transport=self._transport)
        return self._files

    @property
    def mailer(self) -> Mailer:
        if self._mailer is None:
            self._mailer = build_mailer(self.settings, transport=self._transport)
        return self._mailer

    @property
    def forms(self) -> FormsClient:
        if self._forms is None:
            self._forms = build_forms_client(self.settings, transport=self._transport)
        return self._forms

    def close(self) -> None:
        for client in (self._rows, self._files, self._mailer, self._forms):
            if client is not None:
                client.close()
