from __future__ import annotations

import os
from datetime import date

import pytest

# Set env before any claimsync imports (settings are created at import time).
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DELETE_API_KEY", "test-api-key")
os.environ.setdefault("RECIPIENT_EMAIL", "finance@example.com")
os.environ.setdefault("FORM_ID", "test-form")

API_KEY = "test-api-key"
FILE_ID = "FILEID12345678901234567890123"
TODAY = date(2026, 1, 15)


@pytest.fixture
def settings(tmp_path):
    from claimsync.core.config import Settings

    return Settings(
        _env_file=None,
        environment="dev",
        delete_api_key=API_KEY,
        recipient_email="finance@example.com",
        form_id="test-form",
        local_workbook_path=tmp_path / "claims.xlsx",
        local_storage_path=tmp_path / "storage",
        local_outbox_path=tmp_path / "outbox",
        local_forms_path=tmp_path / "form.json",
    )


@pytest.fixture
def ctx(settings):
    from claimsync.bootstrap import bootstrap
    from claimsync.core.context import ClaimsContext

    context = ClaimsContext(settings)
    bootstrap(context)
    return context


@pytest.fixture
def frozen_today(monkeypatch):
    from claimsync.modules.status import service as status_service

    monkeypatch.setattr(status_service, "today", lambda *, tz: TODAY)
    return TODAY


@pytest.fixture
def client(ctx):
    from fastapi.testclient import TestClient

    from claimsync.main import create_app

    with TestClient(create_app(context=ctx)) as test_client:
        yield test_client
