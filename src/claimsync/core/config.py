from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from claimsync.core.errors import ConfigMissing

VERSION = "0.1.0"

Backend = Literal["local", "google"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"
    cors_origins: list[str] = ["*"]
    timezone: str = "Europe/Lisbon"

    # Secrets; read through require() so a missing value is fatal at call time.
    delete_api_key: str | None = None
    recipient_email: str | None = None
    form_id: str | None = None

    spreadsheet_id: str | None = None
    google_access_token: str | None = None
    google_timeout_s: float = 10.0

    sheets_backend: Backend = "local"
    storage_backend: Backend = "local"
    mail_backend: Backend = "local"
    forms_backend: Backend = "local"

    local_workbook_path: Path = Path(".local_claims.xlsx")
    local_storage_path: Path = Path(".local_storage")
    local_outbox_path: Path = Path(".local_outbox")
    local_forms_path: Path = Path(".local_forms.json")

    run_log_sheet: str | None = "Run Log"
    status_check: Literal["compare", "trust-client"] = "compare"
    legacy_default_delete: bool = False

    def require(self, name: str) -> str:
        value = getattr(self, name, None)
        if not value:
            raise ConfigMissing(f"{name.upper()} not configured")
        return str(value)


settings = Settings()
