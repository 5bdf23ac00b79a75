from __future__ import annotations


class ClaimsError(RuntimeError):
    pass


class ConfigMissing(ClaimsError):
    pass


class ValidationError(ClaimsError):
    pass


class InvalidFileReference(ValidationError):
    pass


class AuthError(ClaimsError):
    pass


class StaleStatus(ClaimsError):
    pass


class ExternalCallFailure(ClaimsError):
    """A call to the spreadsheet, file storage, mail or forms service failed."""

    def __init__(self, message: str, *, service: str, status_code: int | None = None):
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class SheetNotFound(ClaimsError):
    pass
