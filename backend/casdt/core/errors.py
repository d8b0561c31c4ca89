"""
Error kinds surfaced by the registry core.

Every failure is local to the operation that raised it; the HTTP layer maps
each kind to a status code and a JSON body so the calling screen stays usable.
"""
from typing import Dict, List, Optional


class CasdtError(Exception):
    """Base class for all domain errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict:
        return {"error": self.kind, "detail": self.message}


class AuthenticationFailure(CasdtError):
    """Bad credentials, or no live session."""

    kind = "authentication_failure"
    status_code = 401


class AuthorizationDenied(CasdtError):
    """The actor's scope does not cover the requested data."""

    kind = "authorization_denied"
    status_code = 403


class RecordNotFound(CasdtError):
    kind = "not_found"
    status_code = 404


class ValidationFailure(CasdtError):
    """One or more fields failed validation. Recoverable by re-submission."""

    kind = "validation_failure"
    status_code = 422

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(summary or "Validation failed")

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationFailure":
        return cls([{"field": field, "message": message}])

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class StoreUnavailable(CasdtError):
    """The record store or authentication service could not be reached."""

    kind = "store_unavailable"
    status_code = 503


class PartialCreateFailure(CasdtError):
    """
    A credential was issued but the matching profile row was not persisted.

    The credential is left in place (no automatic rollback); the orphaned
    account id is carried so an operator can clean it up.
    """

    kind = "partial_create_failure"
    status_code = 502

    def __init__(self, message: str, orphaned_account_id: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.orphaned_account_id = orphaned_account_id
        self.cause = cause

    def to_dict(self) -> Dict:
        body = super().to_dict()
        body["orphaned_account_id"] = self.orphaned_account_id
        return body
