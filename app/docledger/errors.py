"""
Ledger error taxonomy.

Every error is a locally detected precondition failure: the operation that
raised it changed nothing, and retrying the same call will fail the same way.
"""

from __future__ import annotations


class LedgerError(Exception):
    code = "ledger_error"
    http_status = 400

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code.replace("_", " ").capitalize())

    @property
    def message(self) -> str:
        return str(self)


class InvalidInput(LedgerError, ValueError):
    code = "invalid_input"
    http_status = 400


class Unauthorized(LedgerError):
    """Caller lacks the role the operation requires."""

    code = "unauthorized"
    http_status = 403


class NotFound(LedgerError):
    """Reference to a content hash that was never registered."""

    code = "not_found"
    http_status = 404


class AlreadyRegistered(LedgerError):
    code = "already_registered"
    http_status = 409


class AlreadyAttested(LedgerError):
    """Verifier already attested for this document (whatever status it set)."""

    code = "already_attested"
    http_status = 409


class NotInitialized(LedgerError):
    code = "not_initialized"
    http_status = 409


class AlreadyInitialized(LedgerError):
    code = "already_initialized"
    http_status = 409
