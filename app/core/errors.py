"""
Error taxonomy for the file engine.

Services raise these; the API layer renders them as ``ErrorResponse`` bodies.
Every error carries a stable machine ``code`` so callers can tell
"not found", "not allowed", "invalid" and "conflicting" apart.
"""
from __future__ import annotations

from typing import Any


class EngineError(Exception):
    code = "error"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None):
        self.message = message or self.default_message
        self.details = details or []
        super().__init__(self.message)


class Unauthenticated(EngineError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Authentication required"


class Forbidden(EngineError):
    code = "forbidden"
    status_code = 403
    default_message = "Not allowed"


class NotFound(EngineError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InvalidInput(EngineError):
    code = "invalid_input"
    status_code = 422
    default_message = "Invalid input"


class Conflict(EngineError):
    code = "conflict"
    status_code = 409
    default_message = "Conflicting state"


class TransactionFailure(EngineError):
    code = "transaction_failed"
    status_code = 500
    default_message = "Transaction failed"
