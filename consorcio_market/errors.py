"""Domain error taxonomy.

Every error carries a machine-readable code, the HTTP status it maps to and
an optional context dict. The API layer renders them as
``{"error": code, "detail": message, **context}``; nothing here knows about
FastAPI.

The rate solver never raises: an unsolvable schedule is reported as ``None``.
"""

from __future__ import annotations

from typing import Any


class MarketError(Exception):
    """Base class for all client-facing domain errors."""

    code = "error"
    status_code = 400

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.context}


class ValidationError(MarketError):
    """Malformed or missing input (e.g. rejecting without a reason)."""

    code = "validation_error"
    status_code = 400


class NotFound(MarketError):
    """Referenced proposal, quota, document or profile does not exist."""

    code = "not_found"
    status_code = 404


class PermissionDenied(MarketError):
    """Actor lacks the privilege required by the operation."""

    code = "permission_denied"
    status_code = 403


class InvalidTransition(MarketError):
    """Requested status is not reachable from the current status."""

    code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Transição inválida: {current} → {requested}",
            current_status=current,
            requested_status=requested,
        )


class PreconditionNotMet(MarketError):
    """A cross-entity gate failed (document or buyer profile not approved)."""

    code = "precondition_not_met"
    status_code = 409

    def __init__(self, message: str, check: str, current_status: str | None = None) -> None:
        super().__init__(message, check=check, current_status=current_status)
        self.check = check
        self.current_status = current_status


class PersistenceError(MarketError):
    """The store rejected a write; the unit of work was rolled back."""

    code = "persistence_error"
    status_code = 500
