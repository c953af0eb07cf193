# mc_core/common/errors.py
"""
Domain error taxonomy raised by services.

Services never import DRF; the API layer maps these to HTTP through
mc_core.common.api.exceptions.api_exception_handler.
"""
from __future__ import annotations

from typing import Any


class DomainError(Exception):
    status_code = 400
    code = "error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(DomainError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input."


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class ConflictError(DomainError):
    """
    State-guard violation: already claimed, already resolved, duplicate assignment.
    Surfaces as a 400 with code "conflict" so clients can tell it from bad input.
    """
    status_code = 400
    code = "conflict"
    default_message = "Conflict."


class AuthorizationError(DomainError):
    status_code = 403
    code = "permission_denied"
    default_message = "You do not have permission to perform this action."


class InternalError(DomainError):
    """
    Raised when a transition hits an unexpected state. Detail is logged, never returned.
    """
    status_code = 500
    code = "server_error"
    default_message = "Unexpected server error."
