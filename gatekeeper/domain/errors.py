"""Failure kinds surfaced by the workflow services.

Each error knows the HTTP status it maps to; the application factory
renders them into the ``{success, message, data}`` envelope.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class GatekeeperError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, data: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ValidationError(GatekeeperError):
    status_code = 400
    default_message = "Invalid request."


class DuplicateEmail(GatekeeperError):
    status_code = 400
    default_message = "User with this email already exists"


class MissingProof(GatekeeperError):
    status_code = 400
    default_message = "Payment screenshot is required"


class InvalidCredentials(GatekeeperError):
    status_code = 401
    default_message = "Invalid email or password"


class InvalidAdminCredentials(GatekeeperError):
    status_code = 401
    default_message = "Invalid admin credentials"


class AccountPending(GatekeeperError):
    status_code = 403
    default_message = "Your account is pending approval. Please wait for admin verification."


class AccountRejected(GatekeeperError):
    status_code = 403
    default_message = "Your account has been rejected."


class Unauthenticated(GatekeeperError):
    status_code = 401
    default_message = "Not authorized. Please login again."


class TokenInvalid(Unauthenticated):
    default_message = "Invalid token. Please login again."


class TokenExpired(Unauthenticated):
    default_message = "Token expired. Please login again."


class Forbidden(GatekeeperError):
    status_code = 403
    default_message = "Your account is not approved yet. Please wait for admin approval."


class NotFound(GatekeeperError):
    status_code = 404
    default_message = "Resource not found"


class UserNotFound(NotFound):
    default_message = "User not found"


class CredentialError(GatekeeperError):
    """Raised by the credential service when stored material is malformed."""

    default_message = "Credential verification failed"


class InternalError(GatekeeperError):
    pass
