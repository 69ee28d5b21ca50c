"""
Domain error taxonomy.

Services raise these; ``tourney.exception_handlers`` maps them to the
``{"success": false, "message": ..., "errors": [...]}`` response shape.
"""
from typing import List, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that are reported to the caller as-is."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"success": False, "message": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class ValidationError(AppError):
    """Malformed or out-of-range input. ``errors`` lists every offending field."""

    default_message = "Validation failed"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message or self.default_message, errors=list(errors))


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class IdentityNotFoundError(NotFoundError):
    default_message = "User not found. Please verify your phone number first."


class TournamentNotFoundError(NotFoundError):
    default_message = "Tournament not found"


class InvalidIdError(AppError):
    default_message = "Invalid tournament ID"


class ConsentRequiredError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Please complete your profile and give consent first."


class RegistrationClosedError(AppError):
    default_message = "Registration is not available for this tournament"


class TournamentFullError(AppError):
    default_message = "Tournament is full"


class AlreadyRegisteredError(AppError):
    default_message = "You are already registered for this tournament"


class InvalidCredentialError(AppError):
    default_message = "Invalid or expired OTP"


class AdminAuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Admin authentication required"


class GatewayError(AppError):
    """Every configured delivery channel failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send OTP. Please try again."


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
