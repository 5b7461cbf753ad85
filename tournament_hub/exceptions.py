"""
tournament_hub/exceptions.py
Typed exceptions for the tournament backend

Services and aggregate methods raise these; the handlers registered in
main.py turn them into the standard error envelope.
"""
from typing import Any, Optional

from tournament_hub.errors import ErrorCode


class TournamentHubError(Exception):
    """Base exception for the tournament backend"""
    status_code: int = 500
    code: str = ErrorCode.INTERNAL_ERROR
    default_message: str = "An internal error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailed(TournamentHubError):
    """Schema or business constraint violation on input"""
    status_code = 400
    code = ErrorCode.VALIDATION_FAILED
    default_message = "Validation failed"


class DuplicateKey(TournamentHubError):
    """Unique constraint collision"""
    status_code = 400
    code = ErrorCode.DUPLICATE_KEY
    default_message = "Email or College ID already registered"


class Unauthenticated(TournamentHubError):
    """Missing, invalid or expired credentials"""
    status_code = 401
    code = ErrorCode.AUTH_REQUIRED
    default_message = "Access denied. No token provided."


class ExpiredToken(Unauthenticated):
    code = ErrorCode.AUTH_EXPIRED
    default_message = "Token expired"


class InvalidToken(Unauthenticated):
    code = ErrorCode.AUTH_INVALID
    default_message = "Invalid token. Please login again."


class AuthenticationFailed(Unauthenticated):
    code = ErrorCode.AUTH_FAILED
    default_message = "Authentication failed."


class Forbidden(TournamentHubError):
    """Role or ownership check failed"""
    status_code = 403
    code = ErrorCode.FORBIDDEN
    default_message = "You do not have permission to perform this action"


class AccountDeactivated(Forbidden):
    code = ErrorCode.ACCOUNT_DEACTIVATED
    default_message = "Account is deactivated. Please contact admin."


class NotFound(TournamentHubError):
    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str = "Resource", code: Optional[str] = None):
        if code:
            self.code = code
        super().__init__(f"{resource} not found")


class InvalidStateTransition(TournamentHubError):
    """Action attempted outside the state it is defined for"""
    status_code = 400
    code = ErrorCode.STATE_TRANSITION_INVALID
    default_message = "Invalid state transition"

    def __init__(self, message: Optional[str] = None, current_state: Optional[str] = None, action: Optional[str] = None):
        self.current_state = current_state
        self.action = action
        super().__init__(message)


class RegistrationClosed(TournamentHubError):
    status_code = 400
    code = ErrorCode.REGISTRATION_CLOSED
    default_message = "Registration is not open for this tournament"


class TournamentFull(TournamentHubError):
    status_code = 400
    code = ErrorCode.TOURNAMENT_FULL
    default_message = "Tournament is full"


class SoloRegistrationNotAllowed(TournamentHubError):
    status_code = 400
    code = ErrorCode.SOLO_REGISTRATION_NOT_ALLOWED
    default_message = "Solo registration not allowed"


class AlreadyRegistered(TournamentHubError):
    status_code = 400
    code = ErrorCode.ALREADY_REGISTERED
    default_message = "Already registered for this tournament"


class RegistrationNotEligible(TournamentHubError):
    status_code = 400
    code = ErrorCode.REGISTRATION_NOT_ELIGIBLE
    default_message = "You are not eligible to register for this tournament"


class InternalError(TournamentHubError):
    """Unexpected failure. Message is elided outside development."""
    status_code = 500
    code = ErrorCode.INTERNAL_ERROR
