"""
tournament_hub/errors.py
Centralized error envelope

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": [...] (optional, never in production)
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input, duplicate key, business rule violation
- 401: Authentication missing, invalid or expired
- 403: Role or ownership check failed
- 404: Resource does not exist
- 429: Rate limit exceeded
- 500: Internal only, message elided outside development
"""
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tournament_hub.config import settings


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_KEY = "DUPLICATE_KEY"

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_EXPIRED = "AUTH_EXPIRED"
    AUTH_INVALID = "AUTH_INVALID"
    AUTH_FAILED = "AUTH_FAILED"

    FORBIDDEN = "FORBIDDEN"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"

    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    TOURNAMENT_NOT_FOUND = "TOURNAMENT_NOT_FOUND"

    STATE_TRANSITION_INVALID = "STATE_TRANSITION_INVALID"
    REGISTRATION_CLOSED = "REGISTRATION_CLOSED"
    TOURNAMENT_FULL = "TOURNAMENT_FULL"
    SOLO_REGISTRATION_NOT_ALLOWED = "SOLO_REGISTRATION_NOT_ALLOWED"
    ALREADY_REGISTERED = "ALREADY_REGISTERED"
    REGISTRATION_NOT_ELIGIBLE = "REGISTRATION_NOT_ELIGIBLE"

    RATE_LIMITED = "RATE_LIMITED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorResponse(BaseModel):
    """Standard error response model"""
    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None


def error_payload(message: str, code: str, details: Any = None) -> Dict[str, Any]:
    """Build the error body. Details are dropped in production."""
    body = ErrorResponse(
        error=message,
        code=code,
        details=details if details and not settings.is_production else None,
    )
    return body.model_dump(exclude_none=True)


def error_response(
    status_code: int,
    message: str,
    code: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Convert an error to a FastAPI JSONResponse"""
    return JSONResponse(
        status_code=status_code,
        content=error_payload(message, code, details),
        headers=headers,
    )


ERROR_MAPPING = {
    400: ErrorCode.VALIDATION_FAILED,
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.NOT_FOUND,
    429: ErrorCode.RATE_LIMITED,
    500: ErrorCode.INTERNAL_ERROR,
}


def code_for_status(status_code: int) -> str:
    """Best-effort error code for a bare HTTP status."""
    if status_code >= 500:
        return ErrorCode.INTERNAL_ERROR
    return ERROR_MAPPING.get(status_code, ErrorCode.VALIDATION_FAILED)


def get_error_summary() -> Dict[str, Any]:
    """Return summary of error handling system for documentation"""
    return {
        "service": "tournament-hub-error-handler",
        "response_structure": {
            "success": "boolean (always false for errors)",
            "error": "string (human-readable)",
            "code": "string (machine-readable)",
            "details": "array (optional, omitted in production)",
        },
        "status_codes": {
            "400": "Invalid input, duplicate key or business rule violation",
            "401": "Authentication missing, invalid or expired",
            "403": "Role or ownership check failed",
            "404": "Resource does not exist",
            "429": "Rate limit exceeded",
            "500": "Internal error",
        },
        "error_codes": [
            attr for attr in dir(ErrorCode)
            if not attr.startswith('_')
        ],
    }
