"""
tournament_hub/security/tokens.py
Bearer token issue and verification

Tokens are HS256 JWTs carrying the identity claims the authorization policy
needs, valid for JWT_EXPIRE_DAYS (7 by default). There is no revocation list:
a token stays valid for its whole lifetime.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from tournament_hub.config import settings
from tournament_hub.exceptions import AuthenticationFailed, ExpiredToken, InvalidToken
from tournament_hub.orm.base import utcnow

logger = logging.getLogger(__name__)


def build_claims(user) -> Dict[str, Any]:
    """Identity claims for a user record."""
    return {
        "userId": user.id,
        "email": user.email,
        "primaryRole": user.primary_role.value if user.primary_role else "student",
        "secondaryRoles": list(user.secondary_roles or []),
        "collegeId": user.college_id,
        "fullName": user.full_name,
        "isEmailVerified": bool(user.is_email_verified),
    }


def issue_token(
    user,
    now: Optional[datetime] = None,
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Create a signed token for the user, valid from now for the configured lifetime."""
    issued_at = now or utcnow()
    to_encode = build_claims(user)
    to_encode.update({
        "iat": issued_at,
        "exp": issued_at + (expires_delta or timedelta(days=settings.JWT_EXPIRE_DAYS)),
    })
    return jwt.encode(to_encode, secret_key or settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a bearer token.

    Returns:
        The decoded claim set, unchanged.

    Raises:
        ExpiredToken: the validity window has elapsed
        InvalidToken: the signature does not verify
        AuthenticationFailed: the token is malformed in any other way
    """
    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        logger.warning("Rejected malformed token")
        raise AuthenticationFailed()

    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredToken()
    except JWTClaimsError as e:
        logger.warning(f"Rejected token with bad claims: {e}")
        raise AuthenticationFailed()
    except JWTError:
        logger.warning("Rejected token with invalid signature")
        raise InvalidToken()
