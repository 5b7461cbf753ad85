"""
tournament_hub/security/dependencies.py
FastAPI auth dependencies

Authorization decisions are made from the token's claims; only routes that
need the current record (e.g. /auth/me) load the user.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.database import get_db
from tournament_hub.exceptions import Unauthenticated
from tournament_hub.orm.user import User
from tournament_hub.security.rbac import Capability, Identity, ensure_capability
from tournament_hub.security.tokens import verify_token
from tournament_hub.services import auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_claims(token: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    if not token:
        raise Unauthenticated()
    return verify_token(token)


async def get_current_identity(claims: Dict[str, Any] = Depends(get_current_claims)) -> Identity:
    return Identity.from_claims(claims)


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
) -> User:
    return await auth_service.get_user(db, identity.user_id)


def require_capability(capability: Capability, message: Optional[str] = None):
    """
    Dependency factory for capability-gated routes.
    Usage: Depends(require_capability(Capability.CREATE_TOURNAMENT))
    """
    async def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        ensure_capability(identity, capability, message)
        return identity
    return dependency
