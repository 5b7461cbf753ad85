"""
tournament_hub/routes/auth.py
Authentication routes with rate limiting
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.config import settings
from tournament_hub.database import get_db
from tournament_hub.orm.user import User
from tournament_hub.rate_limit import limiter
from tournament_hub.schemas.auth import LoginRequest, RegisterRequest
from tournament_hub.security.dependencies import get_current_claims, get_current_user
from tournament_hub.services import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register(request: Request, payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration. New identities are always students."""
    user, token = await auth_service.register_user(db, payload)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": user.to_dict(), "token": token},
    }


@router.post("/login")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(request: Request, payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user, token = await auth_service.authenticate(db, payload.email, payload.password)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"user": user.to_dict(), "token": token},
    }


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    """Current state of the caller's record, which may differ from the token's claims."""
    return {"success": True, "data": {"user": current_user.to_dict()}}


@router.post("/logout")
async def logout(claims: Dict[str, Any] = Depends(get_current_claims)):
    # Tokens are stateless; the client discards its copy
    logger.info(f"User {claims.get('userId')} logged out")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/check")
async def check(claims: Dict[str, Any] = Depends(get_current_claims)):
    return {"success": True, "data": {"user": claims}}
