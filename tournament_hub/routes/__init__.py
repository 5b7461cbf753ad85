"""
tournament_hub/routes/__init__.py
Route registration
"""
from fastapi import APIRouter
from tournament_hub.routes import auth, tournaments, users

router = APIRouter()

router.include_router(auth.router)
router.include_router(tournaments.router)
router.include_router(users.router)
