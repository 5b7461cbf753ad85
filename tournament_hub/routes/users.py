"""
tournament_hub/routes/users.py
Admin-only user management
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.database import get_db
from tournament_hub.schemas.user_admin import ActiveUpdate, NoteCreate, RestrictRequest, RoleUpdate, WarningCreate
from tournament_hub.security.dependencies import require_capability
from tournament_hub.security.rbac import Capability, Identity
from tournament_hub.services import user_admin_service

router = APIRouter(prefix="/users", tags=["Users"])

require_admin = require_capability(Capability.ADMINISTER, "Admin access required")


def _user_response(user, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": {"user": user.to_dict(include_admin=True)}}
    if message:
        body["message"] = message
    return body


@router.get("")
async def list_users(
    role: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    users, pagination = await user_admin_service.list_users(
        db, role=role, department=department, is_active=is_active, search=search, page=page, limit=limit,
    )
    return {
        "success": True,
        "data": {"users": [u.to_dict(include_admin=True) for u in users], "pagination": pagination},
    }


@router.get("/{user_id}")
async def get_user(user_id: int, admin: Identity = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    user = await user_admin_service.get_user(db, user_id)
    return _user_response(user)


@router.put("/{user_id}/status")
async def set_status(
    user_id: int,
    payload: ActiveUpdate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_admin_service.set_active(db, admin, user_id, payload.is_active)
    return _user_response(user, "User activated" if payload.is_active else "User deactivated")


@router.post("/{user_id}/notes")
async def add_note(
    user_id: int,
    payload: NoteCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_admin_service.add_note(db, admin, user_id, payload.content)
    return _user_response(user, "Note added")


@router.post("/{user_id}/warnings")
async def issue_warning(
    user_id: int,
    payload: Optional[WarningCreate] = None,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    reason = payload.reason if payload else None
    user = await user_admin_service.issue_warning(db, admin, user_id, reason)
    return _user_response(user, "Warning issued")


@router.put("/{user_id}/restriction")
async def restrict(
    user_id: int,
    payload: RestrictRequest,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_admin_service.restrict_user(db, admin, user_id, payload.restricted_until)
    return _user_response(user, "Restriction updated")


@router.put("/{user_id}/roles")
async def set_roles(
    user_id: int,
    payload: RoleUpdate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_admin_service.set_roles(
        db, admin, user_id, primary_role=payload.primary_role, secondary_roles=payload.secondary_roles,
    )
    return _user_response(user, "Roles updated")


@router.post("/{user_id}/verify-organizer")
async def verify_organizer(user_id: int, admin: Identity = Depends(require_admin), db: AsyncSession = Depends(get_db)):
    user = await user_admin_service.verify_organizer(db, admin, user_id)
    return _user_response(user, "Organizer verified")
