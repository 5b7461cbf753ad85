"""
Admin user management.

Identities are never hard-deleted: admins deactivate, restrict, warn and
annotate them instead.
"""
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.errors import ErrorCode
from tournament_hub.exceptions import NotFound, ValidationFailed
from tournament_hub.orm.base import utcnow
from tournament_hub.orm.user import Department, SecondaryRole, User, UserNote, UserRole
from tournament_hub.security.rbac import Identity

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User", code=ErrorCode.USER_NOT_FOUND)
    return user


async def _save(db: AsyncSession, user: User) -> User:
    await db.commit()
    return await get_user(db, user.id)


async def list_users(
    db: AsyncSession,
    role: Optional[str] = None,
    department: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[User], Dict[str, int]]:
    query = select(User)

    if role:
        try:
            query = query.where(User.primary_role == UserRole(role))
        except ValueError:
            raise ValidationFailed(f"Invalid role: {role}")
    if department:
        try:
            query = query.where(User.department == Department(department))
        except ValueError:
            raise ValidationFailed(f"Invalid department: {department}")
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            User.full_name.ilike(pattern),
            User.email.ilike(pattern),
            User.college_id.ilike(pattern),
        ))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit)
    )
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
    return list(result.scalars().all()), pagination


async def set_active(db: AsyncSession, admin: Identity, user_id: int, is_active: bool) -> User:
    """
    Activate or deactivate an account.

    Outstanding tokens of a deactivated user stay valid until they expire;
    only login is refused.
    """
    user = await get_user(db, user_id)
    if user.id == admin.user_id and not is_active:
        raise ValidationFailed("Admins cannot deactivate their own account")
    user.is_active = is_active
    logger.info(f"User {user.id} {'activated' if is_active else 'deactivated'} by admin {admin.user_id}")
    return await _save(db, user)


async def add_note(db: AsyncSession, admin: Identity, user_id: int, content: str) -> User:
    user = await get_user(db, user_id)
    user.notes.append(UserNote(content=content, added_by_id=admin.user_id, added_at=utcnow()))
    logger.info(f"Admin {admin.user_id} added a note to user {user.id}")
    return await _save(db, user)


async def issue_warning(db: AsyncSession, admin: Identity, user_id: int, reason: Optional[str] = None) -> User:
    user = await get_user(db, user_id)
    user.warnings = (user.warnings or 0) + 1
    if reason:
        user.notes.append(UserNote(content=f"Warning: {reason}", added_by_id=admin.user_id, added_at=utcnow()))
    logger.warning(f"User {user.id} warned by admin {admin.user_id} (total {user.warnings})")
    return await _save(db, user)


async def restrict_user(
    db: AsyncSession, admin: Identity, user_id: int, restricted_until: Optional[datetime]
) -> User:
    user = await get_user(db, user_id)
    if restricted_until is not None and restricted_until <= utcnow():
        raise ValidationFailed("restrictedUntil must be in the future")
    user.restricted_until = restricted_until
    if restricted_until:
        logger.info(f"User {user.id} restricted until {restricted_until.isoformat()} by admin {admin.user_id}")
    else:
        logger.info(f"Restriction lifted for user {user.id} by admin {admin.user_id}")
    return await _save(db, user)


async def set_roles(
    db: AsyncSession,
    admin: Identity,
    user_id: int,
    primary_role: Optional[UserRole] = None,
    secondary_roles: Optional[Sequence[SecondaryRole]] = None,
) -> User:
    """Roles take effect in tokens issued after the change."""
    user = await get_user(db, user_id)
    if primary_role is not None:
        user.primary_role = primary_role
    if secondary_roles is not None:
        # Keep first-seen order, drop duplicates
        user.secondary_roles = list(dict.fromkeys(SecondaryRole(r).value for r in secondary_roles))
    logger.info(
        f"Roles for user {user.id} set to {user.role_values} by admin {admin.user_id}"
    )
    return await _save(db, user)


async def verify_organizer(db: AsyncSession, admin: Identity, user_id: int) -> User:
    user = await get_user(db, user_id)
    if user.primary_role not in (UserRole.organizer, UserRole.faculty):
        raise ValidationFailed("Only organizers and faculty can be verified as organizers")
    user.is_verified_organizer = True
    user.approved_by_id = admin.user_id
    logger.info(f"User {user.id} verified as organizer by admin {admin.user_id}")
    return await _save(db, user)
