"""
Credential store operations: registration, login and identity lookup.
"""
import logging
from typing import Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.errors import ErrorCode
from tournament_hub.exceptions import AccountDeactivated, AuthenticationFailed, DuplicateKey, NotFound
from tournament_hub.orm.user import User, UserRole
from tournament_hub.schemas.auth import RegisterRequest
from tournament_hub.security.passwords import hash_password_async, verify_password_async
from tournament_hub.security.tokens import issue_token

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


async def register_user(db: AsyncSession, payload: RegisterRequest) -> Tuple[User, str]:
    """
    Create a student identity and issue its first token.

    Raises:
        DuplicateKey: email or college id already taken
    """
    result = await db.execute(
        select(User).where(or_(User.email == payload.email, User.college_id == payload.college_id))
    )
    if result.scalars().first() is not None:
        logger.info(f"Registration rejected, duplicate identity: {payload.email}")
        raise DuplicateKey("User already exists")

    user = User(
        email=payload.email,
        password_hash=await hash_password_async(payload.password),
        college_id=payload.college_id,
        full_name=payload.full_name,
        department=payload.department,
        year_of_study=payload.year_of_study,
        phone_number=payload.phone_number,
        primary_role=UserRole.student,
        secondary_roles=[],
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email or college id
        await db.rollback()
        raise DuplicateKey()
    await db.refresh(user)

    logger.info(f"Registered user {user.id} ({user.email})")
    return user, issue_token(user)


async def authenticate(db: AsyncSession, email: str, password: str) -> Tuple[User, str]:
    """
    Check credentials and issue a token.

    A deactivated account is refused before the password is checked.
    """
    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning(f"Login failed, unknown email: {email}")
        raise AuthenticationFailed(INVALID_CREDENTIALS)

    if not user.is_active:
        logger.warning(f"Login refused for deactivated user {user.id}")
        raise AccountDeactivated()

    if not await verify_password_async(password, user.password_hash):
        logger.warning(f"Login failed, bad password for user {user.id}")
        raise AuthenticationFailed(INVALID_CREDENTIALS)

    user.record_login()
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.id} logged in")
    return user, issue_token(user)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User", code=ErrorCode.USER_NOT_FOUND)
    return user
