"""
User CLI Commands

Bootstrap and emergency identity operations. `user create` is the only way
to create faculty and admin accounts besides promoting an existing user.
"""
import logging

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from tournament_hub.cli.base import BaseCommand
from tournament_hub.orm.user import User, UserRole
from tournament_hub.schemas.auth import RegisterRequest
from tournament_hub.security.passwords import hash_password

logger = logging.getLogger(__name__)


class UserCommand(BaseCommand):
    """User CLI command handler."""

    def execute(self, args) -> int:
        if args.user_action == "create":
            return self._create(args)
        elif args.user_action == "deactivate":
            return self._set_active(args.email, False)
        elif args.user_action == "activate":
            return self._set_active(args.email, True)
        print("Error: Unknown user action")
        return 1

    def _create(self, args) -> int:
        print("=== Create User ===")
        try:
            payload = RegisterRequest(
                email=args.email,
                password=args.password,
                college_id=args.college_id,
                full_name=args.full_name,
                department=args.department,
                year_of_study=args.year,
            )
        except ValidationError as e:
            for error in e.errors():
                field = ".".join(str(part) for part in error.get("loc", ()))
                print(f"Error: {field}: {error.get('msg')}")
            return 1

        if self.dry_run:
            print(f"[DRY RUN] Would create {args.role} {payload.email}")
            return 0

        try:
            user_id = self.run(self._async_create, payload, args.role, list(args.secondary_role))
        except IntegrityError:
            print(f"Error: {payload.email} or {payload.college_id} is already registered")
            return 1
        print(f"✓ Created user {user_id} ({payload.email}) as {args.role}")
        return 0

    async def _async_create(self, engine, payload: RegisterRequest, role: str, secondary_roles: list) -> int:
        async with self.session_factory(engine)() as session:
            user = User(
                email=payload.email,
                password_hash=hash_password(payload.password),
                college_id=payload.college_id,
                full_name=payload.full_name,
                department=payload.department,
                year_of_study=payload.year_of_study,
                primary_role=UserRole(role),
                secondary_roles=list(dict.fromkeys(secondary_roles)),
                is_active=True,
            )
            session.add(user)
            await session.commit()
            logger.info(f"Created user {user.id} with role {role}")
            return user.id

    def _set_active(self, email: str, is_active: bool) -> int:
        verb = "activate" if is_active else "deactivate"
        print(f"=== {verb.capitalize()} User ===")
        if self.dry_run:
            print(f"[DRY RUN] Would {verb} {email}")
            return 0

        found = self.run(self._async_set_active, email.lower(), is_active)
        if not found:
            print(f"Error: no user with email {email}")
            return 1
        print(f"✓ {email} {verb}d")
        return 0

    async def _async_set_active(self, engine, email: str, is_active: bool) -> bool:
        async with self.session_factory(engine)() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user is None:
                return False
            user.is_active = is_active
            await session.commit()
            logger.info(f"User {user.id} is_active={is_active}")
            return True
