"""
tournament_hub/security/rbac.py
Role & capability policy

Roles are one primary role plus a set of secondary roles. Every permission
check in the application goes through has_capability() or one of the
tournament predicates below; no route keeps its own role list.

The functions here are pure: they take an Identity and decide. The FastAPI
dependencies that build an Identity from a request live in
security/dependencies.py.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from tournament_hub.exceptions import AuthenticationFailed, Forbidden
from tournament_hub.orm.user import SecondaryRole, UserRole
from tournament_hub.state_machines.tournament_state import TournamentStatus

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    CREATE_TOURNAMENT = "create_tournament"
    MANAGE_BRACKETS = "manage_brackets"
    APPROVE_TOURNAMENT = "approve_tournament"
    ADMINISTER = "administer"
    REGISTER_TEAM = "register_team"
    REGISTER_SOLO = "register_solo"


# Capabilities granted by the primary role
PRIMARY_ROLE_CAPABILITIES: Dict[UserRole, FrozenSet[Capability]] = {
    UserRole.student: frozenset({Capability.REGISTER_SOLO}),
    UserRole.team_captain: frozenset({Capability.REGISTER_SOLO, Capability.REGISTER_TEAM}),
    UserRole.organizer: frozenset({Capability.CREATE_TOURNAMENT, Capability.MANAGE_BRACKETS}),
    UserRole.faculty: frozenset({
        Capability.CREATE_TOURNAMENT,
        Capability.MANAGE_BRACKETS,
        Capability.APPROVE_TOURNAMENT,
    }),
    UserRole.admin: frozenset({
        Capability.CREATE_TOURNAMENT,
        Capability.MANAGE_BRACKETS,
        Capability.ADMINISTER,
    }),
}

# Capabilities added by secondary roles
SECONDARY_ROLE_CAPABILITIES: Dict[SecondaryRole, FrozenSet[Capability]] = {
    SecondaryRole.team_captain: frozenset({Capability.REGISTER_TEAM}),
    SecondaryRole.score_reporter: frozenset(),
    SecondaryRole.co_organizer: frozenset(),
}


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as asserted by a token or read from a user record."""
    user_id: int
    primary_role: UserRole
    secondary_roles: Tuple[SecondaryRole, ...] = ()
    email: Optional[str] = None
    college_id: Optional[str] = None
    full_name: Optional[str] = None
    is_email_verified: bool = False
    claims: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Identity":
        try:
            return cls(
                user_id=int(claims["userId"]),
                primary_role=UserRole(claims["primaryRole"]),
                secondary_roles=tuple(SecondaryRole(r) for r in claims.get("secondaryRoles") or []),
                email=claims.get("email"),
                college_id=claims.get("collegeId"),
                full_name=claims.get("fullName"),
                is_email_verified=bool(claims.get("isEmailVerified", False)),
                claims=dict(claims),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Token claims rejected: {e}")
            raise AuthenticationFailed()

    @classmethod
    def from_user(cls, user) -> "Identity":
        return cls(
            user_id=user.id,
            primary_role=user.primary_role or UserRole.student,
            secondary_roles=tuple(SecondaryRole(r) for r in user.secondary_roles or []),
            email=user.email,
            college_id=user.college_id,
            full_name=user.full_name,
            is_email_verified=bool(user.is_email_verified),
        )


def capabilities_of(identity: Identity) -> FrozenSet[Capability]:
    granted = set(PRIMARY_ROLE_CAPABILITIES.get(identity.primary_role, frozenset()))
    for role in identity.secondary_roles:
        granted |= SECONDARY_ROLE_CAPABILITIES.get(role, frozenset())
    return frozenset(granted)


def has_capability(identity: Identity, capability: Capability) -> bool:
    return capability in capabilities_of(identity)


def has_role(identity: Identity, role: str) -> bool:
    """Check the role against both the primary role and the secondary set."""
    return identity.primary_role.value == role or any(r.value == role for r in identity.secondary_roles)


def can_manage(identity: Identity, tournament) -> bool:
    """Organizer, approver on record, or admin."""
    is_organizer = tournament.organizer_id == identity.user_id
    is_approver = tournament.approved_by_id is not None and tournament.approved_by_id == identity.user_id
    return is_organizer or is_approver or has_capability(identity, Capability.ADMINISTER)


def can_approve(identity: Identity, tournament) -> bool:
    """Only faculty can approve, and only while the tournament is pending approval."""
    return (
        has_capability(identity, Capability.APPROVE_TOURNAMENT)
        and tournament.status == TournamentStatus.PENDING_APPROVAL
    )


# ================= ENFORCEMENT =================

def ensure_capability(identity: Identity, capability: Capability, message: Optional[str] = None) -> None:
    if not has_capability(identity, capability):
        logger.warning(
            f"Access denied: user {identity.user_id} ({identity.primary_role.value}) lacks {capability.value}"
        )
        raise Forbidden(message)


def ensure_can_manage(identity: Identity, tournament, message: Optional[str] = None) -> None:
    if not can_manage(identity, tournament):
        logger.warning(f"Access denied: user {identity.user_id} cannot manage tournament {tournament.id}")
        raise Forbidden(message or "You do not have permission to manage this tournament")
