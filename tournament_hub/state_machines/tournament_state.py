"""
Tournament Lifecycle State Machine

State Flow:
    draft → pending_approval → registration_open → registration_closed → ongoing → completed
    pending_approval → rejected → draft (revise)
    any non-terminal state before completion → cancelled

Tournaments that do not require faculty approval start in registration_open.
This module is pure: it decides what an action does to a status and never
touches the database. The aggregate methods on Tournament apply the result.
"""
import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from tournament_hub.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


class TournamentStatus(str, Enum):
    """Tournament lifecycle states."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    REGISTRATION_OPEN = "registration_open"
    REGISTRATION_CLOSED = "registration_closed"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class TournamentAction(str, Enum):
    """Actions that drive (or are gated by) the lifecycle."""
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    UPDATE = "update"
    DELETE = "delete"
    REVISE = "revise"
    CLOSE_REGISTRATION = "close_registration"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


S = TournamentStatus

# action -> (states it may be applied in, resulting state or None when unchanged)
TRANSITIONS: Dict[TournamentAction, Tuple[FrozenSet[TournamentStatus], Optional[TournamentStatus]]] = {
    TournamentAction.SUBMIT: (frozenset({S.DRAFT}), S.PENDING_APPROVAL),
    TournamentAction.APPROVE: (frozenset({S.PENDING_APPROVAL}), S.REGISTRATION_OPEN),
    TournamentAction.REJECT: (frozenset({S.PENDING_APPROVAL}), S.REJECTED),
    TournamentAction.UPDATE: (frozenset({S.DRAFT, S.PENDING_APPROVAL}), None),
    TournamentAction.DELETE: (frozenset({S.DRAFT, S.PENDING_APPROVAL}), None),
    TournamentAction.REVISE: (frozenset({S.REJECTED}), S.DRAFT),
    TournamentAction.CLOSE_REGISTRATION: (frozenset({S.REGISTRATION_OPEN}), S.REGISTRATION_CLOSED),
    TournamentAction.START: (frozenset({S.REGISTRATION_CLOSED}), S.ONGOING),
    TournamentAction.COMPLETE: (frozenset({S.ONGOING}), S.COMPLETED),
    TournamentAction.CANCEL: (
        frozenset({S.DRAFT, S.PENDING_APPROVAL, S.REGISTRATION_OPEN, S.REGISTRATION_CLOSED, S.ONGOING}),
        S.CANCELLED,
    ),
}

TERMINAL_STATES = frozenset({S.COMPLETED, S.CANCELLED})

# Statuses shown on the public listing when no status filter is given
PUBLIC_STATES = (S.REGISTRATION_OPEN, S.ONGOING, S.COMPLETED)

_REJECTION_MESSAGES = {
    TournamentAction.APPROVE: "Tournament is not pending approval",
    TournamentAction.REJECT: "Tournament is not pending approval",
    TournamentAction.UPDATE: "Cannot update tournament after approval",
    TournamentAction.DELETE: "Cannot delete tournament after approval",
    TournamentAction.REVISE: "Only rejected tournaments can be revised",
    TournamentAction.CLOSE_REGISTRATION: "Registration is not open",
    TournamentAction.START: "Registration must be closed before the tournament starts",
    TournamentAction.COMPLETE: "Only ongoing tournaments can be completed",
}


def initial_status(requires_faculty_approval: bool) -> TournamentStatus:
    """Status a tournament is created in."""
    return S.DRAFT if requires_faculty_approval else S.REGISTRATION_OPEN


def can_transition(current: TournamentStatus, action: TournamentAction) -> bool:
    """Check if an action is defined for the current status."""
    allowed_from, _ = TRANSITIONS[action]
    return TournamentStatus(current) in allowed_from


def allowed_actions(current: TournamentStatus) -> List[TournamentAction]:
    """Actions that may be applied in the current status, in declaration order."""
    return [action for action in TRANSITIONS if can_transition(current, action)]


def _rejection_message(current: TournamentStatus, action: TournamentAction) -> str:
    if action == TournamentAction.SUBMIT:
        return f"Tournament is already {current.value}"
    if action == TournamentAction.CANCEL:
        return f"Tournament is already {current.value}"
    return _REJECTION_MESSAGES[action]


def next_status(current: TournamentStatus, action: TournamentAction) -> TournamentStatus:
    """
    Resolve the status an action leads to.

    Raises:
        InvalidStateTransition: if the action is not defined for current
    """
    current = TournamentStatus(current)
    if not can_transition(current, action):
        logger.info(f"Rejected transition: {action.value} from {current.value}")
        raise InvalidStateTransition(
            _rejection_message(current, action),
            current_state=current.value,
            action=action.value,
        )
    _, target = TRANSITIONS[action]
    return target or current
