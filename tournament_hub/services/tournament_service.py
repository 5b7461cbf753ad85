"""
Tournament Service

Request-level orchestration for the tournament aggregate: load it, check
the caller against the authorization policy, apply the aggregate method,
persist the whole thing.

Each call works in the caller's AsyncSession. There is no optimistic
concurrency token: two requests racing on the same tournament both load,
mutate and commit, and the later commit wins. In particular the capacity
check in register_team is not atomic with the append across requests.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.errors import ErrorCode
from tournament_hub.exceptions import AlreadyRegistered, Forbidden, NotFound, ValidationFailed
from tournament_hub.orm.tournament import Tournament, TournamentDepartment, TournamentType
from tournament_hub.orm.user import User
from tournament_hub.schemas.tournament import TournamentCreate, TournamentUpdate
from tournament_hub.security.rbac import Identity, ensure_can_manage
from tournament_hub.state_machines.tournament_state import PUBLIC_STATES, TournamentStatus

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


# ================= LOADING =================

async def get_tournament(db: AsyncSession, tournament_id: int) -> Tournament:
    """Load the whole aggregate, refreshing anything already in the session."""
    result = await db.execute(
        select(Tournament)
        .where(Tournament.id == tournament_id)
        .execution_options(populate_existing=True)
    )
    tournament = result.scalar_one_or_none()
    if tournament is None:
        raise NotFound("Tournament", code=ErrorCode.TOURNAMENT_NOT_FOUND)
    return tournament


async def _save(db: AsyncSession, tournament: Tournament) -> Tournament:
    await db.commit()
    return await get_tournament(db, tournament.id)


def _parse_enum(enum_cls, value: Optional[str], name: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationFailed(f"Invalid {name}: {value}")


async def list_tournaments(
    db: AsyncSession,
    status: Optional[str] = None,
    tournament_type: Optional[str] = None,
    department: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> Tuple[List[Tournament], Dict[str, int]]:
    """
    Public listing, newest first.

    Without a status filter only tournaments that are open, ongoing or
    completed are shown. department "All" means no department filter.
    """
    query = select(Tournament)

    status_value = _parse_enum(TournamentStatus, status, "status")
    if status_value is not None:
        query = query.where(Tournament.status == status_value)
    else:
        query = query.where(Tournament.status.in_(PUBLIC_STATES))

    type_value = _parse_enum(TournamentType, tournament_type, "tournamentType")
    if type_value is not None:
        query = query.where(Tournament.tournament_type == type_value)

    department_value = _parse_enum(TournamentDepartment, department, "department")
    if department_value is not None and department_value != TournamentDepartment.All:
        query = query.where(Tournament.department == department_value)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Tournament.name.ilike(pattern), Tournament.game.ilike(pattern)))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    result = await db.execute(
        query.order_by(Tournament.created_at.desc(), Tournament.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }
    return list(result.scalars().all()), pagination


async def list_pending_approvals(db: AsyncSession) -> List[Tournament]:
    result = await db.execute(
        select(Tournament)
        .where(
            Tournament.status == TournamentStatus.PENDING_APPROVAL,
            Tournament.requires_faculty_approval.is_(True),
        )
        .order_by(Tournament.created_at.desc(), Tournament.id.desc())
    )
    return list(result.scalars().all())


async def list_by_organizer(db: AsyncSession, organizer_id: int) -> List[Tournament]:
    result = await db.execute(
        select(Tournament)
        .where(Tournament.organizer_id == organizer_id)
        .order_by(Tournament.created_at.desc(), Tournament.id.desc())
    )
    return list(result.scalars().all())


# ================= AUTHORING =================

async def create_tournament(db: AsyncSession, identity: Identity, payload: TournamentCreate) -> Tournament:
    tournament = Tournament.create(
        organizer_id=identity.user_id,
        requires_faculty_approval=payload.requires_faculty_approval,
        **payload.to_fields(),
    )
    db.add(tournament)
    await db.flush()
    logger.info(
        f"Tournament {tournament.id} created by user {identity.user_id} in {tournament.status.value}"
    )
    return await _save(db, tournament)


async def update_tournament(
    db: AsyncSession, identity: Identity, tournament_id: int, payload: TournamentUpdate
) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    ensure_can_manage(identity, tournament)
    written = tournament.apply_update(payload.to_changes())
    logger.info(f"Tournament {tournament.id} updated by user {identity.user_id}: {written}")
    return await _save(db, tournament)


async def delete_tournament(db: AsyncSession, identity: Identity, tournament_id: int) -> None:
    tournament = await get_tournament(db, tournament_id)
    ensure_can_manage(identity, tournament)
    tournament.ensure_deletable()
    await db.delete(tournament)
    await db.commit()
    logger.info(f"Tournament {tournament_id} deleted by user {identity.user_id}")


# ================= LIFECYCLE =================

async def submit_for_approval(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    ensure_can_manage(identity, tournament)
    if tournament.organizer_id != identity.user_id:
        logger.warning(f"User {identity.user_id} tried to submit tournament {tournament.id} they do not organize")
        raise Forbidden("Only the organizer can submit for approval")
    tournament.submit()
    logger.info(f"Tournament {tournament.id} submitted for approval")
    return await _save(db, tournament)


async def approve_tournament(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    """Caller must already hold the approve capability; the state check happens here."""
    tournament = await get_tournament(db, tournament_id)
    tournament.approve(identity.user_id)
    logger.info(f"Tournament {tournament.id} approved by user {identity.user_id}")
    return await _save(db, tournament)


async def reject_tournament(
    db: AsyncSession, identity: Identity, tournament_id: int, reason: Optional[str]
) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    tournament.reject(identity.user_id, reason)
    logger.info(f"Tournament {tournament.id} rejected by user {identity.user_id}")
    return await _save(db, tournament)


async def _manage_transition(
    db: AsyncSession, identity: Identity, tournament_id: int, apply, **kwargs: Any
) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    ensure_can_manage(identity, tournament)
    previous = tournament.status
    apply(tournament, **kwargs)
    logger.info(
        f"Tournament {tournament.id}: {previous.value} -> {tournament.status.value} by user {identity.user_id}"
    )
    return await _save(db, tournament)


async def revise_tournament(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    return await _manage_transition(db, identity, tournament_id, Tournament.revise)


async def close_registration(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    return await _manage_transition(db, identity, tournament_id, Tournament.close_registration)


async def start_tournament(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    return await _manage_transition(db, identity, tournament_id, Tournament.start)


async def complete_tournament(
    db: AsyncSession, identity: Identity, tournament_id: int, winner_team_name: Optional[str] = None
) -> Tournament:
    return await _manage_transition(
        db, identity, tournament_id, Tournament.complete, winner_team_name=winner_team_name
    )


async def cancel_tournament(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    return await _manage_transition(db, identity, tournament_id, Tournament.cancel)


# ================= REGISTRATION =================

async def _load_participant(db: AsyncSession, identity: Identity) -> User:
    user = await db.get(User, identity.user_id)
    if user is None:
        raise NotFound("User", code=ErrorCode.USER_NOT_FOUND)
    return user


async def _commit_registration(db: AsyncSession, tournament: Tournament) -> Tournament:
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request registered the same captain or player first
        await db.rollback()
        raise AlreadyRegistered()
    return await get_tournament(db, tournament.id)


async def register_team(db: AsyncSession, identity: Identity, tournament_id: int, team_name: str) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    captain = await _load_participant(db, identity)
    tournament.register_team(captain, team_name)
    logger.info(f"Team '{team_name}' registered for tournament {tournament.id} by user {captain.id}")
    return await _commit_registration(db, tournament)


async def register_solo(db: AsyncSession, identity: Identity, tournament_id: int) -> Tournament:
    tournament = await get_tournament(db, tournament_id)
    player = await _load_participant(db, identity)
    tournament.register_solo(player)
    logger.info(f"Solo player {player.id} registered for tournament {tournament.id}")
    return await _commit_registration(db, tournament)
