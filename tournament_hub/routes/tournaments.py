"""
tournament_hub/routes/tournaments.py
Tournament routes: public listing, authoring, approval workflow, lifecycle and registration
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tournament_hub.database import get_db
from tournament_hub.schemas.tournament import (
    CompleteRequest,
    RejectRequest,
    TeamRegistrationRequest,
    TournamentCreate,
    TournamentUpdate,
)
from tournament_hub.security.dependencies import get_current_identity, require_capability
from tournament_hub.security.rbac import Capability, Identity
from tournament_hub.services import tournament_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tournaments", tags=["Tournaments"])

require_creator = require_capability(
    Capability.CREATE_TOURNAMENT, "Only organizers, faculty or admins can create tournaments"
)
require_approver = require_capability(
    Capability.APPROVE_TOURNAMENT, "Only faculty can approve or reject tournaments"
)


def _tournament_response(tournament, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": {"tournament": tournament.to_dict()}}
    if message:
        body["message"] = message
    return body


# ================= LISTINGS =================

@router.get("")
async def list_tournaments(
    status_filter: Optional[str] = Query(None, alias="status"),
    tournament_type: Optional[str] = Query(None, alias="tournamentType"),
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(tournament_service.DEFAULT_PAGE_SIZE, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    tournaments, pagination = await tournament_service.list_tournaments(
        db,
        status=status_filter,
        tournament_type=tournament_type,
        department=department,
        search=search,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "data": {
            "tournaments": [t.to_dict() for t in tournaments],
            "pagination": pagination,
        },
    }


@router.get("/pending/approvals")
async def pending_approvals(
    identity: Identity = Depends(require_capability(
        Capability.APPROVE_TOURNAMENT, "Only faculty can view pending approvals"
    )),
    db: AsyncSession = Depends(get_db),
):
    tournaments = await tournament_service.list_pending_approvals(db)
    return {"success": True, "data": {"tournaments": [t.to_dict() for t in tournaments]}}


@router.get("/organizer/my-tournaments")
async def my_tournaments(
    identity: Identity = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    tournaments = await tournament_service.list_by_organizer(db, identity.user_id)
    return {"success": True, "data": {"tournaments": [t.to_dict() for t in tournaments]}}


@router.get("/{tournament_id}")
async def get_tournament(tournament_id: int, db: AsyncSession = Depends(get_db)):
    tournament = await tournament_service.get_tournament(db, tournament_id)
    return _tournament_response(tournament)


# ================= AUTHORING =================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tournament(
    payload: TournamentCreate,
    identity: Identity = Depends(require_creator),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.create_tournament(db, identity, payload)
    message = (
        "Tournament created successfully. Please wait for approval."
        if tournament.requires_faculty_approval
        else "Tournament created successfully."
    )
    return _tournament_response(tournament, message)


@router.put("/{tournament_id}")
async def update_tournament(
    tournament_id: int,
    payload: TournamentUpdate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.update_tournament(db, identity, tournament_id, payload)
    return _tournament_response(tournament, "Tournament updated successfully")


@router.delete("/{tournament_id}")
async def delete_tournament(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await tournament_service.delete_tournament(db, identity, tournament_id)
    return {"success": True, "message": "Tournament deleted successfully"}


# ================= APPROVAL WORKFLOW =================

@router.post("/{tournament_id}/submit")
async def submit_for_approval(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.submit_for_approval(db, identity, tournament_id)
    return _tournament_response(tournament, "Tournament submitted for faculty approval")


@router.post("/{tournament_id}/approve")
async def approve_tournament(
    tournament_id: int,
    identity: Identity = Depends(require_approver),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.approve_tournament(db, identity, tournament_id)
    return _tournament_response(tournament, "Tournament approved successfully")


@router.post("/{tournament_id}/reject")
async def reject_tournament(
    tournament_id: int,
    payload: Optional[RejectRequest] = None,
    identity: Identity = Depends(require_approver),
    db: AsyncSession = Depends(get_db),
):
    reason = payload.rejection_reason if payload else None
    tournament = await tournament_service.reject_tournament(db, identity, tournament_id, reason)
    return _tournament_response(tournament, "Tournament rejected")


# ================= LIFECYCLE =================

@router.post("/{tournament_id}/revise")
async def revise_tournament(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.revise_tournament(db, identity, tournament_id)
    return _tournament_response(tournament, "Tournament returned to draft")


@router.post("/{tournament_id}/close-registration")
async def close_registration(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.close_registration(db, identity, tournament_id)
    return _tournament_response(tournament, "Registration closed")


@router.post("/{tournament_id}/start")
async def start_tournament(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.start_tournament(db, identity, tournament_id)
    return _tournament_response(tournament, "Tournament started")


@router.post("/{tournament_id}/complete")
async def complete_tournament(
    tournament_id: int,
    payload: Optional[CompleteRequest] = None,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    winner = payload.winner_team_name if payload else None
    tournament = await tournament_service.complete_tournament(db, identity, tournament_id, winner)
    return _tournament_response(tournament, "Tournament completed")


@router.post("/{tournament_id}/cancel")
async def cancel_tournament(
    tournament_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.cancel_tournament(db, identity, tournament_id)
    return _tournament_response(tournament, "Tournament cancelled")


# ================= REGISTRATION =================

@router.post("/{tournament_id}/register/team", status_code=status.HTTP_201_CREATED)
async def register_team(
    tournament_id: int,
    payload: TeamRegistrationRequest,
    identity: Identity = Depends(require_capability(
        Capability.REGISTER_TEAM, "Only team captains can register teams"
    )),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.register_team(db, identity, tournament_id, payload.team_name)
    return _tournament_response(tournament, "Team registered successfully")


@router.post("/{tournament_id}/register/solo", status_code=status.HTTP_201_CREATED)
async def register_solo(
    tournament_id: int,
    identity: Identity = Depends(require_capability(
        Capability.REGISTER_SOLO, "Only students can register as solo players"
    )),
    db: AsyncSession = Depends(get_db),
):
    tournament = await tournament_service.register_solo(db, identity, tournament_id)
    return _tournament_response(tournament, "Registered as solo player")
