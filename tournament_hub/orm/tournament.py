"""
tournament_hub/orm/tournament.py
Tournament aggregate: the tournament row plus its owned team and solo registrations.

All status changes and registrations go through the methods on Tournament so
that capacity, uniqueness and lifecycle rules live in one place.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, JSON, ForeignKey,
    UniqueConstraint, Enum as SQLEnum,
)
from sqlalchemy.orm import relationship

from tournament_hub.exceptions import (
    AlreadyRegistered,
    RegistrationClosed,
    RegistrationNotEligible,
    SoloRegistrationNotAllowed,
    TournamentFull,
    ValidationFailed,
)
from tournament_hub.orm.base import Base, BaseModel, utcnow, isoformat
from tournament_hub.state_machines.tournament_state import (
    TournamentAction,
    TournamentStatus,
    initial_status,
    next_status,
)

MIN_REJECTION_REASON_LENGTH = 10

# Fields an organizer may change while the tournament is draft or pending approval
UPDATABLE_FIELDS = (
    "name",
    "description",
    "game",
    "tournament_type",
    "registration_start",
    "registration_end",
    "start_date",
    "registration_type",
    "max_teams",
    "team_size",
    "department",
    "year_restriction_enabled",
    "allowed_years",
)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class TournamentType(str, Enum):
    SINGLE_ELIMINATION = "single-elimination"
    DOUBLE_ELIMINATION = "double-elimination"
    ROUND_ROBIN = "round-robin"
    SWISS = "swiss"


class RegistrationType(str, Enum):
    TEAM = "team"
    SOLO = "solo"
    HYBRID = "hybrid"


class TournamentDepartment(str, Enum):
    CSE = "CSE"
    ECE = "ECE"
    ME = "ME"
    CE = "CE"
    EEE = "EEE"
    IT = "IT"
    Other = "Other"
    All = "All"


class Tournament(BaseModel):
    """
    Tournament model.

    approval_* columns together form the approvalStatus sub-document.
    bracket is an opaque blob; nothing in this service generates it.
    """
    __tablename__ = "tournaments"

    # Tournament Info
    name = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    game = Column(String(100), nullable=False, index=True)
    tournament_type = Column(
        SQLEnum(TournamentType, values_callable=_values),
        nullable=False,
        default=TournamentType.SINGLE_ELIMINATION,
        index=True,
    )

    # Dates
    registration_start = Column(DateTime, nullable=True)
    registration_end = Column(DateTime, nullable=False)
    start_date = Column(DateTime, nullable=False)

    # Status
    status = Column(
        SQLEnum(TournamentStatus, values_callable=_values),
        nullable=False,
        default=TournamentStatus.DRAFT,
        index=True,
    )

    # Approval
    approved = Column(Boolean, nullable=False, default=False)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Organizer
    organizer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    requires_faculty_approval = Column(Boolean, nullable=False, default=True)

    # Registration
    registration_type = Column(
        SQLEnum(RegistrationType, values_callable=_values),
        nullable=False,
        default=RegistrationType.TEAM,
    )
    max_teams = Column(Integer, nullable=False, default=16)
    team_size = Column(Integer, nullable=False, default=5)

    # Bracket
    bracket_generated = Column(Boolean, nullable=False, default=False)
    bracket = Column(JSON, nullable=True)

    # Results
    winner_team_name = Column(String(100), nullable=True)
    winner_declared_at = Column(DateTime, nullable=True)

    # College Specific
    department = Column(
        SQLEnum(TournamentDepartment, values_callable=_values),
        nullable=False,
        default=TournamentDepartment.All,
        index=True,
    )
    year_restriction_enabled = Column(Boolean, nullable=False, default=False)
    allowed_years = Column(JSON, nullable=False, default=list)

    # Relationships
    organizer = relationship("User", foreign_keys=[organizer_id], lazy="selectin")
    registered_teams = relationship(
        "TeamRegistration",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TeamRegistration.id",
        lazy="selectin",
    )
    solo_players = relationship(
        "SoloRegistration",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="SoloRegistration.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Tournament(id={self.id}, name='{self.name}', status={self.status})>"

    @classmethod
    def create(cls, organizer_id: int, requires_faculty_approval: bool = True, **fields) -> "Tournament":
        """Build a new tournament in its initial state with every default applied."""
        tournament = cls(
            organizer_id=organizer_id,
            requires_faculty_approval=requires_faculty_approval,
            status=initial_status(requires_faculty_approval),
            approved=False,
            tournament_type=fields.pop("tournament_type", None) or TournamentType.SINGLE_ELIMINATION,
            registration_type=fields.pop("registration_type", None) or RegistrationType.TEAM,
            max_teams=fields.pop("max_teams", None) or 16,
            team_size=fields.pop("team_size", None) or 5,
            department=fields.pop("department", None) or TournamentDepartment.All,
            year_restriction_enabled=fields.pop("year_restriction_enabled", False),
            allowed_years=list(fields.pop("allowed_years", None) or []),
            bracket_generated=False,
            **fields,
        )
        tournament.registered_teams = []
        tournament.solo_players = []
        return tournament

    # ---- derived values ----

    def is_registration_open(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        if self.registration_start and self.registration_end:
            return self.registration_start <= now <= self.registration_end
        return now <= self.registration_end

    def can_register(self, now: Optional[datetime] = None) -> bool:
        return self.status == TournamentStatus.REGISTRATION_OPEN and self.is_registration_open(now)

    @property
    def team_count(self) -> int:
        return len(self.registered_teams)

    @property
    def solo_count(self) -> int:
        return len(self.solo_players)

    @property
    def total_participants(self) -> int:
        return self.team_count + self.solo_count

    @property
    def is_full(self) -> bool:
        return self.team_count >= self.max_teams

    @property
    def needs_approval(self) -> bool:
        return self.status == TournamentStatus.PENDING_APPROVAL and bool(self.requires_faculty_approval)

    @property
    def approval_status(self) -> Dict[str, Any]:
        return {
            "approved": bool(self.approved),
            "approvedBy": self.approved_by_id,
            "approvedAt": isoformat(self.approved_at),
            "rejectionReason": self.rejection_reason,
        }

    # ---- lifecycle ----

    def _advance(self, action: TournamentAction) -> TournamentStatus:
        self.status = next_status(self.status, action)
        return self.status

    def submit(self) -> None:
        self._advance(TournamentAction.SUBMIT)

    def approve(self, approver_id: int, now: Optional[datetime] = None) -> None:
        self._advance(TournamentAction.APPROVE)
        self.approved = True
        self.approved_by_id = approver_id
        self.approved_at = now or utcnow()
        self.rejection_reason = None

    def reject(self, approver_id: int, reason: Optional[str], now: Optional[datetime] = None) -> None:
        if not reason or len(reason.strip()) < MIN_REJECTION_REASON_LENGTH:
            raise ValidationFailed(
                f"Rejection reason must be at least {MIN_REJECTION_REASON_LENGTH} characters"
            )
        self._advance(TournamentAction.REJECT)
        self.approved = False
        self.approved_by_id = approver_id
        self.approved_at = now or utcnow()
        self.rejection_reason = reason

    def revise(self) -> None:
        """Send a rejected tournament back to draft with its approval record cleared."""
        self._advance(TournamentAction.REVISE)
        self.approved = False
        self.approved_by_id = None
        self.approved_at = None
        self.rejection_reason = None

    def close_registration(self) -> None:
        self._advance(TournamentAction.CLOSE_REGISTRATION)

    def start(self) -> None:
        self._advance(TournamentAction.START)

    def complete(self, winner_team_name: Optional[str] = None, now: Optional[datetime] = None) -> None:
        target = next_status(self.status, TournamentAction.COMPLETE)
        if winner_team_name and not any(
            entry.team_name.lower() == winner_team_name.lower() for entry in self.registered_teams
        ):
            raise ValidationFailed(f"Team '{winner_team_name}' is not registered in this tournament")
        self.status = target
        if winner_team_name:
            self.winner_team_name = winner_team_name
            self.winner_declared_at = now or utcnow()

    def cancel(self) -> None:
        self._advance(TournamentAction.CANCEL)

    def apply_update(self, changes: Dict[str, Any]) -> List[str]:
        """
        Apply field changes. Status never changes here.

        Returns the names of the fields that were written.
        """
        next_status(self.status, TournamentAction.UPDATE)
        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationFailed("Fields cannot be updated", details=unknown)

        merged_start = changes.get("registration_start", self.registration_start)
        merged_end = changes.get("registration_end", self.registration_end)
        if merged_start and merged_end and merged_start > merged_end:
            raise ValidationFailed("registrationStart must be before registrationEnd")
        merged_max = changes.get("max_teams", self.max_teams)
        if merged_max < self.team_count:
            raise ValidationFailed("maxTeams cannot be lower than the number of registered teams")

        for field in UPDATABLE_FIELDS:
            if field in changes:
                value = changes[field]
                setattr(self, field, list(value) if field == "allowed_years" else value)
        return [field for field in UPDATABLE_FIELDS if field in changes]

    def ensure_deletable(self) -> None:
        next_status(self.status, TournamentAction.DELETE)

    # ---- registration ----

    def _check_eligibility(self, year_of_study: Optional[int]) -> None:
        if self.year_restriction_enabled and year_of_study not in (self.allowed_years or []):
            raise RegistrationNotEligible(
                f"Registration is restricted to years {sorted(self.allowed_years or [])}"
            )

    def register_team(self, captain, team_name: str, now: Optional[datetime] = None) -> "TeamRegistration":
        """
        Append a team registration captained by the given user.

        Capacity and uniqueness are checked against the collection as loaded.
        """
        now = now or utcnow()
        if not self.can_register(now):
            raise RegistrationClosed("Cannot register team: registration is not open")
        if self.is_full:
            raise TournamentFull("Cannot register team: tournament is full")
        self._check_eligibility(captain.year_of_study)

        for entry in self.registered_teams:
            if entry.captain_id == captain.id:
                raise AlreadyRegistered("You have already registered a team for this tournament")
            if entry.team_name.lower() == team_name.lower():
                raise AlreadyRegistered(f"Team name '{team_name}' is already taken")

        registration = TeamRegistration(
            team_name=team_name,
            captain_id=captain.id,
            registered_at=now,
            approved=self.registration_type != RegistrationType.TEAM,
        )
        self.registered_teams.append(registration)
        return registration

    def register_solo(self, player, now: Optional[datetime] = None) -> "SoloRegistration":
        now = now or utcnow()
        if not self.can_register(now) or self.registration_type == RegistrationType.TEAM:
            raise SoloRegistrationNotAllowed()
        self._check_eligibility(player.year_of_study)

        if any(entry.player_id == player.id for entry in self.solo_players):
            raise AlreadyRegistered()

        registration = SoloRegistration(player_id=player.id, registered_at=now, matched=False)
        self.solo_players.append(registration)
        return registration

    # ---- serialization ----

    def to_dict(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "game": self.game,
            "tournamentType": self.tournament_type.value if self.tournament_type else None,
            "registrationStart": isoformat(self.registration_start),
            "registrationEnd": isoformat(self.registration_end),
            "startDate": isoformat(self.start_date),
            "status": self.status.value if self.status else None,
            "approvalStatus": self.approval_status,
            "organizer": self.organizer.to_summary() if self.organizer else {"id": self.organizer_id},
            "requiresFacultyApproval": self.requires_faculty_approval,
            "registrationType": self.registration_type.value if self.registration_type else None,
            "maxTeams": self.max_teams,
            "teamSize": self.team_size,
            "registeredTeams": [entry.to_dict() for entry in self.registered_teams],
            "soloPlayers": [entry.to_dict() for entry in self.solo_players],
            "bracketGenerated": self.bracket_generated,
            "bracket": self.bracket,
            "winner": {
                "teamName": self.winner_team_name,
                "declaredAt": isoformat(self.winner_declared_at),
            } if self.winner_team_name else None,
            "department": self.department.value if self.department else None,
            "yearRestriction": {
                "enabled": self.year_restriction_enabled,
                "allowedYears": list(self.allowed_years or []),
            },
            "isRegistrationOpen": self.is_registration_open(now),
            "canRegister": self.can_register(now),
            "teamCount": self.team_count,
            "soloCount": self.solo_count,
            "totalParticipants": self.total_participants,
            "isFull": self.is_full,
            "needsApproval": self.needs_approval,
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }


class TeamRegistration(Base):
    """A team entered into a tournament, owned by the tournament"""
    __tablename__ = "tournament_team_registrations"
    __table_args__ = (
        UniqueConstraint("tournament_id", "captain_id", name="uq_team_registration_captain"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    team_name = Column(String(100), nullable=False)
    captain_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    registered_at = Column(DateTime, nullable=False, default=utcnow)
    approved = Column(Boolean, nullable=False, default=False)

    tournament = relationship("Tournament", back_populates="registered_teams")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "teamName": self.team_name,
            "captain": self.captain_id,
            "registeredAt": isoformat(self.registered_at),
            "approved": self.approved,
        }


class SoloRegistration(Base):
    """A solo player entered into a tournament, owned by the tournament"""
    __tablename__ = "tournament_solo_registrations"
    __table_args__ = (
        UniqueConstraint("tournament_id", "player_id", name="uq_solo_registration_player"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    tournament_id = Column(Integer, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False, index=True)
    player_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    registered_at = Column(DateTime, nullable=False, default=utcnow)
    matched = Column(Boolean, nullable=False, default=False)

    tournament = relationship("Tournament", back_populates="solo_players")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "player": self.player_id,
            "registeredAt": isoformat(self.registered_at),
            "matched": self.matched,
        }
