"""
Tournament API Schemas (Pydantic)
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator, model_validator

from tournament_hub.orm.tournament import RegistrationType, TournamentDepartment, TournamentType
from tournament_hub.schemas.common import CamelModel, to_naive_utc


class YearRestriction(CamelModel):
    enabled: bool = False
    allowed_years: List[int] = Field(default_factory=list)

    @field_validator("allowed_years")
    @classmethod
    def valid_years(cls, v: List[int]) -> List[int]:
        if any(year < 1 or year > 5 for year in v):
            raise ValueError("Allowed years must be between 1 and 5")
        return sorted(set(v))


class TournamentCreate(CamelModel):
    """Request schema for creating a tournament."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    game: str = Field(..., min_length=1, max_length=100)
    tournament_type: TournamentType = TournamentType.SINGLE_ELIMINATION
    registration_start: Optional[datetime] = None
    registration_end: datetime
    start_date: datetime
    requires_faculty_approval: bool = True
    registration_type: RegistrationType = RegistrationType.TEAM
    max_teams: int = Field(default=16, ge=2, le=64)
    team_size: int = Field(default=5, ge=1, le=10)
    department: TournamentDepartment = TournamentDepartment.All
    year_restriction: YearRestriction = Field(default_factory=YearRestriction)

    @field_validator("registration_start", "registration_end", "start_date")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.registration_start and self.registration_start > self.registration_end:
            raise ValueError("registrationStart must be before registrationEnd")
        return self

    def to_fields(self) -> Dict[str, Any]:
        """Column values for Tournament.create, without requires_faculty_approval."""
        data = self.model_dump(exclude={"year_restriction", "requires_faculty_approval"})
        data["year_restriction_enabled"] = self.year_restriction.enabled
        data["allowed_years"] = list(self.year_restriction.allowed_years)
        return data


class TournamentUpdate(CamelModel):
    """
    Partial update. Only fields present in the body are written.

    requiresFacultyApproval is not accepted: it is fixed at creation.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    game: Optional[str] = Field(None, min_length=1, max_length=100)
    tournament_type: Optional[TournamentType] = None
    registration_start: Optional[datetime] = None
    registration_end: Optional[datetime] = None
    start_date: Optional[datetime] = None
    registration_type: Optional[RegistrationType] = None
    max_teams: Optional[int] = Field(None, ge=2, le=64)
    team_size: Optional[int] = Field(None, ge=1, le=10)
    department: Optional[TournamentDepartment] = None
    year_restriction: Optional[YearRestriction] = None

    @field_validator("registration_start", "registration_end", "start_date")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    def to_changes(self) -> Dict[str, Any]:
        changes = self.model_dump(exclude_unset=True, exclude={"year_restriction"})
        # registrationStart may be cleared; the other columns are not nullable
        for field in list(changes):
            if field != "registration_start" and changes[field] is None:
                del changes[field]
        if self.year_restriction is not None:
            changes["year_restriction_enabled"] = self.year_restriction.enabled
            changes["allowed_years"] = list(self.year_restriction.allowed_years)
        return changes


class RejectRequest(CamelModel):
    # Length is checked by the aggregate so the error carries its message
    rejection_reason: Optional[str] = None


class CompleteRequest(CamelModel):
    winner_team_name: Optional[str] = Field(None, max_length=100)


class TeamRegistrationRequest(CamelModel):
    team_name: str = Field(..., min_length=1, max_length=100)
