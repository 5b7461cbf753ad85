"""
Admin user-management schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from tournament_hub.orm.user import SecondaryRole, UserRole
from tournament_hub.schemas.common import CamelModel, to_naive_utc


class ActiveUpdate(CamelModel):
    is_active: bool


class NoteCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=2000)


class WarningCreate(CamelModel):
    """A warning increments the counter; the reason, if given, is kept as a note."""
    reason: Optional[str] = Field(None, max_length=2000)


class RestrictRequest(CamelModel):
    # None lifts the restriction
    restricted_until: Optional[datetime] = None

    @field_validator("restricted_until")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class RoleUpdate(CamelModel):
    primary_role: Optional[UserRole] = None
    secondary_roles: Optional[List[SecondaryRole]] = None
