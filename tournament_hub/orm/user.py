"""
tournament_hub/orm/user.py
User (identity) model with primary/secondary roles and admin bookkeeping
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship

from tournament_hub.orm.base import Base, BaseModel, utcnow, isoformat


class UserRole(str, Enum):
    """Primary roles - exactly one per user"""
    student = "student"
    team_captain = "team_captain"
    organizer = "organizer"
    faculty = "faculty"
    admin = "admin"


class SecondaryRole(str, Enum):
    """Secondary roles - zero or more per user"""
    team_captain = "team_captain"
    score_reporter = "score_reporter"
    co_organizer = "co_organizer"


class Department(str, Enum):
    CSE = "CSE"
    ECE = "ECE"
    ME = "ME"
    CE = "CE"
    EEE = "EEE"
    IT = "IT"
    Other = "Other"


ROLE_DISPLAY_NAMES = {
    "student": "Student",
    "team_captain": "Team Captain",
    "organizer": "Organizer",
    "faculty": "Faculty",
    "admin": "Admin",
    "score_reporter": "Score Reporter",
    "co_organizer": "Co-Organizer",
}


class User(BaseModel):
    """
    User model.

    KEY FIELDS:
    - primary_role: never absent, defaults to student
    - secondary_roles: list of SecondaryRole values, stored as JSON
    - is_active / restricted_until: admin controls, users are never hard-deleted
    """
    __tablename__ = "users"

    # Identity and Auth
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    college_id = Column(String(12), nullable=False, unique=True, index=True)

    # Personal Info
    full_name = Column(String(200), nullable=False)
    profile_picture = Column(String(500), nullable=False, default="")
    department = Column(SQLEnum(Department), nullable=False, index=True)
    year_of_study = Column(Integer, nullable=False)
    phone_number = Column(String(10), nullable=True)

    # Role System
    primary_role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.student, index=True)
    secondary_roles = Column(JSON, nullable=False, default=list)

    # Organizer/Faculty Specific
    club_association = Column(String(200), nullable=False, default="")
    faculty_department = Column(String(200), nullable=False, default="")
    is_verified_organizer = Column(Boolean, nullable=False, default=False)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Student Specific
    is_available_for_solo_match = Column(Boolean, nullable=False, default=False)

    # Platform Status & Verification
    is_email_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_profile_complete = Column(Boolean, nullable=False, default=False)

    # Activity & Statistics
    last_login = Column(DateTime, nullable=True)
    login_count = Column(Integer, nullable=False, default=0)
    total_matches_played = Column(Integer, nullable=False, default=0)
    matches_won = Column(Integer, nullable=False, default=0)

    # Admin Management
    warnings = Column(Integer, nullable=False, default=0)
    restricted_until = Column(DateTime, nullable=True)

    notes = relationship(
        "UserNote",
        back_populates="user",
        foreign_keys="UserNote.user_id",
        cascade="all, delete-orphan",
        order_by="UserNote.added_at",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.primary_role})>"

    # ---- roles ----

    @property
    def role_values(self) -> List[str]:
        """Primary role followed by secondary roles, as plain strings."""
        primary = self.primary_role.value if self.primary_role else UserRole.student.value
        return [primary] + list(self.secondary_roles or [])

    @property
    def display_role(self) -> str:
        primary = self.primary_role.value if self.primary_role else "student"
        display = ROLE_DISPLAY_NAMES.get(primary, "Student")
        if self.secondary_roles:
            secondary = ", ".join(ROLE_DISPLAY_NAMES.get(r, r) for r in self.secondary_roles)
            return f"{display} ({secondary})"
        return display

    # ---- derived values ----

    @property
    def win_rate(self) -> float:
        if not self.total_matches_played:
            return 0.0
        return round((self.matches_won or 0) / self.total_matches_played * 100, 1)

    def is_restricted(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return self.restricted_until is not None and self.restricted_until > now

    def record_login(self, now: Optional[datetime] = None) -> None:
        self.last_login = now or utcnow()
        self.login_count = (self.login_count or 0) + 1

    # ---- serialization ----

    def to_summary(self) -> dict:
        """Public projection used when a user is embedded in another resource."""
        return {
            "id": self.id,
            "fullName": self.full_name,
            "email": self.email,
            "collegeId": self.college_id,
            "department": self.department.value if self.department else None,
        }

    def to_dict(self, include_admin: bool = False) -> dict:
        """
        Full projection without secrets.

        include_admin adds the notes trail, which only admins see.
        """
        from tournament_hub.security.rbac import Capability, Identity, has_capability

        identity = Identity.from_user(self)
        data = {
            "id": self.id,
            "email": self.email,
            "collegeId": self.college_id,
            "fullName": self.full_name,
            "profilePicture": self.profile_picture,
            "department": self.department.value if self.department else None,
            "yearOfStudy": self.year_of_study,
            "phoneNumber": self.phone_number,
            "primaryRole": self.primary_role.value if self.primary_role else None,
            "secondaryRoles": list(self.secondary_roles or []),
            "displayRole": self.display_role,
            "clubAssociation": self.club_association,
            "facultyDepartment": self.faculty_department,
            "isVerifiedOrganizer": self.is_verified_organizer,
            "isAvailableForSoloMatch": self.is_available_for_solo_match,
            "isEmailVerified": self.is_email_verified,
            "isActive": self.is_active,
            "isProfileComplete": self.is_profile_complete,
            "isRestricted": self.is_restricted(),
            "restrictedUntil": isoformat(self.restricted_until),
            "warnings": self.warnings,
            "lastLogin": isoformat(self.last_login),
            "loginCount": self.login_count,
            "totalMatchesPlayed": self.total_matches_played,
            "matchesWon": self.matches_won,
            "winRate": self.win_rate,
            "canCreateTournaments": has_capability(identity, Capability.CREATE_TOURNAMENT),
            "canManageBrackets": has_capability(identity, Capability.MANAGE_BRACKETS),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
        if include_admin:
            data["notes"] = [note.to_dict() for note in self.notes]
        return data


class UserNote(Base):
    """Admin note attached to a user"""
    __tablename__ = "user_notes"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    added_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)

    user = relationship("User", back_populates="notes", foreign_keys=[user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "addedBy": self.added_by_id,
            "addedAt": isoformat(self.added_at),
        }
