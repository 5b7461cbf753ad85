"""
Authentication API Schemas (Pydantic)
"""
import re
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from tournament_hub.orm.user import Department
from tournament_hub.schemas.common import CamelModel

COLLEGE_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-z]+\.(ac\.in|edu\.in|edu)$")
COLLEGE_ID_PATTERN = re.compile(r"^[A-Z0-9]{8,12}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(CamelModel):
    """Request schema for self-registration. The primary role is always student."""
    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH)
    college_id: str
    full_name: str = Field(..., min_length=1, max_length=200)
    department: Department
    year_of_study: int = Field(..., ge=1, le=5)
    phone_number: Optional[str] = None

    @field_validator("email")
    @classmethod
    def college_email(cls, v: str) -> str:
        v = v.lower()
        if not COLLEGE_EMAIL_PATTERN.match(v):
            raise ValueError("Please use a valid college email address")
        return v

    @field_validator("college_id")
    @classmethod
    def college_id_format(cls, v: str) -> str:
        v = v.upper()
        if not COLLEGE_ID_PATTERN.match(v):
            raise ValueError("College ID must be 8-12 uppercase letters or digits")
        return v

    @field_validator("phone_number")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        if v and not PHONE_PATTERN.match(v):
            raise ValueError("Phone number must be 10 digits")
        return v or None


class LoginRequest(CamelModel):
    """JSON login schema"""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase(cls, v: str) -> str:
        return v.lower()
