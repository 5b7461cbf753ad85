from .base import Base

from .user import User, UserNote, UserRole, SecondaryRole, Department
from .tournament import (
    Tournament,
    TeamRegistration,
    SoloRegistration,
    TournamentType,
    RegistrationType,
    TournamentDepartment,
)
