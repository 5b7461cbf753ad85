"""
Unit tests for the role & capability policy
"""
from datetime import timedelta

import pytest

from tournament_hub.exceptions import AuthenticationFailed, Forbidden
from tournament_hub.orm.base import utcnow
from tournament_hub.orm.tournament import Tournament
from tournament_hub.orm.user import SecondaryRole, User, UserRole
from tournament_hub.security.rbac import (
    Capability,
    Identity,
    can_approve,
    can_manage,
    ensure_can_manage,
    ensure_capability,
    has_capability,
    has_role,
)
from tournament_hub.state_machines.tournament_state import TournamentStatus


def identity(user_id=1, role=UserRole.student, secondary=()):
    return Identity(user_id=user_id, primary_role=role, secondary_roles=tuple(secondary))


def tournament(organizer_id=1, status=TournamentStatus.DRAFT, approved_by_id=None):
    t = Tournament.create(
        organizer_id,
        requires_faculty_approval=True,
        name="Cup",
        description="desc",
        game="FIFA",
        registration_end=utcnow() + timedelta(days=3),
        start_date=utcnow() + timedelta(days=5),
    )
    t.id = 99
    t.status = status
    t.approved_by_id = approved_by_id
    return t


class TestCapabilityTable:

    @pytest.mark.parametrize("role,expected", [
        (UserRole.student, False),
        (UserRole.team_captain, False),
        (UserRole.organizer, True),
        (UserRole.faculty, True),
        (UserRole.admin, True),
    ])
    def test_create_tournament(self, role, expected):
        assert has_capability(identity(role=role), Capability.CREATE_TOURNAMENT) is expected
        assert has_capability(identity(role=role), Capability.MANAGE_BRACKETS) is expected

    @pytest.mark.parametrize("role", list(UserRole))
    def test_only_faculty_approves(self, role):
        assert has_capability(identity(role=role), Capability.APPROVE_TOURNAMENT) is (role == UserRole.faculty)

    @pytest.mark.parametrize("role", list(UserRole))
    def test_only_admin_administers(self, role):
        assert has_capability(identity(role=role), Capability.ADMINISTER) is (role == UserRole.admin)

    def test_register_team_from_primary_or_secondary_role(self):
        assert has_capability(identity(role=UserRole.team_captain), Capability.REGISTER_TEAM)
        assert has_capability(
            identity(role=UserRole.student, secondary=[SecondaryRole.team_captain]),
            Capability.REGISTER_TEAM,
        )
        assert not has_capability(identity(role=UserRole.student), Capability.REGISTER_TEAM)

    def test_register_solo(self):
        assert has_capability(identity(role=UserRole.student), Capability.REGISTER_SOLO)
        assert has_capability(identity(role=UserRole.team_captain), Capability.REGISTER_SOLO)
        assert not has_capability(identity(role=UserRole.organizer), Capability.REGISTER_SOLO)

    def test_secondary_roles_do_not_grant_creation(self):
        organizer_helper = identity(role=UserRole.student, secondary=[SecondaryRole.co_organizer])
        assert not has_capability(organizer_helper, Capability.CREATE_TOURNAMENT)

    def test_has_role_checks_primary_and_secondary(self):
        who = identity(role=UserRole.organizer, secondary=[SecondaryRole.score_reporter])
        assert has_role(who, "organizer")
        assert has_role(who, "score_reporter")
        assert not has_role(who, "admin")


class TestIdentity:

    def test_from_claims(self):
        who = Identity.from_claims({
            "userId": 5,
            "primaryRole": "faculty",
            "secondaryRoles": ["co_organizer"],
            "email": "prof@college.edu",
        })
        assert who.user_id == 5
        assert who.primary_role == UserRole.faculty
        assert who.secondary_roles == (SecondaryRole.co_organizer,)

    @pytest.mark.parametrize("claims", [
        {},
        {"userId": 1},
        {"userId": 1, "primaryRole": "superuser"},
        {"userId": "abc", "primaryRole": "student"},
        {"userId": 1, "primaryRole": "student", "secondaryRoles": ["wizard"]},
    ])
    def test_from_bad_claims(self, claims):
        with pytest.raises(AuthenticationFailed):
            Identity.from_claims(claims)

    def test_from_user_matches_record(self):
        user = User(id=3, primary_role=UserRole.team_captain, secondary_roles=["score_reporter"],
                    email="cap@college.edu", college_id="CAP0000003", full_name="Cap", is_email_verified=True)
        who = Identity.from_user(user)
        assert who.user_id == 3
        assert who.primary_role == UserRole.team_captain
        assert who.secondary_roles == (SecondaryRole.score_reporter,)
        assert who.is_email_verified is True


class TestTournamentPredicates:

    def test_organizer_can_manage(self):
        assert can_manage(identity(user_id=1, role=UserRole.organizer), tournament(organizer_id=1))

    def test_other_organizer_cannot_manage(self):
        assert not can_manage(identity(user_id=2, role=UserRole.organizer), tournament(organizer_id=1))

    def test_approver_on_record_can_manage(self):
        t = tournament(organizer_id=1, status=TournamentStatus.REGISTRATION_OPEN, approved_by_id=4)
        assert can_manage(identity(user_id=4, role=UserRole.faculty), t)
        assert not can_manage(identity(user_id=5, role=UserRole.faculty), t)

    def test_admin_can_manage_anything(self):
        assert can_manage(identity(user_id=9, role=UserRole.admin), tournament(organizer_id=1))

    def test_can_approve_requires_faculty_and_pending(self):
        pending = tournament(status=TournamentStatus.PENDING_APPROVAL)
        draft = tournament(status=TournamentStatus.DRAFT)
        assert can_approve(identity(role=UserRole.faculty), pending)
        assert not can_approve(identity(role=UserRole.faculty), draft)
        assert not can_approve(identity(role=UserRole.admin), pending)


class TestEnforcement:

    def test_ensure_capability_raises_forbidden(self):
        with pytest.raises(Forbidden) as exc:
            ensure_capability(identity(), Capability.CREATE_TOURNAMENT, "nope")
        assert exc.value.message == "nope"
        assert exc.value.status_code == 403

    def test_ensure_can_manage_raises_forbidden(self):
        with pytest.raises(Forbidden):
            ensure_can_manage(identity(user_id=2, role=UserRole.organizer), tournament(organizer_id=1))
