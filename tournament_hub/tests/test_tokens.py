"""
Unit tests for bearer token issue and verification
"""
from datetime import timedelta

import pytest
from jose import jwt

from tournament_hub.config import settings
from tournament_hub.exceptions import AuthenticationFailed, ExpiredToken, InvalidToken
from tournament_hub.orm.base import utcnow
from tournament_hub.orm.user import User, UserRole
from tournament_hub.security.tokens import build_claims, issue_token, verify_token


@pytest.fixture
def organizer():
    return User(
        id=7,
        email="orga@college.edu",
        college_id="ORG0000007",
        full_name="Org Anizer",
        primary_role=UserRole.organizer,
        secondary_roles=["co_organizer"],
        is_email_verified=False,
    )


class TestIssueAndVerify:

    def test_verify_returns_claim_set(self, organizer):
        claims = verify_token(issue_token(organizer))

        assert claims["userId"] == 7
        assert claims["email"] == "orga@college.edu"
        assert claims["primaryRole"] == "organizer"
        assert claims["secondaryRoles"] == ["co_organizer"]
        assert claims["collegeId"] == "ORG0000007"
        assert claims["fullName"] == "Org Anizer"
        assert claims["isEmailVerified"] is False

    def test_claims_never_carry_password_hash(self, organizer):
        organizer.password_hash = "$2b$04$secret"
        assert "passwordHash" not in build_claims(organizer)
        assert "$2b$04$secret" not in str(verify_token(issue_token(organizer)))

    def test_token_valid_for_seven_days(self, organizer):
        claims = verify_token(issue_token(organizer))
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_still_valid_just_before_expiry(self, organizer):
        token = issue_token(organizer, now=utcnow() - timedelta(days=6, hours=23))
        assert verify_token(token)["userId"] == 7


class TestVerifyFailures:

    def test_expired_after_seven_days(self, organizer):
        token = issue_token(organizer, now=utcnow() - timedelta(days=8))
        with pytest.raises(ExpiredToken):
            verify_token(token)

    def test_wrong_signature_is_invalid(self, organizer):
        token = issue_token(organizer, secret_key="some-other-secret")
        with pytest.raises(InvalidToken):
            verify_token(token)

    def test_tampered_payload_is_invalid(self, organizer):
        forged = jwt.encode(
            {**build_claims(organizer), "primaryRole": "admin"},
            "attacker-secret",
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidToken):
            verify_token(forged)

    @pytest.mark.parametrize("token", ["not-a-token", "a.b", "", "Bearer xyz"])
    def test_malformed_token_fails_authentication(self, token):
        with pytest.raises(AuthenticationFailed):
            verify_token(token)

    def test_expired_and_invalid_are_unauthenticated(self):
        # Both map to 401 through the same base class
        assert ExpiredToken.status_code == 401
        assert InvalidToken.status_code == 401
        assert AuthenticationFailed.status_code == 401
