"""
Integration tests for /api/auth
"""
from datetime import timedelta

from conftest import DEFAULT_PASSWORD, auth_headers, create_user

from tournament_hub.errors import ErrorCode
from tournament_hub.orm.base import utcnow
from tournament_hub.orm.user import UserRole
from tournament_hub.security.tokens import issue_token, verify_token

REGISTRATION = {
    "email": "Alice.Student@college.edu",
    "password": "hunter22",
    "collegeId": "cs2021001",
    "fullName": "Alice Student",
    "department": "CSE",
    "yearOfStudy": 2,
}


class TestRegister:

    async def test_register_creates_student(self, client):
        response = await client.post("/api/auth/register", json=REGISTRATION)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True

        user = body["data"]["user"]
        assert user["email"] == "alice.student@college.edu"
        assert user["collegeId"] == "CS2021001"
        assert user["primaryRole"] == "student"
        assert user["secondaryRoles"] == []
        assert user["isActive"] is True
        assert user["winRate"] == 0.0
        assert user["canCreateTournaments"] is False
        assert "passwordHash" not in user
        assert "password_hash" not in user

        claims = verify_token(body["data"]["token"])
        assert claims["userId"] == user["id"]
        assert claims["primaryRole"] == "student"

    async def test_role_in_body_is_ignored(self, client):
        response = await client.post("/api/auth/register", json={**REGISTRATION, "primaryRole": "admin"})
        assert response.status_code == 201
        assert response.json()["data"]["user"]["primaryRole"] == "student"

    async def test_duplicate_email(self, client):
        assert (await client.post("/api/auth/register", json=REGISTRATION)).status_code == 201
        response = await client.post(
            "/api/auth/register", json={**REGISTRATION, "collegeId": "CS2021999"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.DUPLICATE_KEY

    async def test_duplicate_college_id(self, client):
        assert (await client.post("/api/auth/register", json=REGISTRATION)).status_code == 201
        response = await client.post(
            "/api/auth/register", json={**REGISTRATION, "email": "other@college.edu"}
        )
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.DUPLICATE_KEY

    async def test_non_college_email_is_rejected(self, client):
        response = await client.post("/api/auth/register", json={**REGISTRATION, "email": "alice@gmail.com"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == ErrorCode.VALIDATION_FAILED
        assert any("email" in detail["loc"] for detail in body["details"])

    async def test_short_password_is_rejected(self, client):
        response = await client.post("/api/auth/register", json={**REGISTRATION, "password": "12345"})
        assert response.status_code == 400
        assert response.json()["code"] == ErrorCode.VALIDATION_FAILED

    async def test_year_out_of_range(self, client):
        response = await client.post("/api/auth/register", json={**REGISTRATION, "yearOfStudy": 6})
        assert response.status_code == 400


class TestLogin:

    async def test_login_updates_activity(self, client, session_factory):
        user = await create_user(session_factory, role=UserRole.organizer)
        response = await client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user"]["loginCount"] == 1
        assert data["user"]["lastLogin"] is not None
        assert data["user"]["canCreateTournaments"] is True
        assert verify_token(data["token"])["primaryRole"] == "organizer"

    async def test_bad_password(self, client, session_factory):
        user = await create_user(session_factory)
        response = await client.post("/api/auth/login", json={"email": user.email, "password": "wrong-password"})
        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Invalid email or password"
        assert body["code"] == ErrorCode.AUTH_FAILED

    async def test_unknown_email(self, client):
        response = await client.post(
            "/api/auth/login", json={"email": "nobody@college.edu", "password": DEFAULT_PASSWORD}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    async def test_deactivated_login_is_forbidden_regardless_of_password(self, client, session_factory):
        user = await create_user(session_factory, is_active=False)
        for password in (DEFAULT_PASSWORD, "wrong-password"):
            response = await client.post("/api/auth/login", json={"email": user.email, "password": password})
            assert response.status_code == 403
            body = response.json()
            assert body["code"] == ErrorCode.ACCOUNT_DEACTIVATED
            assert body["error"] == "Account is deactivated. Please contact admin."


class TestCurrentIdentity:

    async def test_me_requires_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["code"] == ErrorCode.AUTH_REQUIRED

    async def test_me_returns_current_record(self, client, session_factory):
        user = await create_user(session_factory, role=UserRole.faculty)
        response = await client.get("/api/auth/me", headers=auth_headers(user))
        assert response.status_code == 200
        me = response.json()["data"]["user"]
        assert me["id"] == user.id
        assert me["primaryRole"] == "faculty"
        assert "passwordHash" not in me

    async def test_me_for_missing_user(self, client, session_factory):
        ghost = await create_user(session_factory)
        ghost.id = 987654
        response = await client.get("/api/auth/me", headers=auth_headers(ghost))
        assert response.status_code == 404
        assert response.json()["code"] == ErrorCode.USER_NOT_FOUND

    async def test_expired_token(self, client, session_factory):
        user = await create_user(session_factory)
        token = issue_token(user, now=utcnow() - timedelta(days=8))
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_EXPIRED

    async def test_invalid_signature(self, client, session_factory):
        user = await create_user(session_factory)
        token = issue_token(user, secret_key="not-the-server-secret")
        response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_INVALID

    async def test_malformed_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["code"] == ErrorCode.AUTH_FAILED

    async def test_check_echoes_claims(self, client, session_factory):
        user = await create_user(session_factory, role=UserRole.team_captain, secondary_roles=["score_reporter"])
        response = await client.get("/api/auth/check", headers=auth_headers(user))
        assert response.status_code == 200
        claims = response.json()["data"]["user"]
        assert claims["userId"] == user.id
        assert claims["primaryRole"] == "team_captain"
        assert claims["secondaryRoles"] == ["score_reporter"]

    async def test_logout(self, client, session_factory):
        user = await create_user(session_factory)
        response = await client.post("/api/auth/logout", headers=auth_headers(user))
        assert response.status_code == 200
        assert response.json()["success"] is True


class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_error_summary(self, client):
        response = await client.get("/api/errors/health")
        assert response.status_code == 200
        assert ErrorCode.STATE_TRANSITION_INVALID in response.json()["error_codes"]

    async def test_unknown_route_uses_error_envelope(self, client):
        response = await client.get("/api/does-not-exist")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["code"] == ErrorCode.NOT_FOUND
