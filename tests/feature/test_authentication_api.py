"""
Feature tests for registration, login, password reset and bearer token
handling through the HTTP API.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import delete

from src.domain.entities.account import Account
from src.domain.services.auth.token import TokenService


class TestRegistrationApi:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, error",
        [
            ({}, "All fields are required"),
            ({"email": "a@example.com", "username": "a"}, "All fields are required"),
            (
                {"email": "nope", "username": "a", "password": "password123"},
                "Invalid email format",
            ),
            (
                {"email": "a@example.com", "username": "a", "password": "short"},
                "Password must be at least 8 characters",
            ),
        ],
    )
    async def test_validation_errors(self, async_client, payload, error):
        response = await async_client.post("/api/register", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": error}

    @pytest.mark.asyncio
    async def test_duplicate_identity(self, register_account):
        assert (await register_account("alice@example.com", "alice")).status_code == 201
        response = await register_account("alice@example.com", "alice2")
        assert response.status_code == 400
        assert response.json() == {"error": "Email or username already in use"}

    @pytest.mark.asyncio
    async def test_wrong_json_type_is_a_bad_request(self, async_client):
        response = await async_client.post(
            "/api/register", json={"email": 5, "username": "a", "password": "password123"}
        )
        assert response.status_code == 400
        assert "error" in response.json()


class TestLoginApi:
    @pytest.mark.asyncio
    async def test_login_with_email_or_username(self, async_client, register_account):
        await register_account("alice@example.com", "alice", "password123")
        for identifier in ("alice@example.com", "alice"):
            response = await async_client.post(
                "/api/login", json={"emailOrUsername": identifier, "password": "password123"}
            )
            assert response.status_code == 200
            assert TokenService().verify(response.json()["token"]) > 0

    @pytest.mark.asyncio
    async def test_wrong_password_matches_unknown_user(self, async_client, register_account):
        await register_account("alice@example.com", "alice", "password123")

        wrong = await async_client.post(
            "/api/login", json={"emailOrUsername": "alice", "password": "wrongpassword"}
        )
        unknown = await async_client.post(
            "/api/login", json={"emailOrUsername": "nobody", "password": "password123"}
        )

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {"error": "Invalid credentials"}


class TestForgotPasswordApi:
    @pytest.mark.asyncio
    async def test_sends_reset_email(self, async_client, register_account, mail_sender):
        await register_account("alice@example.com", "alice")

        response = await async_client.post("/api/forgot-password", json={"email": "alice@example.com"})

        assert response.status_code == 200
        assert response.json() == {"message": "Password reset email sent"}
        [(email, token)] = mail_sender.sent
        assert email == "alice@example.com"
        # A reset token cannot be used as a session token.
        referrals = await async_client.get(
            "/api/referrals", headers={"Authorization": f"Bearer {token}"}
        )
        assert referrals.status_code == 401
        assert referrals.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    async def test_unknown_email(self, async_client):
        response = await async_client.post("/api/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    @pytest.mark.asyncio
    async def test_mail_failure_is_a_server_error(self, async_client, register_account, mail_sender):
        await register_account("alice@example.com", "alice")
        mail_sender.fail = True

        response = await async_client.post("/api/forgot-password", json={"email": "alice@example.com"})

        assert response.status_code == 500
        assert response.json() == {"error": "Server error"}


class TestBearerTokens:
    @pytest.mark.asyncio
    async def test_missing_token(self, async_client):
        response = await async_client.get("/api/referrals")
        assert response.status_code == 401
        assert response.json() == {"error": "No token provided"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["Token abc", "Basic YWxpY2U6cHc=", "Bearer"])
    async def test_non_bearer_header_is_an_invalid_token(self, async_client, header):
        response = await async_client.get("/api/referrals", headers={"Authorization": header})
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    async def test_malformed_token(self, async_client):
        response = await async_client.get(
            "/api/referral-stats", headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    async def test_expired_token(self, async_client, register_account):
        await register_account("alice@example.com", "alice")
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = TokenService(clock=lambda: past).issue_session_token(1)

        response = await async_client.get(
            "/api/referral-stats", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.asyncio
    async def test_token_for_deleted_account(self, async_client, register_account, session_factory):
        token = (await register_account("alice@example.com", "alice")).json()["token"]
        async with session_factory() as session:
            await session.execute(delete(Account))
            await session.commit()

        response = await async_client.get(
            "/api/referrals", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}
