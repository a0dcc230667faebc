"""
Authentication tests: password hashing, JWTs and the /auth endpoints.
"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest
from httpx import AsyncClient

from forum.core.auth import (
    SESSION_COOKIE,
    create_jwt,
    decode_jwt,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """bcrypt round trip."""

    def test_verify(self):
        hashed = hash_password("correct horse")
        assert hashed != "correct horse"
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)


class TestJWT:
    """Token issue and verification."""

    def test_claims(self):
        token, jti = create_jwt(7, "alice")
        payload = decode_jwt(token)
        assert payload["sub"] == "7"
        assert payload["name"] == "alice"
        assert payload["jti"] == jti

    def test_expired_token_rejected(self):
        token, _ = create_jwt(7, "alice", expires_delta=timedelta(seconds=-1))
        with pytest.raises(jwt.ExpiredSignatureError):
            decode_jwt(token)


class TestAuthEndpoints:
    """/auth/register, /auth/login, /auth/logout"""

    async def test_register_then_login(self, client: AsyncClient):
        response = await client.post(
            "/auth/register",
            json={"name": "alice", "email": "alice@example.com", "password": "password123"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "alice"
        assert SESSION_COOKIE in response.headers["set-cookie"]

        response = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "password123"},
        )
        assert response.status_code == 200
        token = response.json()["token"]
        assert decode_jwt(token)["name"] == "alice"

    async def test_register_duplicate_name(self, client: AsyncClient, create_user):
        await create_user("alice")
        response = await client.post(
            "/auth/register",
            json={"name": "alice", "email": "other@example.com", "password": "password123"},
        )
        assert response.status_code == 409

    async def test_register_rejects_unmentionable_name(self, client: AsyncClient):
        response = await client.post(
            "/auth/register",
            json={"name": "al ice", "email": "alice@example.com", "password": "password123"},
        )
        assert response.status_code == 422

    async def test_login_wrong_password(self, client: AsyncClient, create_user):
        await create_user("alice", password="password123")
        response = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "nope-nope"},
        )
        assert response.status_code == 401

    async def test_logout_clears_cookies(self, client: AsyncClient):
        response = await client.post("/auth/logout")
        assert response.status_code == 200
        assert SESSION_COOKIE in response.headers["set-cookie"]

    async def test_token_authenticates_requests(self, client: AsyncClient, create_user, create_channel):
        await create_user("alice", password="password123")
        channel = await create_channel("general")
        login = await client.post(
            "/auth/login",
            json={"email": "alice@example.com", "password": "password123"},
        )
        token = login.json()["token"]

        response = await client.post(
            "/api/v1/threads",
            json={"channel_id": channel.id, "title": "Hi", "body": "There"},
            headers={"Authorization": f"Bearer {token}", "Accept": "application/json"},
        )
        assert response.status_code == 201
