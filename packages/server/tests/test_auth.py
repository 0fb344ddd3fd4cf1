"""
Tests for authentication and authorization.

Covers:
- JWT creation, decoding, expiry and tampering
- Security headers and request id middleware
- Role-based authorization (require_user, require_field_worker, require_reviewer)
- Bearer token resolution against the user store
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import MagicMock

import jwt as pyjwt
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient

from app.core.auth import (
    AuthenticatedUser,
    create_jwt,
    decode_jwt,
    require_field_worker,
    require_reviewer,
    require_user,
)
from app.core.middleware import RequestContextMiddleware, SecurityHeadersMiddleware, SECURITY_HEADERS
from app.models.user import User


# ---------------------------------------------------------------------------
# Unit Tests: JWT
# ---------------------------------------------------------------------------

class TestJWT:
    def test_create_and_decode(self):
        uid = uuid.uuid4()
        token = create_jwt(uid, "field_worker")
        payload = decode_jwt(token)
        assert payload["sub"] == str(uid)
        assert payload["role"] == "field_worker"
        assert "jti" in payload

    def test_expired_jwt_raises(self):
        token = create_jwt(uuid.uuid4(), "manager", expires_delta=timedelta(seconds=-1))
        with pytest.raises(pyjwt.ExpiredSignatureError):
            decode_jwt(token)

    def test_tampered_jwt_raises(self):
        token = create_jwt(uuid.uuid4(), "admin")
        tampered = token[:-5] + "XXXXX"
        with pytest.raises(pyjwt.PyJWTError):
            decode_jwt(tampered)


# ---------------------------------------------------------------------------
# Unit Tests: Middleware
# ---------------------------------------------------------------------------

class TestMiddleware:
    @pytest.fixture
    def app(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)
        app.add_middleware(RequestContextMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        return app

    def test_security_headers_present(self, app):
        resp = TestClient(app).get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    def test_geolocation_allowed_for_self(self, app):
        resp = TestClient(app).get("/test")
        assert "geolocation=(self)" in resp.headers["Permissions-Policy"]

    def test_request_id_echoed(self, app):
        resp = TestClient(app).get("/test", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, app):
        resp = TestClient(app).get("/test")
        assert len(resp.headers["X-Request-ID"]) == 32


# ---------------------------------------------------------------------------
# Unit Tests: Authorization matrix
# ---------------------------------------------------------------------------

class TestAuthorizationMatrix:
    """
    Verify that role dependencies enforce correct access levels.

    Uses mock users to test the dependency functions directly.
    """

    def _mock_auth(self, role: str) -> AuthenticatedUser:
        user = MagicMock()
        user.id = uuid.uuid4()
        user.role = role
        return AuthenticatedUser(user=user)

    @pytest.mark.asyncio
    async def test_user_allows_all_roles(self):
        for role in ("admin", "manager", "team_leader", "field_worker"):
            auth = self._mock_auth(role)
            assert await require_user(auth) == auth

    @pytest.mark.asyncio
    async def test_reviewer_allows_supervisory_roles(self):
        for role in ("admin", "manager", "team_leader"):
            auth = self._mock_auth(role)
            assert await require_reviewer(auth) == auth

    @pytest.mark.asyncio
    async def test_reviewer_rejects_field_worker(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_reviewer(self._mock_auth("field_worker"))
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_field_worker_allows_field_worker(self):
        auth = self._mock_auth("field_worker")
        assert await require_field_worker(auth) == auth

    @pytest.mark.asyncio
    async def test_field_worker_rejects_manager(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_field_worker(self._mock_auth("manager"))
        assert exc_info.value.status_code == 403


# ---------------------------------------------------------------------------
# Integration: bearer token resolution
# ---------------------------------------------------------------------------

class TestBearerToken:
    @pytest.mark.asyncio
    async def test_missing_header(self, client):
        response = await client.get("/api/v1/tasks")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_not_bearer(self, client, worker):
        response = await client.get("/api/v1/tasks", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_garbage_token(self, client):
        response = await client.get("/api/v1/tasks", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_user(self, client):
        token = create_jwt(uuid.uuid4(), "field_worker")
        response = await client.get("/api/v1/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_inactive_user(self, client, session, auth_headers):
        user = User(name="Former", email="former@example.com", role="field_worker", status="inactive")
        session.add(user)
        await session.commit()

        response = await client.get("/api/v1/tasks", headers=auth_headers(user))
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_valid_token(self, client, worker, auth_headers):
        response = await client.get("/api/v1/tasks", headers=auth_headers(worker))
        assert response.status_code == 200
