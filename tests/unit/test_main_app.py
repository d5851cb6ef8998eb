"""
Unit tests for Main Application module.

This module covers application creation, the informational endpoints,
middleware, and the error envelope produced by the exception handlers.
"""

import os
import time
from pathlib import Path

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from app.core.config import settings
from app.exceptions.base import DatabaseError
from app.main import create_app, error_response, lifespan


class TestAppCreation:
    """Test cases for FastAPI application creation."""

    def test_create_app(self, database):
        """Test that create_app wires the given database."""
        test_app = create_app(database)

        assert test_app.title == "Issue Log API"
        assert test_app.state.database is database

    def test_docs_hidden_outside_development(self, database):
        """Test docs are off in the testing environment."""
        assert create_app(database).docs_url is None


class TestInfoEndpoints:
    """Test cases for /health, / and /api."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["environment"] == "testing"
        assert body["database"] == "connected"
        assert body["uptime"] >= 0

    @pytest.mark.asyncio
    async def test_api_index(self, client):
        response = await client.get("/api")

        endpoints = response.json()["endpoints"]
        assert set(endpoints) == {"auth", "issues", "comments", "files"}
        assert "POST /api/auth/login" in endpoints["auth"]
        assert "DELETE /api/issues/{issue_id}" in endpoints["issues"]
        assert endpoints["auth"]["POST /api/auth/login"]

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestLifespan:
    """Test cases for startup housekeeping."""

    @staticmethod
    def stray_blob() -> Path:
        blob = Path(settings.upload_dir) / "abandoned.bin"
        blob.write_bytes(b"x")
        then = time.time() - settings.stray_blob_grace_seconds - 60
        os.utime(blob, (then, then))
        return blob

    @pytest.mark.asyncio
    async def test_startup_sweeps_stray_blobs(self, database):
        blob = self.stray_blob()
        test_app = create_app(database)

        async with lifespan(test_app):
            assert not blob.exists()

    @pytest.mark.asyncio
    async def test_startup_sweep_can_be_disabled(self, database, monkeypatch):
        monkeypatch.setattr(settings, "reconcile_on_startup", False)
        blob = self.stray_blob()
        test_app = create_app(database)

        async with lifespan(test_app):
            assert blob.exists()


class TestErrorEnvelope:
    """Test cases for the exception handlers."""

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {
            "success": False,
            "error": {"message": "Route /api/nope not found", "statusCode": 404},
        }

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/issues")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["message"] == "Access token is required"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_validation_error(self, client, auth_headers):
        response = await client.post(
            "/api/issues", json={"title": "", "description": "d"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "title" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_malformed_id(self, client, auth_headers):
        response = await client.get("/api/issues/not-a-uuid", headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_unexpected_error_hides_details(self, database):
        test_app = create_app(database)

        @test_app.get("/boom")
        async def boom():
            raise RuntimeError("secret internals")

        transport = ASGITransport(app=test_app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/boom")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {
            "success": False,
            "error": {"message": "Something went wrong", "statusCode": 500},
        }

    def test_error_response_for_app_exception(self):
        exc = DatabaseError()

        response = error_response(exc.status_code, exc.message)

        assert response.status_code == 500
        assert b'"statusCode":500' in response.body
