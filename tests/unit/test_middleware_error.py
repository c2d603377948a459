# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for error handling middleware."""

import json

import pytest
from fastapi import FastAPI, HTTPException
from hotel_pms.middleware.error_handler import (
    INTERNAL_ERROR_MESSAGE,
    ErrorHandlerMiddleware,
    create_error_response,
)
from httpx import ASGITransport, AsyncClient


class TestCreateErrorResponse:
    """Tests for create_error_response function."""

    def test_creates_json_response(self):
        """Test creates a valid JSON response."""
        response = create_error_response(400, "Bad request", "validation_error")

        assert response.status_code == 400
        assert response.media_type == "application/json"

    def test_response_body_structure(self):
        """Test response body has detail and type."""
        response = create_error_response(404, "Not found", "not_found")

        assert json.loads(response.body) == {"detail": "Not found", "type": "not_found"}

    def test_extra_headers(self):
        """Test extra headers are sent."""
        response = create_error_response(
            401, "Authentication required", headers={"WWW-Authenticate": "Bearer"}
        )
        assert response.headers.get("www-authenticate") == "Bearer"


class TestErrorHandlerMiddleware:
    """Tests for ErrorHandlerMiddleware."""

    @pytest.fixture
    def test_app(self):
        """Create a test app with error handling middleware."""
        app = FastAPI()
        app.add_middleware(ErrorHandlerMiddleware)

        @app.get("/success")
        async def success():
            return {"status": "ok"}

        @app.get("/http-error")
        async def http_error():
            raise HTTPException(status_code=409, detail="Room already booked")

        @app.get("/unhandled-error")
        async def unhandled_error():
            raise RuntimeError("database exploded")

        return app

    @pytest.fixture
    async def test_client(self, test_app):
        """Create test client."""
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    @pytest.mark.asyncio
    async def test_successful_request_passes_through(self, test_client):
        """Test successful requests pass through unchanged."""
        response = await test_client.get("/success")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_http_exception_passes_through(self, test_client):
        """Test HTTPExceptions keep their status and detail."""
        response = await test_client.get("/http-error")

        assert response.status_code == 409
        assert response.json()["detail"] == "Room already booked"

    @pytest.mark.asyncio
    async def test_unhandled_exception_returns_500(self, test_client):
        """Test unhandled exceptions return 500 with generic message."""
        response = await test_client.get("/unhandled-error")

        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == INTERNAL_ERROR_MESSAGE
        assert data["type"] == "internal_error"
        assert "database exploded" not in data["detail"]
