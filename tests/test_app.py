"""
Tests for application-wide behaviour: health check, error envelope,
security headers and rate limiting.
"""

import asyncio

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app import rate_limiter


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "TRIPLY API is running"
        assert "timestamp" in body


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        response = client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Not Found"}

    def test_validation_errors_are_flattened(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert "password" in fields


class TestSecurityHeaders:
    def test_headers_on_api_responses(self, client):
        response = client.get("/api/v1/health")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Content-Security-Policy"].startswith("default-src 'none'")
        assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate"

    def test_docs_are_excluded(self, client):
        response = client.get("/openapi.json")

        assert "X-Frame-Options" not in response.headers


class TestRateLimiting:
    @pytest.fixture(autouse=True)
    def fresh_cache(self, monkeypatch):
        monkeypatch.setattr(rate_limiter, "memory_cache", {})

    def test_fixed_window_counts_in_memory(self):
        results = [rate_limiter.check_rate_limit("login:1.2.3.4", 2, 60, None) for _ in range(3)]

        assert [allowed for allowed, _, _ in results] == [True, True, False]
        assert results[-1][1] == 2
        assert 0 < results[-1][2] <= 60

    def test_keys_are_independent(self):
        rate_limiter.check_rate_limit("login:1.2.3.4", 1, 60, None)

        allowed, count, _ = rate_limiter.check_rate_limit("login:5.6.7.8", 1, 60, None)

        assert allowed is True
        assert count == 1

    def test_forwarded_for_wins(self):
        request = Request(
            {
                "type": "http",
                "headers": [(b"x-forwarded-for", b"9.9.9.9, 10.0.0.1")],
                "client": ("10.0.0.1", 1234),
            }
        )

        assert rate_limiter.client_ip(request) == "9.9.9.9"

    def test_dependency_raises_429(self, monkeypatch):
        monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
        monkeypatch.setattr(rate_limiter, "_optional_redis", lambda: None)
        request = Request({"type": "http", "headers": [], "client": ("1.2.3.4", 1234)})
        limiter = rate_limiter.create_rate_limiter(1, 60, key_prefix="test", message="Slow down")

        asyncio.run(limiter(request))
        with pytest.raises(HTTPException) as excinfo:
            asyncio.run(limiter(request))

        assert excinfo.value.status_code == 429
        assert excinfo.value.detail == "Slow down"
        assert "Retry-After" in excinfo.value.headers
