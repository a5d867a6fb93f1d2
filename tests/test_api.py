"""Tests for the HTTP front of the brief workflow."""
import asyncio

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from creatorbrief.api import app as app_module
from creatorbrief.api.app import caller_identity, create_app
from creatorbrief.core.errors import ConfigError, ProviderError
from creatorbrief.workflows.generate_brief import (
    FORMAT_USER_MESSAGE,
    PROVIDER_USER_MESSAGE,
    RATE_LIMIT_USER_MESSAGE,
)

BODY = {
    "productDescription": "Eco-friendly water bottle",
    "targetAudience": "Millennials interested in sustainability",
    "platforms": ["Instagram", "TikTok"],
}


@pytest.fixture
def client(workflow):
    return TestClient(create_app(workflow))


def _request(headers):
    return Request({
        "type": "http",
        "headers": [(k.encode(), v.encode()) for k, v in headers.items()],
    })


class TestGenerateBriefRoute:

    def test_success(self, client):
        response = client.post("/api/generate-brief", json=BODY)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Creator brief generated successfully"
        assert body["data"]["campaignTitle"] == "Sip Sustainably"
        assert body["data"]["platforms"] == ["Instagram", "TikTok"]

    def test_validation_error(self, client, stub_provider):
        response = client.post("/api/generate-brief", json={**BODY, "productDescription": "   "})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert "Product description" in body["message"]
        assert stub_provider.calls == 0

    def test_invalid_json_body(self, client):
        response = client.post(
            "/api/generate-brief",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_undecodable_body_is_validation_error(self, client, stub_provider):
        response = client.post(
            "/api/generate-brief",
            content=b'{"productDescription": "\xff\xfe"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert stub_provider.calls == 0

    def test_config_error_detail_is_not_returned(self, monkeypatch):
        def broken_workflow():
            raise ConfigError("Unknown AI_PROVIDER 'ollama' in /srv/app/.env")

        monkeypatch.setattr(app_module, "get_workflow", broken_workflow)
        response = TestClient(create_app()).post("/api/generate-brief", json=BODY)

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "/srv/app" not in body["message"]
        assert "ollama" not in response.text

    def test_rate_limited_per_user_header(self, client, orchestrator):
        for _ in range(10):
            asyncio.run(orchestrator.rate_limiter.record("user-1"))

        limited = client.post("/api/generate-brief", json=BODY, headers={"x-user-id": "user-1"})
        other = client.post("/api/generate-brief", json=BODY, headers={"x-user-id": "user-2"})

        assert limited.status_code == 429
        assert limited.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert limited.json()["message"] == RATE_LIMIT_USER_MESSAGE
        assert other.status_code == 200

    def test_provider_error(self, client, stub_provider):
        stub_provider.error = ProviderError("anthropic API error: HTTP 529: Overloaded")

        response = client.post("/api/generate-brief", json=BODY)

        assert response.status_code == 503
        body = response.json()
        assert body["code"] == "AI_SERVICE_ERROR"
        assert body["message"] == PROVIDER_USER_MESSAGE
        assert "Overloaded" not in response.text

    def test_format_error(self, client, stub_provider):
        stub_provider.response = "not json at all"

        response = client.post("/api/generate-brief", json=BODY)

        assert response.status_code == 500
        assert response.json()["message"] == FORMAT_USER_MESSAGE

    def test_describe(self, client):
        response = client.get("/api/generate-brief")

        assert response.status_code == 200
        assert "POST /api/generate-brief" in response.json()["endpoints"]


class TestCallerIdentity:

    def test_header_precedence(self):
        assert caller_identity(_request({"x-user-id": "u1", "x-real-ip": "10.0.0.1"})) == "u1"
        assert caller_identity(_request({"x-forwarded-for": "1.2.3.4, 5.6.7.8"})) == "1.2.3.4"
        assert caller_identity(_request({"x-real-ip": "10.0.0.1"})) == "10.0.0.1"

    def test_anonymous_fallback(self):
        assert caller_identity(_request({})) == "anonymous"
