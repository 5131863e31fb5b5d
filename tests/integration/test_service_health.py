"""
Integration tests for health check and service information endpoints.
"""

import pytest
from datetime import datetime


@pytest.mark.integration
@pytest.mark.asyncio
class TestHealthCheck:
    """Test health check endpoints."""

    async def test_health_endpoint(self, http_client):
        response = await http_client.get("/health")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"

        data = response.json()
        assert data["service"] == "ar-results"
        assert data["status"] == "healthy"
        assert data["store"] == "healthy"
        datetime.fromisoformat(data["timestamp"])

    async def test_health_reports_degraded_store(self, failing_client):
        response = await failing_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    async def test_availability_health(self, http_client):
        response = await http_client.get("/api/v1/availability/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "availability"
        assert data["details"]["cache"] == "enabled"
        assert data["details"]["rollup_policy"] == "flat"

    async def test_root_lists_endpoints(self, http_client):
        response = await http_client.get("/")

        endpoints = response.json()["endpoints"]
        assert endpoints["ngis"] == "/api/v1/availability/ngis"
        assert endpoints["graphql"] == "/api/v1/graphql"


@pytest.mark.integration
@pytest.mark.asyncio
class TestRouting:
    """Test routing edge cases."""

    async def test_unknown_endpoint_returns_404(self, http_client):
        response = await http_client.get("/api/v1/availability/unknown")

        assert response.status_code == 404

    async def test_invalid_method_returns_405(self, http_client, auth_headers):
        response = await http_client.put("/api/v1/availability/sites", headers=auth_headers)

        assert response.status_code == 405
