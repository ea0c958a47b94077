"""
Tests for the health check endpoint.
"""

import pytest


@pytest.mark.django_db
class TestHealthCheck:
    def test_reports_healthy_database(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
