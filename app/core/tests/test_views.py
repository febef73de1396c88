"""Tests for the health check endpoint."""

import pytest
from django.db import OperationalError


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "push_platform": "test",
        }

    def test_database_down(self, client, mocker):
        mocker.patch(
            "core.views.connection.cursor", side_effect=OperationalError("no database")
        )

        response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    def test_cache_down_is_not_critical(self, client, mocker):
        mocker.patch("core.views.cache.set", side_effect=ConnectionError("redis down"))

        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["cache"] == "disconnected"
