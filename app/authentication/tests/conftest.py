"""
Test configuration and fixtures for authentication tests.

Usage:
    def test_example(user, api_client):
        response = api_client.post(url, {...}, format="json")
"""

import pytest
from rest_framework.test import APIClient

from authentication.models import User
from authentication.tests.factories import UserFactory


@pytest.fixture
def user(db):
    """Create a basic user with its auto-created profile."""
    return UserFactory(email="member@example.com", password="TestPass123!")


@pytest.fixture
def superuser(db):
    """Create a superuser with admin privileges."""
    return User.objects.create_superuser(
        email="admin@example.com",
        password="AdminPass123!",
    )


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()
