"""
Test configuration and fixtures for push notification tests.

This module provides:
- User fixtures (regular, staff, with profile username)
- Pipeline collaborators (in-memory transport, locmem display, identity)
- A fully wired PushNotificationService
- API client helpers for authenticated requests

Usage:
    def test_example(service, display_outbox):
        service.show_test()
        assert len(display_outbox) == 1
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from notifications import display as display_module
from notifications.analytics import NotificationAnalytics
from notifications.audit import AuditLogWriter
from notifications.display import LocMemDisplay
from notifications.identity import StaticIdentitySource
from notifications.renderer import NotificationRenderer
from notifications.services import PushNotificationService
from notifications.tokens import TokenRegistry
from notifications.transport import InMemoryPushTransport


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def user(db):
    """Create a user to receive notifications."""
    return UserFactory()


@pytest.fixture
def other_user(db):
    return UserFactory()


@pytest.fixture
def staff_user(db):
    """Create a staff user allowed to trigger notifications and read the audit log."""
    return UserFactory(is_staff=True)


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@pytest.fixture
def display_outbox():
    """The LocMemDisplay outbox, emptied before and after the test."""
    display_module.outbox.clear()
    yield display_module.outbox
    display_module.outbox.clear()


@pytest.fixture
def transport():
    return InMemoryPushTransport(token="device-token-abc123")


@pytest.fixture
def display(display_outbox):
    return LocMemDisplay()


@pytest.fixture
def identity():
    """Identity source with nobody signed in."""
    return StaticIdentitySource()


@pytest.fixture
def audit(db):
    return AuditLogWriter(platform="test", max_info_length=200, use_async=False)


@pytest.fixture
def analytics(audit):
    return NotificationAnalytics(audit, metrics_timeout=60)


@pytest.fixture
def renderer(display, audit):
    return NotificationRenderer(display, audit)


@pytest.fixture
def registry(transport, identity, audit, analytics):
    return TokenRegistry(transport, identity, audit, analytics)


@pytest.fixture
def service(transport, display, identity, audit, analytics, renderer):
    """A service wired to in-memory collaborators. Disposed after the test."""
    service = PushNotificationService(
        transport=transport,
        display=display,
        identity=identity,
        audit=audit,
        analytics=analytics,
        renderer=renderer,
        render_data_only=True,
    )
    yield service
    service.dispose()


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Unauthenticated API client."""
    return APIClient()


def _client_for(user):
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def authenticated_client(user):
    """API client authenticated as ``user`` with a JWT."""
    return _client_for(user)


@pytest.fixture
def staff_client(staff_user):
    """API client authenticated as ``staff_user`` with a JWT."""
    return _client_for(staff_user)
