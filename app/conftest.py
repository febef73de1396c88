"""
Project-wide pytest configuration.

Points the push pipeline at its in-process collaborators (LocMemDisplay,
InMemoryPushTransport), runs Celery tasks eagerly and marks each test
module as unit, integration or e2e. App fixtures live in each app's
tests/conftest.py.
"""

import os
from pathlib import Path

import django
import pytest

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Test module name -> marker; anything not listed is an integration test
MODULE_MARKERS = {
    "test_integration.py": "e2e",
    "test_models.py": "unit",
    "test_managers.py": "unit",
    "test_signals.py": "unit",
    "test_payloads.py": "unit",
    "test_identifiers.py": "unit",
    "test_audit.py": "unit",
    "test_renderer.py": "unit",
    "test_analytics.py": "unit",
    "test_transport.py": "unit",
    "test_decorators.py": "unit",
}

LEVEL_MARKERS = {"unit", "integration", "e2e"}


def pytest_configure():
    django.setup()

    from django.conf import settings

    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    # The test client speaks plain HTTP
    settings.SECURE_SSL_REDIRECT = False
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "push-notifications-tests",
        }
    }
    # Display calls land in notifications.display.outbox
    settings.PUSH_NOTIFICATIONS = {
        **settings.PUSH_NOTIFICATIONS,
        "DISPLAY_BACKEND": "notifications.display.LocMemDisplay",
        "TRANSPORT_BACKEND": "notifications.transport.InMemoryPushTransport",
        "PLATFORM": "test",
        "AUDIT_ASYNC": False,
        "RENDER_DATA_ONLY_MESSAGES": True,
    }

    from config.celery import app as celery_app

    # The app reads settings under the CELERY_ namespace, so overrides use it too
    celery_app.conf.update(CELERY_TASK_ALWAYS_EAGER=True, CELERY_TASK_EAGER_PROPAGATES=True)


def pytest_collection_modifyitems(items):
    """Add a level marker to every test that does not declare one."""
    for item in items:
        if LEVEL_MARKERS & {marker.name for marker in item.iter_markers()}:
            continue
        level = MODULE_MARKERS.get(Path(str(item.fspath)).name, "integration")
        item.add_marker(getattr(pytest.mark, level))


@pytest.fixture(autouse=True)
def _clear_cache():
    """Metrics counters live in the cache; start every test from zero."""
    from django.core.cache import cache

    cache.clear()
    yield
