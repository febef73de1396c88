"""
Settings accessor for the push notification pipeline.

Values come from the PUSH_NOTIFICATIONS dict in Django settings (populated
from the environment by django-environ) merged over DEFAULTS.

Usage:
    from notifications.conf import push_setting

    if push_setting("RENDER_DATA_ONLY_MESSAGES"):
        ...
"""

from __future__ import annotations

from typing import Any

from django.conf import settings
from django.utils.module_loading import import_string

DEFAULTS: dict[str, Any] = {
    "TRANSPORT_BACKEND": "notifications.transport.InMemoryPushTransport",
    "DISPLAY_BACKEND": "notifications.display.LoggingDisplay",
    "PLATFORM": "server",
    "AUDIT_INFO_MAX_LENGTH": 200,
    "AUDIT_ASYNC": False,
    "RENDER_DATA_ONLY_MESSAGES": True,
    "METRICS_TIMEOUT": 60 * 60 * 24,
}


def push_setting(name: str) -> Any:
    """
    Return a pipeline setting, falling back to its default.

    Raises:
        KeyError: If name is not a known setting
    """
    if name not in DEFAULTS:
        raise KeyError(f"Unknown push notification setting: {name}")
    configured = getattr(settings, "PUSH_NOTIFICATIONS", {}) or {}
    return configured.get(name, DEFAULTS[name])


def load_backend(name: str):
    """Instantiate the backend class configured under the given setting."""
    return import_string(push_setting(name))()
