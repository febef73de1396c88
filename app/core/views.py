"""
Infrastructure endpoints.
"""

import logging

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)

HEALTH_CACHE_KEY = "health_check"


def _database_ok() -> bool:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        logger.warning("Health check: database unreachable", exc_info=True)
        return False
    return True


def _cache_ok() -> bool:
    try:
        cache.set(HEALTH_CACHE_KEY, "ok", timeout=1)
        return cache.get(HEALTH_CACHE_KEY) == "ok"
    except Exception:
        logger.warning("Health check: cache unreachable", exc_info=True)
        return False


def health_check(request):
    """
    Report the audit/token store, the metrics store and the push platform.

    Only the database decides the status code; metrics counters are
    best-effort, so a dead cache is reported but still answers 200.
    """
    database_ok = _database_ok()
    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "database": "connected" if database_ok else "disconnected",
        "cache": "connected" if _cache_ok() else "disconnected",
        "push_platform": settings.PUSH_NOTIFICATIONS.get("PLATFORM", "unknown"),
    }
    return JsonResponse(body, status=200 if database_ok else 503)
