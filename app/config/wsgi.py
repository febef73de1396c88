"""
WSGI config for the push notification backend.

Fallback entry point for traditional WSGI servers; the primary server runs
config.asgi under Uvicorn.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
