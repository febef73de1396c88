"""
Celery configuration for the push notification backend.

Celery runs the pipeline's background work:
- handle_background_message: messages that opened the app, processed by a
  stateless worker task
- write_audit_record: audit inserts when PUSH_AUDIT_ASYNC is enabled

Redis is both broker and result backend. Tasks are auto-discovered from
all installed Django apps.

Usage:
    celery -A config worker -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
