"""
Celery tasks for the push notification pipeline.

Tasks:
    handle_background_message: Stateless handler for messages that opened
        the app. Rebuilds its own audit writer, analytics sink and renderer
        from settings instead of reaching into a dispatcher instance.
    write_audit_record: Inserts one audit record (AUDIT_ASYNC mode)

Usage:
    from notifications.tasks import handle_background_message

    handle_background_message.delay(message.to_dict())
"""

from __future__ import annotations

import logging

from celery import shared_task

from notifications.analytics import NotificationAnalytics
from notifications.audit import AuditLogWriter, write_record
from notifications.conf import load_backend
from notifications.constants import AuditStep, MessageSource
from notifications.dispatcher import process_message
from notifications.models import AuditStatus
from notifications.renderer import NotificationRenderer
from notifications.transport import RemoteMessage

logger = logging.getLogger(__name__)


def _data_text(remote: RemoteMessage, key: str) -> str | None:
    value = remote.data.get(key)
    return str(value) if value not in (None, "") else None


@shared_task
def handle_background_message(message: dict) -> int | None:
    """
    Process a message delivered while the app was in the background.

    Args:
        message: RemoteMessage.to_dict() form of the message

    Returns:
        Display identifier, or None when nothing was shown
    """
    remote = RemoteMessage.from_dict(message)
    # Inline writes: this task is already off the request path
    audit = AuditLogWriter(use_async=False)
    try:
        analytics = NotificationAnalytics(audit)
        display = load_backend("DISPLAY_BACKEND")
        renderer = NotificationRenderer(display, audit)
    except Exception as exc:
        logger.exception("Background handler could not be set up; message dropped")
        audit.record(
            AuditStep.MESSAGE_HANDLING_FAILED,
            notification_type=_data_text(remote, "type"),
            target_user_id=_data_text(remote, "targetUserId"),
            status=AuditStatus.ERROR,
            info=f"source={MessageSource.BACKGROUND} setup failed: {exc}",
        )
        return None

    return process_message(
        remote,
        renderer=renderer,
        audit=audit,
        analytics=analytics,
        source=MessageSource.BACKGROUND,
    )


@shared_task
def write_audit_record(fields: dict) -> int | None:
    """
    Insert one audit record prepared by AuditLogWriter.build_fields().

    Returns:
        Primary key of the stored record, or None when the write failed
    """
    record = write_record(fields)
    return record.pk if record is not None else None
