"""
Audit log writer for the push notification pipeline.

Every pipeline stage reports its steps here. The writer is a pure side
channel: a failed write is logged to this module's logger and dropped, so
it can never abort the caller's own operation.

Usage:
    from notifications.audit import AuditLogWriter
    from notifications.models import AuditStatus

    audit = AuditLogWriter()
    audit.record(
        "follow_notification_shown",
        notification_type="follow",
        target_user_id="42",
        status=AuditStatus.SUCCESS,
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notifications.conf import push_setting
from notifications.constants import (
    ELLIPSIS,
    TERMINAL_STEP_SUFFIXES,
    UNKNOWN_TYPE,
    UNKNOWN_USER,
    is_terminal_step,
)
from notifications.models import AuditStatus, NotificationAuditRecord

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def truncate_info(info: Any, max_length: int) -> str:
    """
    Bound free-text audit context.

    Strings up to max_length are kept verbatim; longer ones are cut to
    max_length characters followed by an ellipsis marker.
    """
    if info is None:
        return ""
    text = str(info)
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def clamp_field(field_name: str, value: str) -> str:
    """
    Cut a value to the max_length of its audit column.

    Step names keep their terminal suffix (``_shown``, ``_failed``,
    ``_complete``); the caller-supplied part in front of it is shortened.
    """
    max_length = NotificationAuditRecord._meta.get_field(field_name).max_length
    if max_length is None or len(value) <= max_length:
        return value
    if field_name == "step":
        for suffix in TERMINAL_STEP_SUFFIXES:
            if value.endswith(suffix):
                return value[: max_length - len(suffix)] + suffix
    return value[:max_length]


def resolve_status(step: str, status: str | None) -> str:
    """
    Pick the stored status for a step.

    Without an explicit status, terminal steps are recorded as success and
    other steps as in progress. A terminal step never stays in progress.
    """
    terminal = is_terminal_step(step)
    if status is None:
        return AuditStatus.SUCCESS if terminal else AuditStatus.IN_PROGRESS
    if terminal and status == AuditStatus.IN_PROGRESS:
        logger.warning(f"Terminal audit step {step} recorded as in_progress; storing success")
        return AuditStatus.SUCCESS
    return status


class AuditLogWriter:
    """
    Appends step records to the audit log.

    Attributes:
        platform: Platform tag written on every record
        max_info_length: Cap for additional_info before truncation
        use_async: Hand writes to a Celery worker instead of writing inline

    Thread Safety:
        Holds no mutable state; each call is a single insert.
    """

    def __init__(
        self,
        platform: str | None = None,
        max_info_length: int | None = None,
        use_async: bool | None = None,
    ):
        self.platform = platform if platform is not None else push_setting("PLATFORM")
        self.max_info_length = (
            max_info_length
            if max_info_length is not None
            else push_setting("AUDIT_INFO_MAX_LENGTH")
        )
        self.use_async = use_async if use_async is not None else push_setting("AUDIT_ASYNC")

    def build_fields(
        self,
        step: str,
        notification_type: str | None = None,
        target_user_id: str | None = None,
        status: str | None = None,
        info: Any = None,
    ) -> dict[str, str]:
        """Normalize one record into the stored field values."""
        return {
            "step": clamp_field("step", step),
            "notification_type": clamp_field(
                "notification_type", str(notification_type or UNKNOWN_TYPE)
            ),
            "target_user_id": clamp_field(
                "target_user_id", str(target_user_id) if target_user_id else UNKNOWN_USER
            ),
            "status": str(resolve_status(step, status)),
            "additional_info": truncate_info(info, self.max_info_length),
            "platform": clamp_field("platform", str(self.platform or "")),
        }

    def record(
        self,
        step: str,
        notification_type: str | None = None,
        target_user_id: str | None = None,
        status: str | None = None,
        info: Any = None,
    ) -> NotificationAuditRecord | None:
        """
        Append one audit record. Never raises.

        Args:
            step: Step name
            notification_type: Type tag (defaults to "unknown")
            target_user_id: Target identity (defaults to "unknown")
            status: AuditStatus value (derived from the step when omitted)
            info: Free-text context, truncated before storage

        Returns:
            The stored record for inline writes, None for queued or failed writes
        """
        try:
            fields = self.build_fields(step, notification_type, target_user_id, status, info)
        except Exception:
            logger.exception(f"Could not build audit record for step {step}")
            return None

        if self.use_async and self._enqueue(fields):
            return None
        return write_record(fields)

    def _enqueue(self, fields: dict[str, str]) -> bool:
        try:
            from notifications.tasks import write_audit_record

            write_audit_record.delay(fields)
            return True
        except Exception:
            logger.warning(
                f"Could not queue audit record {fields['step']}, writing inline",
                exc_info=True,
            )
            return False


def write_record(fields: dict[str, str]) -> NotificationAuditRecord | None:
    """Insert one prepared audit record, logging and dropping failures."""
    try:
        return NotificationAuditRecord.objects.create(**fields)
    except Exception as exc:
        logger.error(
            f"Audit write failed for step {fields.get('step')} "
            f"[{fields.get('status')}] target={fields.get('target_user_id')}: {exc}",
            exc_info=True,
        )
        return None
