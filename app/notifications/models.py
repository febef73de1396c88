"""
Push notification pipeline models.

This module defines the durable stores of the pipeline:
- NotificationAuditRecord: Append-only audit trail, one row per pipeline step
- PendingDeviceToken: Delivery tokens observed before a user identity was known
- InAppNotification: Inbox records created by server-triggered notifications

Design Decisions:
    - Audit rows are only ever inserted; retention is handled outside the app
    - Audit field names match the documented log schema (step,
      notification_type, target_user_id, status, additional_info, platform)
    - target_user_id is a plain string ("unknown", "system" or a user pk),
      never a foreign key, so audit rows survive user deletion
    - Pending tokens are keyed by the token value itself so repeated saves
      upsert one row

Usage:
    from notifications.models import AuditStatus, NotificationAuditRecord

    failures = NotificationAuditRecord.objects.filter(
        target_user_id="42",
        status=AuditStatus.ERROR,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.models import BaseModel
from notifications.constants import UNKNOWN_TYPE, UNKNOWN_USER


# =============================================================================
# Enums
# =============================================================================


class AuditStatus(models.TextChoices):
    """
    Outcome of one pipeline step.

    IN_PROGRESS is only valid for non-terminal steps.
    """

    IN_PROGRESS = "in_progress", "In progress"
    SUCCESS = "success", "Success"
    FAILED = "failed", "Failed"
    SKIPPED = "skipped", "Skipped"
    ERROR = "error", "Error"


# =============================================================================
# Audit Log
# =============================================================================


class NotificationAuditRecord(models.Model):
    """
    One step of the notification pipeline.

    Fields:
        timestamp: Assigned by the server on insert
        step: Step name (see notifications.constants.AuditStep)
        notification_type: Type tag of the notification involved
        target_user_id: Identity the notification was meant for
        status: AuditStatus value
        additional_info: Free text, truncated by the writer
        platform: Platform tag of the process that wrote the record

    Note:
        Ordering by (timestamp, id) gives a stable, increasing order even
        when two rows share a timestamp.
    """

    timestamp = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Server-assigned time of the step",
    )
    step = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Pipeline step name",
    )
    notification_type = models.CharField(
        max_length=100,
        default=UNKNOWN_TYPE,
        help_text="Notification type tag (follow, comment, test, ...)",
    )
    target_user_id = models.CharField(
        max_length=255,
        default=UNKNOWN_USER,
        db_index=True,
        help_text="Target user identity, or 'unknown'",
    )
    status = models.CharField(
        max_length=20,
        choices=AuditStatus.choices,
        default=AuditStatus.IN_PROGRESS,
        help_text="Outcome of the step",
    )
    additional_info = models.TextField(
        blank=True,
        default="",
        help_text="Free-text context, truncated to a bounded length",
    )
    platform = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Platform tag of the writer",
    )

    class Meta:
        db_table = "notifications_audit_log"
        ordering = ["timestamp", "id"]
        indexes = [
            models.Index(
                fields=["target_user_id", "-timestamp"],
                name="audit_target_time_idx",
            ),
            models.Index(
                fields=["step", "status"],
                name="audit_step_status_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.step} [{self.status}] -> {self.target_user_id}"

    def as_document(self) -> dict:
        """Return the record in the documented log schema."""
        return {
            "timestamp": self.timestamp,
            "step": self.step,
            "notification_type": self.notification_type,
            "target_user_id": self.target_user_id,
            "status": self.status,
            "additional_info": self.additional_info,
            "platform": self.platform,
        }


# =============================================================================
# Tokens
# =============================================================================


class PendingDeviceToken(BaseModel):
    """
    Delivery token seen while no user was signed in.

    Fields:
        token: Opaque delivery token (unique key)
        owner: User the token was later associated with (null while pending)
        associated: False until a signed-in save supersedes this entry

    Inherits from BaseModel:
        created_at: First time the token was observed
        updated_at: Last upsert

    Note:
        Rows are never deleted here; rotation and TTL cleanup are external.
    """

    token = models.CharField(
        max_length=512,
        unique=True,
        help_text="Delivery token value",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="pending_device_tokens",
        help_text="User the token was associated with",
    )
    associated = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether the token has been associated with a user",
    )

    class Meta:
        db_table = "notifications_pending_token"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        state = "associated" if self.associated else "pending"
        return f"PendingDeviceToken({self.token[:6]}...) [{state}]"


# =============================================================================
# Inbox
# =============================================================================


class InAppNotification(BaseModel):
    """
    Inbox record written when the server triggers a notification.

    The inbox UI reads these; the pipeline only creates them.
    """

    notification_type = models.CharField(
        max_length=100,
        help_text="Notification type tag",
    )
    target_user_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Identity of the recipient",
    )
    title = models.CharField(max_length=500)
    body = models.TextField(blank=True, default="")
    custom_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Type-specific payload",
    )

    class Meta:
        db_table = "notifications_in_app"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"InAppNotification({self.notification_type}) -> {self.target_user_id}"
