"""
Django admin configuration for push notification models.

The audit log is append-only: its admin allows neither adding, editing
nor deleting records.
"""

from django.contrib import admin

from notifications.models import (
    InAppNotification,
    NotificationAuditRecord,
    PendingDeviceToken,
)


@admin.register(NotificationAuditRecord)
class NotificationAuditRecordAdmin(admin.ModelAdmin):
    list_display = [
        "timestamp",
        "step",
        "status",
        "notification_type",
        "target_user_id",
        "platform",
    ]
    list_filter = ["status", "step", "platform"]
    search_fields = ["target_user_id", "notification_type", "additional_info"]
    ordering = ["-timestamp", "-id"]
    date_hierarchy = "timestamp"
    readonly_fields = [
        "timestamp",
        "step",
        "notification_type",
        "target_user_id",
        "status",
        "additional_info",
        "platform",
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PendingDeviceToken)
class PendingDeviceTokenAdmin(admin.ModelAdmin):
    """Tokens seen before sign-in, and the users they were later associated with."""

    list_display = ["short_token", "associated", "owner", "created_at", "updated_at"]
    list_filter = ["associated"]
    search_fields = ["token", "owner__email"]
    raw_id_fields = ["owner"]
    readonly_fields = ["token", "created_at", "updated_at"]

    @admin.display(description="Token")
    def short_token(self, obj):
        return f"{obj.token[:6]}..."


@admin.register(InAppNotification)
class InAppNotificationAdmin(admin.ModelAdmin):
    list_display = ["notification_type", "target_user_id", "title", "created_at"]
    list_filter = ["notification_type"]
    search_fields = ["target_user_id", "title", "body"]
    readonly_fields = ["created_at", "updated_at"]
