"""
Serializers for the push notification API.

Serializers:
    DeviceTokenSerializer: Token registration request
    TriggerNotificationSerializer: Server-triggered notification request
    AuditRecordSerializer: Read-only audit log entries
    ServiceResultSerializer: Response envelope (for schema generation)
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.models import NotificationAuditRecord


class DeviceTokenSerializer(serializers.Serializer):
    """Device token registration for the authenticated user."""

    token = serializers.CharField(max_length=512, trim_whitespace=True)


class TriggerNotificationSerializer(serializers.Serializer):
    """
    Request body for triggering a notification for any user.

    ``custom_data`` is carried through to the tap payload unchanged.
    """

    type = serializers.CharField(max_length=100)
    target_user_id = serializers.CharField(max_length=255)
    title = serializers.CharField(max_length=500, required=False, allow_blank=True)
    body = serializers.CharField(required=False, allow_blank=True)
    custom_data = serializers.DictField(required=False, default=dict)

    def validate_custom_data(self, value: dict) -> dict:
        reserved = {"type", "targetUserId"} & set(value)
        if reserved:
            raise serializers.ValidationError(
                f"Keys set by the server: {', '.join(sorted(reserved))}"
            )
        return value


class AuditRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = NotificationAuditRecord
        fields = [
            "id",
            "timestamp",
            "step",
            "notification_type",
            "target_user_id",
            "status",
            "additional_info",
            "platform",
        ]
        read_only_fields = fields


class ServiceResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    data = serializers.JSONField(required=False, allow_null=True)
    error = serializers.CharField(required=False)
    error_code = serializers.CharField(required=False)
