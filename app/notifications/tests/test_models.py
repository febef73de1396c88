"""Tests for push notification models."""

from datetime import timedelta

import pytest
from django.utils import timezone

from notifications.models import AuditStatus, InAppNotification, NotificationAuditRecord
from notifications.tests.factories import (
    AuditRecordFactory,
    InAppNotificationFactory,
    PendingDeviceTokenFactory,
)


@pytest.mark.django_db
class TestNotificationAuditRecord:
    def test_server_assigns_timestamp(self):
        before = timezone.now()

        record = AuditRecordFactory()

        assert before <= record.timestamp <= timezone.now()

    def test_defaults(self):
        record = NotificationAuditRecord.objects.create(step="init_started")

        assert record.notification_type == "unknown"
        assert record.target_user_id == "unknown"
        assert record.status == AuditStatus.IN_PROGRESS
        assert record.additional_info == ""

    def test_str(self):
        record = AuditRecordFactory(step="token_saved", status="success", target_user_id="3")

        assert str(record) == "token_saved [success] -> 3"

    def test_as_document_keys(self):
        document = AuditRecordFactory().as_document()

        assert set(document) == {
            "timestamp",
            "step",
            "notification_type",
            "target_user_id",
            "status",
            "additional_info",
            "platform",
        }


@pytest.mark.django_db
class TestPendingDeviceToken:
    def test_str_masks_token(self):
        token = PendingDeviceTokenFactory(token="abcdef123456")

        assert str(token) == "PendingDeviceToken(abcdef...) [pending]"

    def test_owner_cleared_on_user_delete(self, user):
        token = PendingDeviceTokenFactory(owner=user, associated=True)

        user.delete()
        token.refresh_from_db()

        assert token.owner is None
        assert token.associated


@pytest.mark.django_db
class TestInAppNotification:
    def test_newest_first(self):
        older = InAppNotificationFactory()
        newer = InAppNotificationFactory()
        InAppNotification.objects.filter(pk=older.pk).update(
            created_at=timezone.now() - timedelta(hours=1)
        )

        assert list(InAppNotification.objects.all()) == [newer, older]
