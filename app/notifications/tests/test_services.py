"""
Tests for PushNotificationService.

Test Classes:
    TestLifecycle: initialize/dispose results
    TestLocalNotifications: Every show_* wrapper end to end
    TestRenderFailure: Failure results and audit records
    TestServerNotification: Inbox write then display
    TestErrorContainment: Exceptions become failure results
    TestBuildService: Construction from settings
"""

import json

import pytest
from freezegun import freeze_time
from django.db import DatabaseError

from notifications.display import LocMemDisplay
from notifications.dispatcher import DispatcherState
from notifications.identity import AuthSignalIdentitySource, StaticIdentitySource
from notifications.models import AuditStatus, InAppNotification, NotificationAuditRecord
from notifications.services import PushNotificationService, build_notification_service
from notifications.transport import InMemoryPushTransport


def shown_records():
    return NotificationAuditRecord.objects.filter(step__endswith="_notification_shown")


class TestLifecycle:
    def test_initialize_success(self, service):
        result = service.initialize()

        assert result.success
        assert result.data == "ready"
        assert service.state == DispatcherState.READY

    def test_initialize_failure_is_a_result(self, service, transport):
        transport.configure(available=False)

        result = service.initialize()

        assert not result.success
        assert result.error_code == "INIT_FAILED"
        assert service.state == DispatcherState.INIT_FAILED

    def test_operations_work_after_failed_initialize(self, service, transport, display_outbox):
        transport.configure(available=False)
        service.initialize()

        result = service.show_follow("f1", "alice", "u1")

        assert result.success
        assert len(display_outbox) == 1

    def test_dispose_then_initialize_again(self, service, transport):
        service.initialize()
        assert service.dispose().success

        assert service.initialize().success
        assert transport.listener_counts["on_message"] == 1


class TestLocalNotifications:
    def test_show_follow_end_to_end(self, service, display_outbox):
        result = service.show_follow("f1", "alice", "u1")

        assert result.success
        shown = display_outbox[0]
        assert shown.title == "New Follower"
        assert shown.body == "alice started following you"
        assert shown.notification_id == result.data
        assert json.loads(shown.payload) == {
            "type": "follow",
            "targetUserId": "u1",
            "followerId": "f1",
            "followerUsername": "alice",
        }

        record = shown_records().get()
        assert record.step == "follow_notification_shown"
        assert record.status == AuditStatus.SUCCESS
        assert record.target_user_id == "u1"
        assert record.notification_type == "follow"

    @pytest.mark.parametrize(
        "method,kwargs,step,title,body",
        [
            (
                "show_follow_request",
                {"requester_id": "r1", "requester_username": "bob", "target_user_id": "u1"},
                "follow_request_notification_shown",
                "New Follow Request",
                "bob wants to follow you",
            ),
            (
                "show_follow_accepted",
                {"sender_id": "s1", "sender_username": "carol", "target_user_id": "u1"},
                "follow_request_accepted_notification_shown",
                "Follow Request Approved",
                "carol approved your follow request",
            ),
            (
                "show_rating",
                {
                    "rater_id": "r2",
                    "rater_username": "dave",
                    "rating": 4.5,
                    "target_user_id": "u1",
                    "post_id": "p9",
                },
                "rating_notification_shown",
                "New Rating",
                "dave rated your post 4.5★",
            ),
            (
                "show_comment",
                {
                    "commenter_id": "c1",
                    "commenter_username": "eve",
                    "comment_text": "nice",
                    "target_user_id": "u1",
                },
                "comment_notification_shown",
                "New Comment",
                "eve commented: nice",
            ),
            (
                "show_comment_like",
                {
                    "liker_id": "l1",
                    "liker_username": "frank",
                    "comment_text": "nice",
                    "target_user_id": "u1",
                },
                "comment_like_notification_shown",
                "Comment Liked",
                "frank liked your comment",
            ),
            (
                "show_message",
                {
                    "sender_id": "m1",
                    "sender_username": "grace",
                    "message_text": "hey",
                    "target_user_id": "u1",
                    "chat_id": "chat-3",
                },
                "message_notification_shown",
                "New Message",
                "grace: hey",
            ),
        ],
    )
    def test_typed_wrappers(self, service, display_outbox, method, kwargs, step, title, body):
        result = getattr(service, method)(**kwargs)

        assert result.success
        assert (display_outbox[0].title, display_outbox[0].body) == (title, body)
        record = shown_records().get()
        assert record.step == step
        assert record.target_user_id == "u1"

    def test_optional_ids_are_carried_in_payload(self, service, display_outbox):
        service.show_rating("r2", "dave", 3, "u1", post_id="p9")
        service.show_message("m1", "grace", "hey", "u1")

        rating, message = (json.loads(n.payload) for n in display_outbox)
        assert rating["postId"] == "p9"
        assert rating["rating"] == 3.0
        assert "chatId" not in message

    def test_show_test_uses_current_user(self, service, identity, user, display_outbox):
        identity.set_user(user)

        service.show_test()

        record = shown_records().get()
        assert record.step == "test_notification_shown"
        assert record.target_user_id == str(user.pk)
        assert display_outbox[0].title == "Test Notification"

    def test_show_test_without_user(self, service, display_outbox):
        service.show_test()

        assert shown_records().get().target_user_id == "unknown"

    @freeze_time("2024-01-01 00:00:00")
    def test_id_is_clock_derived(self, service):
        result = service.show_follow("f1", "alice", "u1")

        assert result.data == 1704067200000 % 2147483647

    def test_display_counter_incremented(self, service, analytics):
        service.show_comment("c1", "eve", "hi", "u1")

        assert analytics.counter("notification_displayed") == 1
        assert analytics.counter("notification_displayed", "comment") == 1


class TestRenderFailure:
    @pytest.fixture
    def failing_service(self, transport, identity, audit, analytics, mocker):
        display = LocMemDisplay()
        mocker.patch.object(display, "show", side_effect=RuntimeError("channel missing"))
        service = PushNotificationService(
            transport=transport,
            display=display,
            identity=identity,
            audit=audit,
            analytics=analytics,
        )
        yield service
        service.dispose()

    def test_failure_result(self, failing_service):
        result = failing_service.show_follow("f1", "alice", "u1")

        assert not result.success
        assert result.error_code == "RENDER_FAILURE"

    def test_single_failed_record(self, failing_service):
        failing_service.show_comment("c1", "eve", "hi", "u1")

        record = NotificationAuditRecord.objects.get(status=AuditStatus.ERROR)
        assert record.step == "comment_notification_failed"
        assert "channel missing" in record.additional_info
        assert not shown_records().exists()

    def test_failed_attempt_counted(self, failing_service, analytics):
        failing_service.show_message("m1", "grace", "hey", "u1")

        assert analytics.counter("notification_attempt", "failed") == 1


class TestServerNotification:
    def test_creates_inbox_entry_and_displays(self, service, display_outbox):
        result = service.trigger_server_notification(
            "announcement",
            "u7",
            title="Maintenance",
            body="Tonight at 10",
            custom_data={"link": "/status"},
        )

        assert result.success
        entry = InAppNotification.objects.get()
        assert entry.notification_type == "announcement"
        assert entry.target_user_id == "u7"
        assert entry.custom_data == {"link": "/status"}
        assert display_outbox[0].title == "Maintenance"
        assert json.loads(display_outbox[0].payload) == {
            "link": "/status",
            "type": "announcement",
            "targetUserId": "u7",
        }
        assert shown_records().get().step == "announcement_notification_shown"

    def test_default_texts(self, service, display_outbox):
        service.trigger_server_notification("promo", "u7")

        assert display_outbox[0].title == "New Notification"
        assert display_outbox[0].body == "You have a new notification"

    def test_long_type_fits_audit_columns(self, service, display_outbox):
        result = service.trigger_server_notification("t" * 100, "u1", "hi", "there")

        assert result.success
        step_limit = NotificationAuditRecord._meta.get_field("step").max_length
        type_limit = NotificationAuditRecord._meta.get_field("notification_type").max_length
        for step, notification_type in NotificationAuditRecord.objects.values_list(
            "step", "notification_type"
        ):
            assert len(step) <= step_limit
            assert len(notification_type) <= type_limit
        record = shown_records().get()
        assert record.status == AuditStatus.SUCCESS

    def test_storage_failure_skips_display(self, service, display_outbox, mocker):
        mocker.patch.object(
            InAppNotification.objects, "create", side_effect=DatabaseError("read-only")
        )

        result = service.trigger_server_notification("promo", "u7")

        assert not result.success
        assert result.error_code == "STORAGE_WRITE_ERROR"
        assert display_outbox == []
        record = NotificationAuditRecord.objects.get(step="notification_error")
        assert record.notification_type == "server_notification"
        assert record.target_user_id == "u7"


class TestErrorContainment:
    def test_exception_becomes_failure(self, service, mocker):
        mocker.patch.object(service.renderer, "render", side_effect=ValueError("bad state"))

        result = service.show_follow("f1", "alice", "u1")

        assert not result.success
        assert result.error == "bad state"
        assert result.error_code == "VALUEERROR"

    def test_exception_is_audited(self, service, mocker):
        mocker.patch.object(service.renderer, "render", side_effect=ValueError("bad state"))

        service.show_follow("f1", "alice", "u1")

        record = NotificationAuditRecord.objects.get(step="notification_error")
        assert record.status == AuditStatus.ERROR
        assert record.notification_type == "show_follow"
        assert "ValueError: bad state" in record.additional_info

    def test_broken_analytics_does_not_escape(self, service, mocker):
        mocker.patch.object(service.renderer, "render", side_effect=ValueError("bad state"))
        mocker.patch.object(service.analytics, "record_error", side_effect=RuntimeError("sink down"))

        result = service.show_follow("f1", "alice", "u1")

        assert not result.success

    def test_tap_failure_result(self, service):
        result = service.handle_notification_response("not-json")

        assert not result.success
        assert result.error_code == "PAYLOAD_DECODE_ERROR"

    def test_tap_success_result(self, service):
        result = service.handle_notification_response('{"type": "message", "chatId": "c1"}')

        assert result.success
        assert result.data["chatId"] == "c1"


class TestBuildService:
    def test_backends_from_settings(self, db):
        service = build_notification_service()

        assert isinstance(service.transport, InMemoryPushTransport)
        assert isinstance(service.display, LocMemDisplay)
        assert isinstance(service.identity, AuthSignalIdentitySource)

    def test_explicit_collaborators_win(self, db, user):
        identity = StaticIdentitySource(user)

        service = build_notification_service(identity=identity)

        assert service.identity is identity
        assert service.tokens.identity is identity
