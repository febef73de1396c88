"""
Unit tests for the error/analytics sink.
"""

import logging

from notifications.analytics import (
    NotificationAnalytics,
    describe_exception,
    mask_token,
)
from notifications.models import AuditStatus, NotificationAuditRecord


class TestCounters:
    def test_attempts_are_counted_by_outcome(self, analytics):
        analytics.record_attempt("follow", "u1", trigger="show_follow")
        analytics.record_attempt("follow", "u1", trigger="show_follow")
        analytics.record_attempt("follow", "u1", trigger="show_follow", error="display failed")

        assert analytics.counter("notification_attempt", "attempted") == 2
        assert analytics.counter("notification_attempt", "failed") == 1

    def test_displays_are_counted_overall_and_per_type(self, analytics):
        analytics.record_display("follow", source="local")
        analytics.record_display("comment", source="foreground")

        assert analytics.counter("notification_displayed") == 2
        assert analytics.counter("notification_displayed", "comment") == 1

    def test_missing_counter_reads_zero(self, analytics):
        assert analytics.counter("fcm_token_received") == 0

    def test_cache_failure_does_not_reach_caller(self, analytics, mocker):
        mocker.patch(
            "django.core.cache.backends.locmem.LocMemCache.add",
            side_effect=ConnectionError("redis down"),
        )

        analytics.record_display("follow", source="local")

        assert analytics.counter("notification_displayed") == 0


class TestRecordError:
    def test_forwards_to_audit_log(self, analytics):
        try:
            raise ValueError("bad payload")
        except ValueError as exc:
            analytics.record_error("comment", "u3", exc)

        record = NotificationAuditRecord.objects.get()
        assert record.step == "notification_error"
        assert record.status == AuditStatus.ERROR
        assert record.target_user_id == "u3"
        assert record.additional_info.startswith("ValueError: bad payload")
        assert analytics.counter("notification_error") == 1

    def test_custom_step(self, analytics):
        analytics.record_error("initialization", "system", RuntimeError("boom"), step="init_failed")

        assert NotificationAuditRecord.objects.get().step == "init_failed"

    def test_audit_failure_is_swallowed(self, mocker):
        audit = mocker.Mock()
        audit.record.side_effect = RuntimeError("audit down")
        analytics = NotificationAnalytics(audit, metrics_timeout=60)

        analytics.record_error("follow", "u1", KeyError("x"))

        audit.record.assert_called_once()


class TestTokenMasking:
    def test_token_is_never_logged_in_full(self, analytics, caplog):
        token = "abcdef0123456789secret"

        with caplog.at_level(logging.INFO, logger="notifications.analytics"):
            analytics.record_token(token)

        assert "abcdef..." in caplog.text
        assert token not in caplog.text
        assert analytics.counter("fcm_token_received") == 1

    def test_mask_token(self):
        assert mask_token("1234567890") == "123456..."
        assert mask_token(None) == "<none>"


class TestDescribeException:
    def test_includes_innermost_frame(self):
        def explode():
            raise LookupError("missing")

        try:
            explode()
        except LookupError as exc:
            description = describe_exception(exc)

        assert description.startswith("LookupError: missing | ")
        assert "in explode" in description

    def test_string_trace_uses_last_line(self):
        description = describe_exception(RuntimeError("x"), "line one\nline two\n")

        assert description == "RuntimeError: x | line two"

    def test_exception_without_traceback(self):
        assert describe_exception(RuntimeError("x")) == "RuntimeError: x"
