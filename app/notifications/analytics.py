"""
Error and analytics sink for notification events.

Records attempts, errors and displays to the log and to cache-backed
counters, and forwards errors to the audit log so the operational and
audit trails agree. Nothing here can fail its caller: metric and logging
failures are caught and discarded.

Counters live in the Django cache (Redis in production) under
``push_metrics:<name>`` and are shared by all workers.

Usage:
    from notifications.analytics import NotificationAnalytics

    analytics = NotificationAnalytics(audit)
    analytics.record_attempt("follow", "42", trigger="show_follow")
    analytics.record_display("follow", source="local")
    analytics.counter("notification_displayed")
"""

from __future__ import annotations

import logging
import traceback
from typing import TYPE_CHECKING

from django.core.cache import cache

from notifications.conf import push_setting
from notifications.constants import TOKEN_PREVIEW_LENGTH, AuditStep
from notifications.models import AuditStatus

if TYPE_CHECKING:
    from types import TracebackType

    from notifications.audit import AuditLogWriter

logger = logging.getLogger(__name__)

METRIC_PREFIX = "push_metrics"


def mask_token(token: str | None) -> str:
    """Shorten a delivery token for logs."""
    if not token:
        return "<none>"
    return f"{token[:TOKEN_PREVIEW_LENGTH]}..."


def describe_exception(exc: BaseException, trace: TracebackType | str | None = None) -> str:
    """One-line description of an exception, with the innermost frame when known."""
    description = f"{exc.__class__.__name__}: {exc}"
    if trace is None:
        trace = exc.__traceback__
    if isinstance(trace, str):
        return f"{description} | {trace.strip().splitlines()[-1]}" if trace.strip() else description
    if trace is not None:
        frames = traceback.extract_tb(trace)
        if frames:
            last = frames[-1]
            return f"{description} | {last.filename}:{last.lineno} in {last.name}"
    return description


class NotificationAnalytics:
    """
    Sink for notification attempt, error and display events.

    Attributes:
        audit: Writer that receives error records
    """

    def __init__(self, audit: AuditLogWriter, metrics_timeout: int | None = None):
        self.audit = audit
        self.metrics_timeout = (
            metrics_timeout
            if metrics_timeout is not None
            else push_setting("METRICS_TIMEOUT")
        )

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def record_attempt(
        self,
        notification_type: str,
        target_user_id: str,
        trigger: str,
        error: str | None = None,
    ) -> None:
        """Record that a notification was attempted (and whether it failed)."""
        try:
            status = "failed" if error is not None else "attempted"
            if error is not None:
                logger.warning(
                    f"Notification attempt failed: {notification_type} to "
                    f"{target_user_id} via {trigger}: {error}"
                )
            else:
                logger.info(
                    f"Notification attempt: {notification_type} to {target_user_id} via {trigger}"
                )
            self._increment("notification_attempt", status)
        except Exception:
            logger.debug("record_attempt failed", exc_info=True)

    def record_error(
        self,
        notification_type: str,
        target_user_id: str,
        exception: BaseException,
        trace: TracebackType | str | None = None,
        step: str = AuditStep.NOTIFICATION_ERROR,
    ) -> None:
        """
        Record a failure and forward it to the audit log.

        The audit record uses the given step with status error and the
        exception description as additional_info.
        """
        try:
            logger.error(
                f"Notification error: {notification_type} to {target_user_id}: {exception}",
                exc_info=(type(exception), exception, exception.__traceback__),
            )
            self._increment("notification_error")
        except Exception:
            logger.debug("record_error logging failed", exc_info=True)

        try:
            self.audit.record(
                step,
                notification_type=notification_type,
                target_user_id=target_user_id,
                status=AuditStatus.ERROR,
                info=describe_exception(exception, trace),
            )
        except Exception:
            logger.debug("record_error audit forwarding failed", exc_info=True)

    def record_display(self, notification_type: str, source: str) -> None:
        """Record that a notification was displayed."""
        try:
            logger.info(f"Notification displayed: {notification_type} from {source}")
            self._increment("notification_displayed")
            self._increment("notification_displayed", notification_type)
        except Exception:
            logger.debug("record_display failed", exc_info=True)

    def record_token(self, token: str) -> None:
        """Record that a delivery token was received (masked)."""
        try:
            logger.info(f"Push token received: {mask_token(token)}")
            self._increment("fcm_token_received")
        except Exception:
            logger.debug("record_token failed", exc_info=True)

    # -------------------------------------------------------------------------
    # Counters
    # -------------------------------------------------------------------------

    @staticmethod
    def metric_key(name: str, label: str | None = None) -> str:
        key = f"{METRIC_PREFIX}:{name}"
        return f"{key}:{label}" if label else key

    def _increment(self, name: str, label: str | None = None) -> None:
        key = self.metric_key(name, label)
        try:
            cache.add(key, 0, timeout=self.metrics_timeout)
            cache.incr(key)
        except Exception:
            logger.debug(f"Metric {key} not recorded", exc_info=True)

    def counter(self, name: str, label: str | None = None) -> int:
        """Current value of a counter (0 when missing or unreadable)."""
        try:
            return int(cache.get(self.metric_key(name, label), 0))
        except Exception:
            logger.debug(f"Metric {name} not readable", exc_info=True)
            return 0
