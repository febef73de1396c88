"""
Renderer: the single place that issues the platform display call.

render() applies default texts, generates a display identifier, encodes
the full custom-data map as the tap payload and calls the display backend.
A failed display is audited as ``{prefix}_failed`` and reported as None;
the exception never reaches the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from notifications.constants import DEFAULT_BODY, DEFAULT_TITLE, AuditStep
from notifications.identifiers import next_notification_id
from notifications.models import AuditStatus
from notifications.payloads import encode_tap_payload

if TYPE_CHECKING:
    from typing import Any

    from notifications.audit import AuditLogWriter
    from notifications.display import NotificationDisplay

logger = logging.getLogger(__name__)


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


class NotificationRenderer:
    """
    Displays notifications through a NotificationDisplay backend.

    Attributes:
        display: Platform display backend
        audit: Writer for render failures
        id_generator: Callable returning a fresh display identifier
    """

    def __init__(
        self,
        display: NotificationDisplay,
        audit: AuditLogWriter,
        id_generator: Callable[[], int] = next_notification_id,
    ):
        self.display = display
        self.audit = audit
        self.id_generator = id_generator

    def render(
        self,
        title: str | None,
        body: str | None,
        data: dict[str, Any],
        *,
        step_prefix: str = "notification",
        notification_type: str | None = None,
        target_user_id: str | None = None,
    ) -> int | None:
        """
        Show one notification.

        Args:
            title: Display title (falls back to data["title"], then "New Activity")
            body: Display body (falls back to data["body"], then "You have new activity")
            data: Custom data, round-tripped to the tap handler
            step_prefix: Prefix of the failure step written to the audit log
            notification_type: Type tag for the failure record (defaults to data["type"])
            target_user_id: Target for the failure record (defaults to data["targetUserId"])

        Returns:
            The display identifier, or None when the display failed
        """
        data = data or {}
        resolved_title = _text(title) or _text(data.get("title")) or DEFAULT_TITLE
        resolved_body = _text(body) or _text(data.get("body")) or DEFAULT_BODY

        try:
            notification_id = self.id_generator()
            payload = encode_tap_payload(data)
            self.display.show(notification_id, resolved_title, resolved_body, payload)
        except Exception as exc:
            notification_type = notification_type or _text(data.get("type"))
            target_user_id = target_user_id or _text(data.get("targetUserId"))
            logger.error(
                f"Display failed for {notification_type} to {target_user_id}: {exc}",
                exc_info=True,
            )
            self.audit.record(
                AuditStep.failed(step_prefix),
                notification_type=notification_type,
                target_user_id=target_user_id,
                status=AuditStatus.ERROR,
                info=(
                    f"type={notification_type} target={target_user_id} "
                    f"title={resolved_title} body={resolved_body} "
                    f"data={data} error={exc}"
                ),
            )
            return None

        logger.debug(f"Displayed notification #{notification_id}: {resolved_title}")
        return notification_id
