"""
Push notification service layer.

PushNotificationService is the object the rest of the application talks
to. It is built once per process (or per request, with a request-scoped
identity) and owns a NotificationDispatcher plus the shared pipeline
collaborators.

Design Principles:
    - Every public operation returns a ServiceResult and never raises;
      core.decorators.contain_errors is the single catch boundary
    - show_* wrappers build a typed payload and call the renderer directly,
      since the caller already supplies the canonical fields
    - Each wrapper writes exactly one terminal audit record:
      ``{kind}_notification_shown`` here, or ``{kind}_notification_failed``
      from the renderer
    - Contained exceptions are forwarded to analytics (and so to the
      audit log) through on_contained_error

Usage:
    from notifications.services import build_notification_service

    service = build_notification_service()
    service.initialize()

    result = service.show_follow(
        follower_id="7",
        follower_username="alice",
        target_user_id="42",
    )
    if not result.success:
        logger.warning(result.error)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError

from core.decorators import contain_errors
from core.services import BaseService, ServiceResult
from notifications.analytics import NotificationAnalytics
from notifications.audit import AuditLogWriter
from notifications.conf import load_backend
from notifications.constants import UNKNOWN_USER, AuditStep, MessageSource
from notifications.dispatcher import DispatcherState, NotificationDispatcher
from notifications.exceptions import RenderFailure, StorageWriteError
from notifications.identity import AuthSignalIdentitySource
from notifications.models import AuditStatus, InAppNotification
from notifications.payloads import (
    CommentLikePayload,
    CommentPayload,
    DebugPayload,
    FollowAcceptedPayload,
    FollowPayload,
    FollowRequestPayload,
    MessagePayload,
    RatingPayload,
    ServerPayload,
    payload_kind,
)
from notifications.renderer import NotificationRenderer
from notifications.tokens import TokenRegistry

if TYPE_CHECKING:
    from typing import Any

    from notifications.display import NotificationDisplay
    from notifications.identity import IdentitySource
    from notifications.payloads import NotificationPayload
    from notifications.transport import PushTransport


class PushNotificationService(BaseService):
    """
    Public push notification operations.

    Attributes:
        transport: Push transport
        display: Local display backend
        identity: Identity source
        audit: Audit log writer
        analytics: Error/analytics sink
        renderer: Renderer shared by the wrappers and foreground messages
        tokens: Token registry
        dispatcher: Lifecycle and inbound event routing
    """

    def __init__(
        self,
        transport: PushTransport,
        display: NotificationDisplay,
        identity: IdentitySource,
        audit: AuditLogWriter | None = None,
        analytics: NotificationAnalytics | None = None,
        renderer: NotificationRenderer | None = None,
        render_data_only: bool | None = None,
    ):
        self.transport = transport
        self.display = display
        self.identity = identity
        self.audit = audit or AuditLogWriter()
        self.analytics = analytics or NotificationAnalytics(self.audit)
        self.renderer = renderer or NotificationRenderer(display, self.audit)
        self.tokens = TokenRegistry(transport, identity, self.audit, self.analytics)
        self.dispatcher = NotificationDispatcher(
            transport=transport,
            display=display,
            identity=identity,
            audit=self.audit,
            analytics=self.analytics,
            renderer=self.renderer,
            tokens=self.tokens,
            render_data_only=render_data_only,
        )

    @property
    def state(self) -> DispatcherState:
        return self.dispatcher.state

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @contain_errors("initialize")
    def initialize(self) -> ServiceResult[str]:
        """
        Set up permissions, listeners, tokens and the display subsystem.

        Failure leaves the service usable in a degraded state.
        """
        state = self.dispatcher.initialize()
        if state == DispatcherState.INIT_FAILED:
            return ServiceResult.failure(
                "Push notification initialization failed",
                error_code="INIT_FAILED",
            )
        return ServiceResult.success(state.value)

    @contain_errors("dispose")
    def dispose(self) -> ServiceResult[None]:
        """Tear down every subscription owned by the service."""
        self.dispatcher.dispose()
        return ServiceResult.success(None)

    @contain_errors("handle_notification_response")
    def handle_notification_response(self, payload: str | None) -> ServiceResult[dict]:
        """Handle a tap on a displayed notification."""
        data = self.dispatcher.handle_notification_response(payload)
        if data is None:
            return ServiceResult.failure(
                "Notification payload could not be decoded",
                error_code="PAYLOAD_DECODE_ERROR",
            )
        return ServiceResult.success(data)

    # -------------------------------------------------------------------------
    # Local notifications
    # -------------------------------------------------------------------------

    def _show(self, payload: NotificationPayload, trigger: str) -> ServiceResult[int]:
        kind = payload_kind(payload)
        target_user_id = str(payload.target_user_id)
        step_prefix = f"{kind}_notification"

        self.analytics.record_attempt(kind, target_user_id, trigger=trigger)
        notification_id = self.renderer.render(
            payload.title,
            payload.body,
            payload.to_data(),
            step_prefix=step_prefix,
            notification_type=kind,
            target_user_id=target_user_id,
        )
        if notification_id is None:
            self.analytics.record_attempt(
                kind, target_user_id, trigger=trigger, error="display failed"
            )
            return ServiceResult.failure(
                f"{kind} notification was not displayed",
                error_code=RenderFailure.default_error_code,
            )

        self.audit.record(
            AuditStep.shown(step_prefix),
            notification_type=kind,
            target_user_id=target_user_id,
            status=AuditStatus.SUCCESS,
            info=f"id={notification_id}",
        )
        self.analytics.record_display(kind, source=MessageSource.LOCAL)
        return ServiceResult.success(notification_id)

    @contain_errors("show_test")
    def show_test(self, target_user_id: str | None = None) -> ServiceResult[int]:
        """Show a debug notification to the current (or given) user."""
        if target_user_id is None:
            user = self.identity.current_user()
            target_user_id = user.identity if user is not None else UNKNOWN_USER
        return self._show(DebugPayload(target_user_id=target_user_id), "show_test")

    @contain_errors("show_follow")
    def show_follow(
        self, follower_id: str, follower_username: str, target_user_id: str
    ) -> ServiceResult[int]:
        return self._show(
            FollowPayload(
                target_user_id=target_user_id,
                follower_id=follower_id,
                follower_username=follower_username,
            ),
            "show_follow",
        )

    @contain_errors("show_follow_request")
    def show_follow_request(
        self, requester_id: str, requester_username: str, target_user_id: str
    ) -> ServiceResult[int]:
        return self._show(
            FollowRequestPayload(
                target_user_id=target_user_id,
                requester_id=requester_id,
                requester_username=requester_username,
            ),
            "show_follow_request",
        )

    @contain_errors("show_follow_accepted")
    def show_follow_accepted(
        self, sender_id: str, sender_username: str, target_user_id: str
    ) -> ServiceResult[int]:
        return self._show(
            FollowAcceptedPayload(
                target_user_id=target_user_id,
                sender_id=sender_id,
                sender_username=sender_username,
            ),
            "show_follow_accepted",
        )

    @contain_errors("show_rating")
    def show_rating(
        self,
        rater_id: str,
        rater_username: str,
        rating: float,
        target_user_id: str,
        post_id: str | None = None,
    ) -> ServiceResult[int]:
        return self._show(
            RatingPayload(
                target_user_id=target_user_id,
                rater_id=rater_id,
                rater_username=rater_username,
                rating=rating,
                post_id=post_id,
            ),
            "show_rating",
        )

    @contain_errors("show_comment")
    def show_comment(
        self,
        commenter_id: str,
        commenter_username: str,
        comment_text: str,
        target_user_id: str,
        post_id: str | None = None,
    ) -> ServiceResult[int]:
        return self._show(
            CommentPayload(
                target_user_id=target_user_id,
                commenter_id=commenter_id,
                commenter_username=commenter_username,
                comment_text=comment_text,
                post_id=post_id,
            ),
            "show_comment",
        )

    @contain_errors("show_comment_like")
    def show_comment_like(
        self,
        liker_id: str,
        liker_username: str,
        comment_text: str,
        target_user_id: str,
    ) -> ServiceResult[int]:
        return self._show(
            CommentLikePayload(
                target_user_id=target_user_id,
                liker_id=liker_id,
                liker_username=liker_username,
                comment_text=comment_text,
            ),
            "show_comment_like",
        )

    @contain_errors("show_message")
    def show_message(
        self,
        sender_id: str,
        sender_username: str,
        message_text: str,
        target_user_id: str,
        chat_id: str | None = None,
    ) -> ServiceResult[int]:
        return self._show(
            MessagePayload(
                target_user_id=target_user_id,
                sender_id=sender_id,
                sender_username=sender_username,
                message_text=message_text,
                chat_id=chat_id,
            ),
            "show_message",
        )

    @contain_errors("trigger_server_notification")
    def trigger_server_notification(
        self,
        notification_type: str,
        target_user_id: str,
        title: str | None = None,
        body: str | None = None,
        custom_data: dict[str, Any] | None = None,
    ) -> ServiceResult[int]:
        """
        Record an inbox notification and display it.

        The InAppNotification row is written first; when that write fails
        nothing is displayed.
        """
        payload = ServerPayload(
            target_user_id=str(target_user_id),
            notification_type=notification_type,
            custom_title=title,
            custom_body=body,
            custom_data=dict(custom_data or {}),
        )

        try:
            InAppNotification.objects.create(
                notification_type=payload.kind_tag,
                target_user_id=payload.target_user_id,
                title=payload.title,
                body=payload.body,
                custom_data=payload.custom_data,
            )
        except DatabaseError as exc:
            error = StorageWriteError(
                f"Server notification not stored: {exc}",
                details={"target_user_id": payload.target_user_id},
            )
            self.analytics.record_error("server_notification", payload.target_user_id, error)
            return ServiceResult.failure(error.message, error_code=error.error_code)

        return self._show(payload, "trigger_server_notification")

    # -------------------------------------------------------------------------
    # Error hook
    # -------------------------------------------------------------------------

    def on_contained_error(self, context: str, exc: Exception) -> None:
        """Forward an exception caught at the service boundary to analytics."""
        self.analytics.record_error(context, UNKNOWN_USER, exc)


def build_notification_service(
    transport: PushTransport | None = None,
    display: NotificationDisplay | None = None,
    identity: IdentitySource | None = None,
) -> PushNotificationService:
    """
    Build a service from PUSH_NOTIFICATIONS settings.

    Collaborators not given are loaded from TRANSPORT_BACKEND and
    DISPLAY_BACKEND. Without an explicit identity the service follows
    Django's login/logout signals process-wide, which only suits a
    single-identity process; views pass StaticIdentitySource(request.user).
    """
    return PushNotificationService(
        transport=transport if transport is not None else load_backend("TRANSPORT_BACKEND"),
        display=display if display is not None else load_backend("DISPLAY_BACKEND"),
        identity=identity if identity is not None else AuthSignalIdentitySource(),
    )
