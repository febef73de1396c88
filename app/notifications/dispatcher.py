"""
Dispatcher: lifecycle and routing of inbound notification events.

NotificationDispatcher owns the transport/display/identity subscriptions
and moves through

    UNINITIALIZED -> INITIALIZING -> READY
                                  -> INIT_FAILED

Each inbound event is handled by process_message(), a stateless function
shared with the background Celery task, so concurrent events only share
the durable stores they append to.

Usage:
    dispatcher = NotificationDispatcher(
        transport=transport,
        display=display,
        identity=identity,
        audit=audit,
        analytics=analytics,
        renderer=renderer,
        tokens=tokens,
    )
    dispatcher.initialize()
    ...
    dispatcher.dispose()
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING

from notifications.conf import push_setting
from notifications.constants import (
    SYSTEM_USER,
    UNKNOWN_TYPE,
    UNKNOWN_USER,
    AuditStep,
    MessageSource,
)
from notifications.exceptions import PayloadDecodeError, PushPermissionDeniedError
from notifications.models import AuditStatus
from notifications.payloads import decode_tap_payload, normalize_message
from notifications.transport import PermissionStatus

if TYPE_CHECKING:
    from typing import Any

    from notifications.analytics import NotificationAnalytics
    from notifications.audit import AuditLogWriter
    from notifications.display import NotificationDisplay
    from notifications.identity import IdentitySource
    from notifications.renderer import NotificationRenderer
    from notifications.tokens import TokenRegistry
    from notifications.transport import PushTransport, RemoteMessage, Subscription

logger = logging.getLogger(__name__)

GRANTED_PERMISSIONS = (PermissionStatus.AUTHORIZED, PermissionStatus.PROVISIONAL)


class DispatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    INIT_FAILED = "init_failed"


# =============================================================================
# Event handling
# =============================================================================


def process_message(
    message: RemoteMessage,
    *,
    renderer: NotificationRenderer,
    audit: AuditLogWriter,
    analytics: NotificationAnalytics,
    source: str,
    render_data_only: bool | None = None,
) -> int | None:
    """
    Handle one inbound message. Never raises.

    The message is rendered when it carries a title or body, or (with
    render_data_only) any data at all. Every branch writes exactly one
    terminal audit record: notification_shown, no_notification,
    notification_failed (by the renderer) or message_handling_failed.

    Returns:
        The display identifier, or None when nothing was shown
    """
    if render_data_only is None:
        render_data_only = push_setting("RENDER_DATA_ONLY_MESSAGES")

    notification_type = UNKNOWN_TYPE
    target_user_id = UNKNOWN_USER
    try:
        event = normalize_message(message)
        notification_type = event.type
        target_user_id = event.target_user_id

        audit.record(
            AuditStep.MESSAGE_RECEIVED,
            notification_type=notification_type,
            target_user_id=target_user_id,
            status=AuditStatus.IN_PROGRESS,
            info=f"source={source} message_id={event.source_message_id}",
        )

        if not (event.has_display_text or (render_data_only and event.custom_data)):
            logger.info(f"Message from {source} has nothing to display, skipping")
            audit.record(
                AuditStep.NO_NOTIFICATION,
                notification_type=notification_type,
                target_user_id=target_user_id,
                status=AuditStatus.SKIPPED,
                info=f"source={source} no title, body or data",
            )
            return None

        analytics.record_attempt(notification_type, target_user_id, trigger=source)
        notification_id = renderer.render(
            event.title,
            event.body,
            event.custom_data,
            step_prefix="notification",
            notification_type=notification_type,
            target_user_id=target_user_id,
        )
        if notification_id is None:
            analytics.record_attempt(
                notification_type, target_user_id, trigger=source, error="display failed"
            )
            return None

        audit.record(
            AuditStep.NOTIFICATION_SHOWN,
            notification_type=notification_type,
            target_user_id=target_user_id,
            status=AuditStatus.SUCCESS,
            info=f"source={source} id={notification_id}",
        )
        analytics.record_display(notification_type, source)
        return notification_id
    except Exception as exc:
        analytics.record_error(
            notification_type,
            target_user_id,
            exc,
            step=AuditStep.MESSAGE_HANDLING_FAILED,
        )
        return None


# =============================================================================
# Dispatcher
# =============================================================================


class NotificationDispatcher:
    """
    Coordinates initialization and routes events to the renderer.

    Attributes:
        transport: Push transport
        display: Local display backend
        identity: Identity source
        audit: Audit log writer
        analytics: Error/analytics sink
        renderer: Renderer used for foreground messages
        tokens: Token registry

    Thread Safety:
        The lifecycle state and the subscription list are guarded by a
        lock that is never held while calling collaborators. Event handlers
        keep only local state.
    """

    def __init__(
        self,
        transport: PushTransport,
        display: NotificationDisplay,
        identity: IdentitySource,
        audit: AuditLogWriter,
        analytics: NotificationAnalytics,
        renderer: NotificationRenderer,
        tokens: TokenRegistry,
        render_data_only: bool | None = None,
    ):
        self.transport = transport
        self.display = display
        self.identity = identity
        self.audit = audit
        self.analytics = analytics
        self.renderer = renderer
        self.tokens = tokens
        self.render_data_only = (
            render_data_only
            if render_data_only is not None
            else push_setting("RENDER_DATA_ONLY_MESSAGES")
        )
        self._state = DispatcherState.UNINITIALIZED
        self._subscriptions: list[Subscription] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> DispatcherState:
        with self._lock:
            return self._state

    @property
    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _set_state(self, state: DispatcherState) -> None:
        with self._lock:
            self._state = state

    def _keep(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.append(subscription)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def initialize(self) -> DispatcherState:
        """
        Run the setup sequence once.

        Permission denial only degrades the service. Any other failure moves
        to INIT_FAILED, is audited as init_failed and leaves whatever was
        already registered in place. Calling again while initializing, ready
        or failed is a no-op; dispose() resets to UNINITIALIZED.
        """
        with self._lock:
            if self._state != DispatcherState.UNINITIALIZED:
                logger.debug(f"initialize() ignored in state {self._state.value}")
                return self._state
            self._state = DispatcherState.INITIALIZING

        self.audit.record(AuditStep.INIT_STARTED, target_user_id=SYSTEM_USER)
        try:
            self._request_permission()
            self.transport.set_foreground_presentation_options(
                alert=True, badge=True, sound=True
            )

            self._keep(self.transport.on_message(self.handle_foreground_message))
            self._keep(self.transport.on_message_opened_app(self.handle_opened_message))

            token = self.tokens.retrieve_current_token()
            if token:
                self.tokens.save_token(token)
            self._keep(self.transport.on_token_refresh(self.tokens.on_token_refresh))
            self._keep(self.identity.on_change(self.tokens.on_identity_change))

            self.display.initialize(self.handle_notification_response)
            self._configure_categories()
        except Exception as exc:
            self._set_state(DispatcherState.INIT_FAILED)
            self.analytics.record_error(
                "initialization",
                SYSTEM_USER,
                exc,
                step=AuditStep.INIT_FAILED,
            )
            return DispatcherState.INIT_FAILED

        self._set_state(DispatcherState.READY)
        self.audit.record(
            AuditStep.INIT_COMPLETE,
            target_user_id=SYSTEM_USER,
            status=AuditStatus.SUCCESS,
            info=f"platform={self.display.platform}",
        )
        logger.info("Push notification dispatcher ready")
        return DispatcherState.READY

    def _request_permission(self) -> None:
        try:
            permission = PermissionStatus(
                self.transport.request_permission(alert=True, badge=True, sound=True)
            )
            if permission not in GRANTED_PERMISSIONS:
                raise PushPermissionDeniedError(
                    "Display permission not granted",
                    details={"permission": permission.value},
                )
        except PushPermissionDeniedError as exc:
            logger.warning(f"{exc.message}; continuing without display permission")
            self.audit.record(
                AuditStep.PERMISSION_STATUS,
                target_user_id=SYSTEM_USER,
                status=AuditStatus.FAILED,
                info=exc.details.get("permission"),
            )
            return

        logger.info(f"Display permission: {permission.value}")
        self.audit.record(
            AuditStep.PERMISSION_STATUS,
            target_user_id=SYSTEM_USER,
            status=AuditStatus.SUCCESS,
            info=permission.value,
        )

    def _configure_categories(self) -> None:
        try:
            self.display.configure_categories()
        except NotImplementedError:
            logger.debug(f"No notification categories on {self.display.platform}")
        except Exception as exc:
            logger.warning(f"Notification category setup failed: {exc}", exc_info=True)
            self.audit.record(
                AuditStep.CHANNEL_CONFIG_FAILED,
                target_user_id=SYSTEM_USER,
                status=AuditStatus.FAILED,
                info=str(exc),
            )

    def dispose(self) -> None:
        """Cancel every subscription and return to UNINITIALIZED."""
        with self._lock:
            subscriptions, self._subscriptions = self._subscriptions, []
            self._state = DispatcherState.UNINITIALIZED
        for subscription in subscriptions:
            try:
                subscription.cancel()
            except Exception:
                logger.exception("Failed to cancel subscription")

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def handle_foreground_message(self, message: RemoteMessage) -> int | None:
        """Transport listener for messages received in the foreground."""
        return process_message(
            message,
            renderer=self.renderer,
            audit=self.audit,
            analytics=self.analytics,
            source=MessageSource.FOREGROUND,
            render_data_only=self.render_data_only,
        )

    def handle_opened_message(self, message: RemoteMessage) -> None:
        """
        Transport listener for messages that opened the app.

        Handed to the stateless background task; processed inline when the
        task cannot be queued.
        """
        from notifications.tasks import handle_background_message

        try:
            handle_background_message.delay(message.to_dict())
        except Exception:
            logger.warning(
                "Could not queue background message, handling inline",
                exc_info=True,
            )
            process_message(
                message,
                renderer=self.renderer,
                audit=self.audit,
                analytics=self.analytics,
                source=MessageSource.BACKGROUND,
                render_data_only=self.render_data_only,
            )

    def handle_notification_response(self, payload: str | None) -> dict[str, Any] | None:
        """
        Display tap handler. Never raises and never re-renders.

        Returns:
            The decoded custom data, or None when the payload was unusable
        """
        try:
            data = decode_tap_payload(payload)
        except PayloadDecodeError as exc:
            logger.warning(f"Notification tap with unusable payload: {exc.message}")
            self.audit.record(
                AuditStep.NOTIFICATION_TAPPED,
                notification_type=UNKNOWN_TYPE,
                status=AuditStatus.ERROR,
                info=exc.message,
            )
            return None
        except Exception as exc:
            logger.exception("Notification tap handling failed")
            self.audit.record(
                AuditStep.NOTIFICATION_TAPPED,
                notification_type=UNKNOWN_TYPE,
                status=AuditStatus.ERROR,
                info=str(exc),
            )
            return None

        notification_type = str(data.get("type") or UNKNOWN_TYPE)
        target_user_id = data.get("targetUserId")
        logger.info(f"Notification tapped: {notification_type}")
        self.audit.record(
            AuditStep.NOTIFICATION_TAPPED,
            notification_type=notification_type,
            target_user_id=str(target_user_id) if target_user_id else None,
            status=AuditStatus.SUCCESS,
        )
        return data
