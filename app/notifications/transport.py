"""
Push transport interface and the in-memory reference transport.

The transport (the push provider SDK) owns the wire format of inbound
messages and the lifecycle of delivery tokens. The pipeline only talks to
it through PushTransport, so a provider adapter can be swapped in through
the PUSH_NOTIFICATIONS["TRANSPORT_BACKEND"] setting.

Classes:
    PermissionStatus: Outcome of a display permission request
    RemoteNotification / RemoteMessage: Inbound trigger shape
    Subscription: Handle returned by listener registration
    ListenerRegistry: Thread-safe callback list used by transports
    PushTransport: Protocol every transport implements
    InMemoryPushTransport: Transport for development and tests
"""

from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from django.utils.dateparse import parse_datetime

from notifications.exceptions import TransportUnavailableError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class PermissionStatus(str, Enum):
    """Display permission states reported by the transport."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    PROVISIONAL = "provisional"
    NOT_DETERMINED = "not_determined"


# =============================================================================
# Inbound message shape
# =============================================================================


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class RemoteNotification:
    """Transport-level notification block (display text set by the sender)."""

    title: str | None = None
    body: str | None = None


@dataclass(frozen=True)
class RemoteMessage:
    """
    Inbound trigger delivered by the transport.

    Any subset of fields may be absent. from_dict() never raises: values of
    the wrong shape are treated as absent.
    """

    data: dict[str, str] = field(default_factory=dict)
    notification: RemoteNotification | None = None
    message_id: str | None = None
    sent_time: datetime | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> RemoteMessage:
        """Build a message from its JSON form (as produced by to_dict())."""
        if not isinstance(raw, dict):
            return cls()

        data = raw.get("data")
        data = {str(k): v for k, v in data.items()} if isinstance(data, dict) else {}

        notification = raw.get("notification")
        if isinstance(notification, dict):
            notification = RemoteNotification(
                title=_optional_str(notification.get("title")),
                body=_optional_str(notification.get("body")),
            )
        else:
            notification = None

        sent_time = raw.get("sentTime")
        if isinstance(sent_time, str):
            sent_time = parse_datetime(sent_time)
        elif not isinstance(sent_time, datetime):
            sent_time = None

        return cls(
            data=data,
            notification=notification,
            message_id=_optional_str(raw.get("messageId")),
            sent_time=sent_time,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe form, used to hand the message to a Celery worker."""
        result: dict[str, Any] = {"data": dict(self.data)}
        if self.notification is not None:
            result["notification"] = {
                "title": self.notification.title,
                "body": self.notification.body,
            }
        if self.message_id is not None:
            result["messageId"] = self.message_id
        if self.sent_time is not None:
            result["sentTime"] = self.sent_time.isoformat()
        return result


# =============================================================================
# Listener plumbing
# =============================================================================


class Subscription:
    """Handle for a registered listener. cancel() is idempotent."""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self._lock = threading.Lock()
        self.cancelled = False

    def cancel(self) -> None:
        with self._lock:
            if self.cancelled:
                return
            self.cancelled = True
        self._on_cancel()


class ListenerRegistry:
    """
    Callback list with thread-safe add/remove.

    emit() iterates over a snapshot, so listeners may cancel themselves
    while being called. A failing listener is logged and does not stop the
    others.
    """

    def __init__(self, name: str):
        self.name = name
        self._listeners: list[Callable] = []
        self._lock = threading.Lock()

    def add(self, callback: Callable) -> Subscription:
        with self._lock:
            self._listeners.append(callback)
        return Subscription(lambda: self._remove(callback))

    def _remove(self, callback: Callable) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, *args) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception(f"Listener for {self.name} failed")


# =============================================================================
# Transport protocol
# =============================================================================


@runtime_checkable
class PushTransport(Protocol):
    """
    Protocol for push transports.

    Listener callbacks may be invoked from any thread; implementations
    must not hold locks while calling them.
    """

    def request_permission(
        self, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> PermissionStatus:
        """Ask for display permission and report the resulting status."""
        ...

    def set_foreground_presentation_options(
        self, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> None:
        """Configure how messages are presented while the app is in front."""
        ...

    def get_token(self) -> str | None:
        """
        Return the active delivery token, or None when there is none yet.

        Raises:
            TransportUnavailableError: If the provider cannot be reached
        """
        ...

    def on_message(self, callback: Callable[[RemoteMessage], None]) -> Subscription:
        """Register a listener for messages received in the foreground."""
        ...

    def on_message_opened_app(
        self, callback: Callable[[RemoteMessage], None]
    ) -> Subscription:
        """Register a listener for messages that opened the app."""
        ...

    def on_token_refresh(self, callback: Callable[[str], None]) -> Subscription:
        """Register a listener for delivery token rotation."""
        ...


class InMemoryPushTransport:
    """
    Transport that keeps everything in memory.

    Used in development and tests. Test code drives it with deliver(),
    open_from_notification() and refresh_token(), and can configure
    permission denial or unavailability.

    Example:
        transport = InMemoryPushTransport(token="device-token-1")
        transport.configure(permission=PermissionStatus.DENIED)
        transport.deliver(RemoteMessage(data={"title": "Hi"}))
    """

    def __init__(self, token: str | None = None):
        self.token = token if token is not None else f"local-{secrets.token_hex(16)}"
        self.permission = PermissionStatus.AUTHORIZED
        self.available = True
        self.presentation_options: dict[str, bool] | None = None
        self.permission_requests = 0
        self._messages = ListenerRegistry("on_message")
        self._opened = ListenerRegistry("on_message_opened_app")
        self._token_refresh = ListenerRegistry("on_token_refresh")

    def configure(
        self,
        permission: PermissionStatus = PermissionStatus.AUTHORIZED,
        available: bool = True,
    ) -> None:
        """Configure the transport behavior for testing."""
        self.permission = permission
        self.available = available

    def request_permission(
        self, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> PermissionStatus:
        self.permission_requests += 1
        if not self.available:
            raise TransportUnavailableError(
                "Push transport unavailable",
                details={"operation": "request_permission"},
            )
        return self.permission

    def set_foreground_presentation_options(
        self, alert: bool = True, badge: bool = True, sound: bool = True
    ) -> None:
        self.presentation_options = {"alert": alert, "badge": badge, "sound": sound}

    def get_token(self) -> str | None:
        if not self.available:
            raise TransportUnavailableError(
                "Push transport unavailable",
                details={"operation": "get_token"},
            )
        return self.token

    def on_message(self, callback: Callable[[RemoteMessage], None]) -> Subscription:
        return self._messages.add(callback)

    def on_message_opened_app(
        self, callback: Callable[[RemoteMessage], None]
    ) -> Subscription:
        return self._opened.add(callback)

    def on_token_refresh(self, callback: Callable[[str], None]) -> Subscription:
        return self._token_refresh.add(callback)

    @property
    def listener_counts(self) -> dict[str, int]:
        return {
            "on_message": len(self._messages),
            "on_message_opened_app": len(self._opened),
            "on_token_refresh": len(self._token_refresh),
        }

    def deliver(self, message: RemoteMessage) -> None:
        """Simulate a message arriving while the app is in the foreground."""
        self._messages.emit(message)

    def open_from_notification(self, message: RemoteMessage) -> None:
        """Simulate the user opening the app from a delivered message."""
        self._opened.emit(message)

    def refresh_token(self, new_token: str) -> None:
        """Simulate the provider rotating the delivery token."""
        self.token = new_token
        self._token_refresh.emit(new_token)
