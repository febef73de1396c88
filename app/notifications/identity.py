"""
Identity sources: who is signed in, and when that changes.

The token registry asks an IdentitySource for the current user and
subscribes to its changes so a token obtained before sign-in can be
re-saved against the user once one is known.

Sources:
    StaticIdentitySource: Explicit user, changed with set_user()
    AuthSignalIdentitySource: Follows Django's user_logged_in and
        user_logged_out signals
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from django.contrib.auth.signals import user_logged_in, user_logged_out

from notifications.transport import ListenerRegistry, Subscription

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)

IdentityListener = Callable[["User | None"], None]


@runtime_checkable
class IdentitySource(Protocol):
    """Protocol for identity sources."""

    def current_user(self) -> User | None:
        """Return the signed-in user, or None."""
        ...

    def on_change(self, callback: IdentityListener) -> Subscription:
        """Register a listener called with the new user (None on sign-out)."""
        ...


class StaticIdentitySource:
    """
    Identity held explicitly by the caller.

    Used for request-scoped services (the request's user) and tests.
    """

    def __init__(self, user: User | None = None):
        self._user = user
        self._listeners = ListenerRegistry("identity_change")

    def current_user(self) -> User | None:
        if self._user is None or not getattr(self._user, "is_authenticated", False):
            return None
        return self._user

    def on_change(self, callback: IdentityListener) -> Subscription:
        return self._listeners.add(callback)

    def set_user(self, user: User | None) -> None:
        """Switch identity and notify listeners."""
        self._user = user
        self._listeners.emit(self.current_user())


class AuthSignalIdentitySource:
    """
    Identity driven by Django's authentication signals.

    The signal receivers are connected while at least one listener is
    subscribed and disconnected when the last subscription is cancelled.

    The current user is one value per process: the user of the most recent
    login or logout signal. Use it only in single-identity processes (a
    device client, a management command). Request handlers serving several
    users pass StaticIdentitySource(request.user) instead.
    """

    def __init__(self):
        self._user: User | None = None
        self._listeners = ListenerRegistry("identity_change")
        self._lock = threading.Lock()
        self._connected = False
        self._uid = f"push-identity-{id(self)}"

    def current_user(self) -> User | None:
        return self._user

    def on_change(self, callback: IdentityListener) -> Subscription:
        subscription = self._listeners.add(callback)
        self._connect()

        def cancel():
            subscription.cancel()
            if len(self._listeners) == 0:
                self._disconnect()

        return Subscription(cancel)

    def _connect(self) -> None:
        with self._lock:
            if self._connected:
                return
            user_logged_in.connect(self._on_logged_in, dispatch_uid=f"{self._uid}-in")
            user_logged_out.connect(self._on_logged_out, dispatch_uid=f"{self._uid}-out")
            self._connected = True

    def _disconnect(self) -> None:
        with self._lock:
            if not self._connected:
                return
            user_logged_in.disconnect(dispatch_uid=f"{self._uid}-in")
            user_logged_out.disconnect(dispatch_uid=f"{self._uid}-out")
            self._connected = False

    def _on_logged_in(self, sender, request=None, user=None, **kwargs):
        self._user = user
        logger.debug(f"Identity changed: signed in as {getattr(user, 'pk', None)}")
        self._listeners.emit(user)

    def _on_logged_out(self, sender, request=None, user=None, **kwargs):
        self._user = None
        logger.debug("Identity changed: signed out")
        self._listeners.emit(None)
