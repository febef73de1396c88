"""
Local display backends.

A display backend issues the user-visible "show notification" call and
reports taps back through the response handler given to initialize().
The active backend is chosen with PUSH_NOTIFICATIONS["DISPLAY_BACKEND"].

Backends:
    LoggingDisplay: Writes display calls to the log (default)
    LocMemDisplay: Appends display calls to the module-level ``outbox``
        list, in the manner of Django's locmem email backend. Used in tests.

Usage:
    from notifications import display

    display.outbox.clear()
    ...
    assert display.outbox[0].title == "New Follower"
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[str | None], None]

# Display calls made through LocMemDisplay, in call order
outbox: list[DisplayedNotification] = []


@dataclass(frozen=True)
class DisplayedNotification:
    """One display call as seen by the platform."""

    notification_id: int
    title: str
    body: str
    payload: str
    platform: str


@runtime_checkable
class NotificationDisplay(Protocol):
    """Protocol for local display backends."""

    platform: str

    def initialize(self, on_response: ResponseHandler) -> bool:
        """Prepare the display subsystem and register the tap handler."""
        ...

    def configure_categories(self) -> bool:
        """
        Register platform permission categories.

        Returns False on platforms without categories. May raise
        NotImplementedError; callers treat that as a soft failure.
        """
        ...

    def show(self, notification_id: int, title: str, body: str, payload: str) -> None:
        """
        Display a notification.

        Raises:
            Exception: Whatever the platform raises when it rejects the call
        """
        ...


class BaseDisplay:
    """Shared tap-handler plumbing for the bundled backends."""

    platform = "server"

    def __init__(self):
        self.on_response: ResponseHandler | None = None

    def initialize(self, on_response: ResponseHandler) -> bool:
        self.on_response = on_response
        return True

    def configure_categories(self) -> bool:
        return False

    def tap(self, payload: str | None) -> None:
        """Simulate the user tapping a displayed notification."""
        if self.on_response is None:
            logger.warning("Notification tapped before display was initialized")
            return
        self.on_response(payload)


class LoggingDisplay(BaseDisplay):
    """Display backend for headless processes: logs instead of showing."""

    def show(self, notification_id: int, title: str, body: str, payload: str) -> None:
        logger.info(f"Display #{notification_id}: {title} - {body}")


class LocMemDisplay(BaseDisplay):
    """Display backend that records calls in ``notifications.display.outbox``."""

    platform = "locmem"

    def __init__(self):
        super().__init__()
        self.categories_configured = False

    def configure_categories(self) -> bool:
        self.categories_configured = True
        return True

    def show(self, notification_id: int, title: str, body: str, payload: str) -> None:
        outbox.append(
            DisplayedNotification(
                notification_id=notification_id,
                title=title,
                body=body,
                payload=payload,
                platform=self.platform,
            )
        )
