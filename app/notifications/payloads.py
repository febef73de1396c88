"""
Notification payloads: normalization, typed variants and tap encoding.

Inbound triggers arrive as loosely typed string maps. This module turns
them into a NotificationEvent (normalize_message) and defines one typed
payload per notification kind for the places where type-specific fields
are known. The opaque custom-data bag (``to_data()``) is what travels
through the render/tap cycle.

Usage:
    from notifications.payloads import FollowPayload, normalize_message

    event = normalize_message(message)
    payload = FollowPayload(follower_id="f1", follower_username="alice",
                            target_user_id="u1")
    payload.title   # "New Follower"
    payload.to_data()
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from notifications.constants import (
    DEFAULT_MESSAGE_TYPE,
    SERVER_DEFAULT_BODY,
    SERVER_DEFAULT_TITLE,
    UNKNOWN_TYPE,
    UNKNOWN_USER,
)
from notifications.exceptions import PayloadDecodeError

if TYPE_CHECKING:
    from typing import Any

    from notifications.transport import RemoteMessage


# =============================================================================
# Normalized event
# =============================================================================


@dataclass(frozen=True)
class NotificationEvent:
    """
    Canonical form of one inbound trigger.

    Built at ingestion and consumed by a single handler; only its audit
    trail is persisted.
    """

    type: str
    target_user_id: str
    title: str | None = None
    body: str | None = None
    custom_data: dict[str, Any] = field(default_factory=dict)
    source_message_id: str | None = None
    sent_time: datetime | None = None

    @property
    def has_display_text(self) -> bool:
        return bool(self.title) or bool(self.body)


def _present(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text or None


def normalize_message(message: RemoteMessage) -> NotificationEvent:
    """
    Extract the canonical fields from an inbound message.

    data.title/data.body win over the transport notification block, so
    internal triggers can override display text. type defaults to "fcm"
    and targetUserId to "unknown". Only presence is checked.
    """
    data = dict(message.data or {})
    notification = message.notification

    title = _present(data.get("title"))
    if title is None and notification is not None:
        title = _present(notification.title)

    body = _present(data.get("body"))
    if body is None and notification is not None:
        body = _present(notification.body)

    return NotificationEvent(
        type=_present(data.get("type")) or DEFAULT_MESSAGE_TYPE,
        target_user_id=_present(data.get("targetUserId")) or UNKNOWN_USER,
        title=title,
        body=body,
        custom_data=data,
        source_message_id=message.message_id,
        sent_time=message.sent_time,
    )


# =============================================================================
# Tap payload encoding
# =============================================================================


def encode_tap_payload(data: dict[str, Any]) -> str:
    """
    Serialize custom data for the display call.

    Raises:
        TypeError: If a value is not JSON serializable
    """
    return json.dumps(data)


def decode_tap_payload(payload: str | None) -> dict[str, Any]:
    """
    Decode a tap payload back into the custom-data map.

    Raises:
        PayloadDecodeError: If the payload is missing, not JSON, or not an object
    """
    if payload is None:
        raise PayloadDecodeError("Notification tapped without payload")
    try:
        decoded = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise PayloadDecodeError(
            f"Failed to parse notification payload: {exc}",
            details={"payload": str(payload)[:50]},
        ) from exc
    if not isinstance(decoded, dict):
        raise PayloadDecodeError(
            "Notification payload is not an object",
            details={"payload_type": type(decoded).__name__},
        )
    return decoded


# =============================================================================
# Typed payload variants
# =============================================================================


@dataclass(frozen=True)
class NotificationPayload:
    """
    Base class for typed notification payloads.

    Subclasses set ``kind`` and implement title/body/extra_data.
    """

    kind: ClassVar[str] = UNKNOWN_TYPE

    target_user_id: str

    @property
    def title(self) -> str:
        raise NotImplementedError

    @property
    def body(self) -> str:
        raise NotImplementedError

    def extra_data(self) -> dict[str, Any]:
        return {}

    def to_data(self) -> dict[str, Any]:
        """Custom-data bag carried through the render/tap cycle."""
        data: dict[str, Any] = {
            "type": self.kind,
            "targetUserId": str(self.target_user_id),
        }
        data.update(self.extra_data())
        return data


@dataclass(frozen=True)
class DebugPayload(NotificationPayload):
    kind: ClassVar[str] = "test"

    target_user_id: str = UNKNOWN_USER

    @property
    def title(self) -> str:
        return "Test Notification"

    @property
    def body(self) -> str:
        return "This is a test notification!"

    def extra_data(self) -> dict[str, Any]:
        return {"source": "debug"}


@dataclass(frozen=True)
class FollowPayload(NotificationPayload):
    kind: ClassVar[str] = "follow"

    follower_id: str = ""
    follower_username: str = ""

    @property
    def title(self) -> str:
        return "New Follower"

    @property
    def body(self) -> str:
        return f"{self.follower_username} started following you"

    def extra_data(self) -> dict[str, Any]:
        return {
            "followerId": self.follower_id,
            "followerUsername": self.follower_username,
        }


@dataclass(frozen=True)
class FollowRequestPayload(NotificationPayload):
    kind: ClassVar[str] = "follow_request"

    requester_id: str = ""
    requester_username: str = ""

    @property
    def title(self) -> str:
        return "New Follow Request"

    @property
    def body(self) -> str:
        return f"{self.requester_username} wants to follow you"

    def extra_data(self) -> dict[str, Any]:
        return {
            "requesterId": self.requester_id,
            "requesterUsername": self.requester_username,
        }


@dataclass(frozen=True)
class FollowAcceptedPayload(NotificationPayload):
    kind: ClassVar[str] = "follow_request_accepted"

    sender_id: str = ""
    sender_username: str = ""

    @property
    def title(self) -> str:
        return "Follow Request Approved"

    @property
    def body(self) -> str:
        return f"{self.sender_username} approved your follow request"

    def extra_data(self) -> dict[str, Any]:
        return {
            "senderId": self.sender_id,
            "senderUsername": self.sender_username,
        }


@dataclass(frozen=True)
class RatingPayload(NotificationPayload):
    kind: ClassVar[str] = "rating"

    rater_id: str = ""
    rater_username: str = ""
    rating: float = 0.0
    post_id: str | None = None

    @property
    def title(self) -> str:
        return "New Rating"

    @property
    def body(self) -> str:
        return f"{self.rater_username} rated your post {float(self.rating):.1f}★"

    def extra_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "raterId": self.rater_id,
            "raterUsername": self.rater_username,
            "rating": float(self.rating),
        }
        if self.post_id is not None:
            data["postId"] = self.post_id
        return data


@dataclass(frozen=True)
class CommentPayload(NotificationPayload):
    kind: ClassVar[str] = "comment"

    commenter_id: str = ""
    commenter_username: str = ""
    comment_text: str = ""
    post_id: str | None = None

    @property
    def title(self) -> str:
        return "New Comment"

    @property
    def body(self) -> str:
        return f"{self.commenter_username} commented: {self.comment_text}"

    def extra_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "commenterId": self.commenter_id,
            "commenterUsername": self.commenter_username,
            "commentText": self.comment_text,
        }
        if self.post_id is not None:
            data["postId"] = self.post_id
        return data


@dataclass(frozen=True)
class CommentLikePayload(NotificationPayload):
    kind: ClassVar[str] = "comment_like"

    liker_id: str = ""
    liker_username: str = ""
    comment_text: str = ""

    @property
    def title(self) -> str:
        return "Comment Liked"

    @property
    def body(self) -> str:
        return f"{self.liker_username} liked your comment"

    def extra_data(self) -> dict[str, Any]:
        return {
            "likerId": self.liker_id,
            "likerUsername": self.liker_username,
            "commentText": self.comment_text,
        }


@dataclass(frozen=True)
class MessagePayload(NotificationPayload):
    kind: ClassVar[str] = "message"

    sender_id: str = ""
    sender_username: str = ""
    message_text: str = ""
    chat_id: str | None = None

    @property
    def title(self) -> str:
        return "New Message"

    @property
    def body(self) -> str:
        return f"{self.sender_username}: {self.message_text}"

    def extra_data(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "senderId": self.sender_id,
            "senderUsername": self.sender_username,
            "messageText": self.message_text,
        }
        if self.chat_id is not None:
            data["chatId"] = self.chat_id
        return data


@dataclass(frozen=True)
class ServerPayload(NotificationPayload):
    """Free-form notification requested by the server with any type tag."""

    notification_type: str = UNKNOWN_TYPE
    custom_title: str | None = None
    custom_body: str | None = None
    custom_data: dict[str, Any] = field(default_factory=dict)

    @property
    def kind_tag(self) -> str:
        return self.notification_type or UNKNOWN_TYPE

    @property
    def title(self) -> str:
        return self.custom_title or SERVER_DEFAULT_TITLE

    @property
    def body(self) -> str:
        return self.custom_body or SERVER_DEFAULT_BODY

    def to_data(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.custom_data)
        data["type"] = self.kind_tag
        data["targetUserId"] = str(self.target_user_id)
        return data


def payload_kind(payload: NotificationPayload) -> str:
    """Type tag of a payload (server payloads carry their own)."""
    if isinstance(payload, ServerPayload):
        return payload.kind_tag
    return payload.kind
