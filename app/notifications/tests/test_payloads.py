"""
Unit tests for payload normalization, typed payloads and tap encoding.
"""

import pytest

from notifications.exceptions import PayloadDecodeError
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
    decode_tap_payload,
    encode_tap_payload,
    normalize_message,
    payload_kind,
)
from notifications.transport import RemoteMessage, RemoteNotification


class TestNormalizeMessage:
    def test_data_text_wins_over_notification_block(self):
        message = RemoteMessage(
            data={"title": "From data", "body": "Data body", "type": "comment"},
            notification=RemoteNotification(title="From transport", body="Transport body"),
        )

        event = normalize_message(message)

        assert event.title == "From data"
        assert event.body == "Data body"
        assert event.type == "comment"

    def test_notification_block_used_when_data_has_no_text(self):
        message = RemoteMessage(
            data={"type": "message"},
            notification=RemoteNotification(title="Bob", body="hey"),
        )

        event = normalize_message(message)

        assert (event.title, event.body) == ("Bob", "hey")

    def test_defaults_for_missing_type_and_target(self):
        event = normalize_message(RemoteMessage(data={"title": "Hi"}))

        assert event.type == "fcm"
        assert event.target_user_id == "unknown"

    def test_empty_message(self):
        event = normalize_message(RemoteMessage())

        assert event.title is None
        assert event.body is None
        assert event.custom_data == {}
        assert not event.has_display_text

    def test_custom_data_is_the_full_data_map(self):
        data = {"type": "rating", "targetUserId": "u9", "rating": "4.5", "postId": "p1"}

        event = normalize_message(RemoteMessage(data=data, message_id="m-1"))

        assert event.custom_data == data
        assert event.target_user_id == "u9"
        assert event.source_message_id == "m-1"

    def test_empty_strings_count_as_absent(self):
        message = RemoteMessage(
            data={"title": ""},
            notification=RemoteNotification(title="Fallback", body=None),
        )

        assert normalize_message(message).title == "Fallback"


class TestRemoteMessageFromDict:
    def test_tolerates_garbage(self):
        assert RemoteMessage.from_dict("not a message") == RemoteMessage()
        assert RemoteMessage.from_dict({"data": ["x"], "notification": "y"}) == RemoteMessage()

    def test_reads_json_form(self):
        message = RemoteMessage.from_dict(
            {
                "data": {"type": "follow"},
                "notification": {"title": "T", "body": "B"},
                "messageId": "abc",
                "sentTime": "2026-01-02T03:04:05+00:00",
            }
        )

        assert message.data == {"type": "follow"}
        assert message.notification == RemoteNotification(title="T", body="B")
        assert message.message_id == "abc"
        assert message.sent_time.year == 2026

    def test_to_dict_is_read_back_unchanged(self):
        message = RemoteMessage(
            data={"type": "comment", "targetUserId": "u1"},
            notification=RemoteNotification(title="T", body=None),
            message_id="m-7",
        )

        assert RemoteMessage.from_dict(message.to_dict()) == message


class TestTapPayload:
    def test_round_trip_preserves_structure(self):
        data = {
            "type": "comment",
            "targetUserId": "u1",
            "nested": {"a": [1, 2, {"b": None}]},
            "rating": 4.5,
        }

        assert decode_tap_payload(encode_tap_payload(data)) == data

    @pytest.mark.parametrize("payload", [None, "not-json", "[1, 2]", '"text"'])
    def test_unusable_payloads_raise_decode_error(self, payload):
        with pytest.raises(PayloadDecodeError):
            decode_tap_payload(payload)

    def test_decode_error_code(self):
        with pytest.raises(PayloadDecodeError) as exc_info:
            decode_tap_payload("not-json")

        assert exc_info.value.error_code == "PAYLOAD_DECODE_ERROR"


class TestTypedPayloads:
    @pytest.mark.parametrize(
        ("payload", "kind", "title", "body"),
        [
            (
                FollowPayload(target_user_id="u1", follower_id="f1", follower_username="alice"),
                "follow",
                "New Follower",
                "alice started following you",
            ),
            (
                FollowRequestPayload(target_user_id="u1", requester_id="r1", requester_username="bob"),
                "follow_request",
                "New Follow Request",
                "bob wants to follow you",
            ),
            (
                FollowAcceptedPayload(target_user_id="u1", sender_id="s1", sender_username="cara"),
                "follow_request_accepted",
                "Follow Request Approved",
                "cara approved your follow request",
            ),
            (
                RatingPayload(target_user_id="u1", rater_id="r1", rater_username="dan", rating=4),
                "rating",
                "New Rating",
                "dan rated your post 4.0★",
            ),
            (
                CommentPayload(
                    target_user_id="u1",
                    commenter_id="c1",
                    commenter_username="eve",
                    comment_text="great shot",
                ),
                "comment",
                "New Comment",
                "eve commented: great shot",
            ),
            (
                CommentLikePayload(
                    target_user_id="u1",
                    liker_id="l1",
                    liker_username="fay",
                    comment_text="great shot",
                ),
                "comment_like",
                "Comment Liked",
                "fay liked your comment",
            ),
            (
                MessagePayload(
                    target_user_id="u1",
                    sender_id="s1",
                    sender_username="gus",
                    message_text="hi there",
                ),
                "message",
                "New Message",
                "gus: hi there",
            ),
            (
                DebugPayload(),
                "test",
                "Test Notification",
                "This is a test notification!",
            ),
        ],
    )
    def test_texts(self, payload, kind, title, body):
        assert payload_kind(payload) == kind
        assert payload.title == title
        assert payload.body == body

    def test_to_data_carries_type_target_and_fields(self):
        payload = RatingPayload(
            target_user_id="u1",
            rater_id="r1",
            rater_username="dan",
            rating=3.5,
            post_id="p9",
        )

        assert payload.to_data() == {
            "type": "rating",
            "targetUserId": "u1",
            "raterId": "r1",
            "raterUsername": "dan",
            "rating": 3.5,
            "postId": "p9",
        }

    def test_optional_ids_are_left_out(self):
        data = MessagePayload(
            target_user_id="u1", sender_id="s1", sender_username="gus", message_text="yo"
        ).to_data()

        assert "chatId" not in data

    def test_server_payload_defaults(self):
        payload = ServerPayload(target_user_id="u2", notification_type="announcement")

        assert payload_kind(payload) == "announcement"
        assert payload.title == "New Notification"
        assert payload.body == "You have a new notification"
        assert payload.to_data() == {"type": "announcement", "targetUserId": "u2"}

    def test_server_payload_keeps_custom_data(self):
        payload = ServerPayload(
            target_user_id="u2",
            notification_type="promo",
            custom_title="Sale",
            custom_data={"campaign": "spring"},
        )

        assert payload.title == "Sale"
        assert payload.to_data() == {
            "campaign": "spring",
            "type": "promo",
            "targetUserId": "u2",
        }
