"""
Constants for the push notification pipeline.

Audit step names are part of the audit log schema consumed by dashboards;
renaming one breaks existing queries.
"""

# Display identifiers must fit a 32-bit signed integer
MAX_NOTIFICATION_ID = 2147483647

UNKNOWN_USER = "unknown"
SYSTEM_USER = "system"
UNKNOWN_TYPE = "unknown"
DEFAULT_MESSAGE_TYPE = "fcm"

DEFAULT_TITLE = "New Activity"
DEFAULT_BODY = "You have new activity"
SERVER_DEFAULT_TITLE = "New Notification"
SERVER_DEFAULT_BODY = "You have a new notification"

ELLIPSIS = "..."
TOKEN_PREVIEW_LENGTH = 6


class AuditStep:
    """Step names written to the audit log."""

    INIT_STARTED = "init_started"
    PERMISSION_STATUS = "permission_status"
    CHANNEL_CONFIG_FAILED = "channel_config_failed"
    INIT_COMPLETE = "init_complete"
    INIT_FAILED = "init_failed"

    TOKEN_RECEIVED = "token_received"
    TOKEN_SAVED = "token_saved"
    TOKEN_PENDING_SAVED = "token_pending_saved"
    TOKEN_SAVE_FAILED = "token_save_failed"
    TOKEN_RETRIEVAL_FAILED = "token_retrieval_failed"

    MESSAGE_RECEIVED = "message_received"
    NO_NOTIFICATION = "no_notification"
    NOTIFICATION_SHOWN = "notification_shown"
    NOTIFICATION_FAILED = "notification_failed"
    MESSAGE_HANDLING_FAILED = "message_handling_failed"
    NOTIFICATION_TAPPED = "notification_tapped"
    NOTIFICATION_ERROR = "notification_error"

    @staticmethod
    def shown(prefix: str) -> str:
        return f"{prefix}_shown"

    @staticmethod
    def failed(prefix: str) -> str:
        return f"{prefix}_failed"


TERMINAL_STEP_SUFFIXES = ("_shown", "_failed", "_complete")
TERMINAL_STEPS = frozenset({AuditStep.NO_NOTIFICATION, AuditStep.NOTIFICATION_TAPPED})


def is_terminal_step(step: str) -> bool:
    """Whether a step closes the handling of one event or operation."""
    return step in TERMINAL_STEPS or step.endswith(TERMINAL_STEP_SUFFIXES)


class MessageSource:
    """Origin of an inbound trigger, recorded in analytics."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"
    LOCAL = "local"
    SERVER = "server"
