"""
Exceptions raised inside the push notification pipeline.

None of these cross a public service boundary: they are caught, recorded
in the audit log and turned into ServiceResult failures or skipped events.

Hierarchy:
    PushPermissionDeniedError (PermissionDeniedError) - display permission refused
    PayloadDecodeError (ValidationError) - malformed tap or trigger payload
    TransportUnavailableError (ExternalServiceError) - token retrieval/refresh failed
    StorageWriteError (ExternalServiceError) - audit or token write failed
    RenderFailure (ExternalServiceError) - platform rejected the display call
"""

from core.exceptions import (
    ExternalServiceError,
    PermissionDeniedError,
    ValidationError,
)


class PushPermissionDeniedError(PermissionDeniedError):
    """The user refused display permission. Handled as degraded mode, never fatal."""

    default_error_code = "PUSH_PERMISSION_DENIED"


class PayloadDecodeError(ValidationError):
    """A tap or trigger payload could not be decoded."""

    default_error_code = "PAYLOAD_DECODE_ERROR"


class TransportUnavailableError(ExternalServiceError):
    """
    The push transport could not be reached.

    Not retried actively: the next natural trigger (app start, token
    refresh, sign-in) tries again.
    """

    default_error_code = "TRANSPORT_UNAVAILABLE"


class StorageWriteError(ExternalServiceError):
    """A write to the audit or token store failed."""

    default_error_code = "STORAGE_WRITE_ERROR"


class RenderFailure(ExternalServiceError):
    """The platform display call was rejected."""

    default_error_code = "RENDER_FAILURE"
