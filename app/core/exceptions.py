"""
Application exception hierarchy.

    BaseApplicationError
    ├── ValidationError        - input could not be decoded or validated
    ├── PermissionDeniedError  - a permission the operation needs was refused
    └── ExternalServiceError   - a collaborator (transport, storage, display) failed

Every error carries a human-readable ``message``, a machine-readable
``error_code`` (the subclass's ``default_error_code`` unless overridden)
and a ``details`` dict for logs and audit records.

Usage:
    from core.exceptions import ExternalServiceError

    raise ExternalServiceError(
        "Push transport unavailable",
        error_code="TRANSPORT_UNAVAILABLE",
        details={"operation": "get_token"},
    ) from exc
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.message!r}, "
            f"error_code={self.error_code!r}, details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    default_error_code: str = "VALIDATION_ERROR"


class PermissionDeniedError(BaseApplicationError):
    default_error_code: str = "PERMISSION_DENIED"


class ExternalServiceError(BaseApplicationError):
    """
    A call into an external collaborator failed.

    Chain the original exception (``raise ... from exc``) so the audit
    trail can describe where it came from.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
