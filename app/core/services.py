"""
Service layer result type and base class.

Public operations of the push pipeline report their outcome as a
ServiceResult instead of raising. Expected failures (empty token, storage
down, display rejected) become ``ServiceResult.failure`` with a stable
error code; unexpected exceptions are contained at the boundary by
core.decorators.contain_errors and converted with ``from_exception``.

Usage:
    from core.services import BaseService, ServiceResult

    class TokenRegistry(BaseService):
        def save_token(self, token: str) -> ServiceResult[str]:
            if not token:
                return ServiceResult.failure("Empty token", error_code="EMPTY_TOKEN")
            with self.atomic():
                ...
            return ServiceResult.success("saved")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Attributes:
        success: Whether the operation succeeded
        data: Payload of a successful result (display id, token state, ...)
        error: Human-readable reason of a failure
        error_code: Machine-readable code (EMPTY_TOKEN, RENDER_FAILURE, ...)

    A result is truthy exactly when it succeeded:

        result = service.show_follow("7", "alice", "42")
        if not result:
            logger.warning(f"Not shown: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: Exception, error_code: str | None = None) -> ServiceResult[T]:
        """
        Build a failure from a caught exception.

        Application errors contribute their ``message`` rather than their
        ``[CODE] message`` string form. Without an explicit code the
        exception class name is used, upper-cased.
        """
        message = getattr(exc, "message", None) or str(exc) or exc.__class__.__name__
        return cls(
            success=False,
            error=message,
            error_code=error_code or exc.__class__.__name__.upper(),
        )

    def to_response(self) -> dict[str, Any]:
        """Body for a DRF Response."""
        if self.success:
            return {"success": True, "data": self.data}

        response: dict[str, Any] = {"success": False, "error": self.error}
        if self.error_code:
            response["error_code"] = self.error_code
        return response

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for pipeline services.

    Provides a logger named after the concrete class, explicit transaction
    boundaries, and logged exception-to-result conversion.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """Run the enclosed writes in one database transaction."""
        with transaction.atomic():
            yield

    @classmethod
    def handle_exception(
        cls,
        exc: Exception,
        context: str = "",
        log_level: int = logging.ERROR,
    ) -> ServiceResult:
        """
        Log a caught exception (with traceback) and return it as a failure.

        The exception's own ``error_code`` is kept when it has one.
        """
        message = f"{context}: {exc}" if context else str(exc)
        cls.get_logger().log(log_level, message, exc_info=True)
        return ServiceResult.from_exception(exc, getattr(exc, "error_code", None))
