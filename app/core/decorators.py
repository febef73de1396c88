"""
Decorators for service-layer boundaries.

This module provides:
- contain_errors: turns any exception raised by a public operation into a
  logged ServiceResult failure, so callers never see an exception.

Usage:
    from core.decorators import contain_errors

    class PushNotificationService:
        @contain_errors("show_follow")
        def show_follow(self, ...) -> ServiceResult[int]:
            ...

        def on_contained_error(self, context: str, exc: Exception) -> None:
            # Optional hook: record the failure in an audit trail
            ...
"""

from __future__ import annotations

import functools
import logging
from typing import Callable

from core.services import ServiceResult

logger = logging.getLogger(__name__)

ERROR_HOOK_NAME = "on_contained_error"


def contain_errors(context: str, error_code: str | None = None):
    """
    Contain exceptions raised by the wrapped callable.

    On exception the failure is logged with traceback, forwarded to the
    bound instance's ``on_contained_error(context, exc)`` hook when one
    exists, and returned as ``ServiceResult.from_exception``.

    A failing hook is logged and ignored.

    Args:
        context: Operation name used in logs and passed to the hook
        error_code: Error code for the failure result (defaults to the
            exception's own error_code, then its class name)

    Returns:
        Decorator function
    """

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                logger.exception(f"{context} failed: {exc}")
                hook = getattr(args[0], ERROR_HOOK_NAME, None) if args else None
                if callable(hook):
                    try:
                        hook(context, exc)
                    except Exception:
                        logger.exception(f"Error hook for {context} failed")
                code = error_code or getattr(exc, "error_code", None)
                return ServiceResult.from_exception(exc, code)

        return wrapper

    return decorator
