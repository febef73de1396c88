"""
Display identifier generation.

Identifiers are derived from the wall clock so no state is shared between
concurrent handlers. Two calls in the same millisecond return the same
value; the later display then replaces the earlier one on the device.
"""

from __future__ import annotations

import time

from notifications.constants import MAX_NOTIFICATION_ID


def next_notification_id(now_ms: int | None = None) -> int:
    """
    Return ``epoch milliseconds mod 2147483647``.

    Args:
        now_ms: Override for the current time in milliseconds (tests)

    Returns:
        Non-negative integer that fits a 32-bit signed display identifier
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return now_ms % MAX_NOTIFICATION_ID
