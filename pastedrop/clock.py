"""
Time source for the read path.

Everything here works in epoch milliseconds. In normal operation "now" is the
wall clock; with TEST_MODE enabled a request may pin it via x-test-now-ms.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header

from pastedrop.config import settings

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def wall_clock_ms() -> int:
    """Current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def resolve_now_ms(x_test_now_ms: Optional[str] = None) -> int:
    """
    Get current time, respecting TEST_MODE for deterministic testing.

    Args:
        x_test_now_ms: Test timestamp header (milliseconds since epoch)

    Returns:
        Current time in epoch milliseconds
    """
    if settings.TEST_MODE and x_test_now_ms:
        try:
            return int(x_test_now_ms)
        except (ValueError, TypeError) as e:
            logger.warning(f"Invalid x-test-now-ms header: {e}")

    return wall_clock_ms()


async def current_time_ms(x_test_now_ms: Optional[str] = Header(None)) -> int:
    """FastAPI dependency wrapping resolve_now_ms around the request header."""
    return resolve_now_ms(x_test_now_ms)


def ms_to_iso(timestamp_ms: Optional[int]) -> Optional[str]:
    """Format epoch ms as ISO 8601 UTC, e.g. 2024-01-01T00:00:00.000Z."""
    if timestamp_ms is None:
        return None
    try:
        moment = EPOCH + timedelta(milliseconds=timestamp_ms)
    except OverflowError:
        # Rows written before the TTL cap can sit past datetime.max
        moment = datetime.max.replace(tzinfo=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
