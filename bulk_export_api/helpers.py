"""Helper functions for the bulk_export_api package.

This module contains small pure utilities used across the package: date
expansion for export filters, Retry-After parsing, payload scrubbing and URL
joining.
"""
from datetime import date, datetime, time
from typing import Any, Mapping, Optional, Tuple

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def day_bounds(start: date, end: date) -> Tuple[str, str]:
    """Expand an inclusive calendar-date range into wire timestamps.

    Args:
        start: First day of the range
        end: Last day of the range

    Returns:
        Tuple of (start at 00:00:00, end at 23:59:59) formatted as
        ``YYYY-MM-DD HH:MM:SS``

    Example:
        >>> day_bounds(date(2024, 1, 1), date(2024, 1, 31))
        ('2024-01-01 00:00:00', '2024-01-31 23:59:59')
    """
    start_ts = datetime.combine(start, time(0, 0, 0))
    end_ts = datetime.combine(end, time(23, 59, 59))
    return start_ts.strftime(TIMESTAMP_FORMAT), end_ts.strftime(TIMESTAMP_FORMAT)


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a Retry-After header holding integer seconds.

    HTTP-date values, negatives and garbage return None so that the caller
    falls back to its own backoff.

    Example:
        >>> parse_retry_after("7")
        7
        >>> parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") is None
        True
    """
    if value is None:
        return None
    value = value.strip()
    if not value.isdigit():
        return None
    return int(value)


def scrub_nul(payload: Any) -> Any:
    """Return a copy of payload with NUL characters removed from every string.

    The remote service rejects request bodies containing embedded NULs.
    """
    if isinstance(payload, str):
        return payload.replace("\x00", "")
    if isinstance(payload, Mapping):
        return {scrub_nul(k): scrub_nul(v) for k, v in payload.items()}
    if isinstance(payload, (list, tuple)):
        return [scrub_nul(v) for v in payload]
    return payload


def join_url(base_url: str, path: str) -> str:
    """Join a base URL and an endpoint path with exactly one slash between them."""
    return base_url.rstrip("/") + "/" + path.lstrip("/")
