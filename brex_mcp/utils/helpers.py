#!/usr/bin/env python3
"""
Small helpers shared by the client, router and tools: URI query handling,
URL and query building, ISO dates and date windows, JSON text, error text.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from brex_mcp.config.constants import MAX_ERROR_BODY_LENGTH

logger = logging.getLogger(__name__)


def parse_query_params(uri: str) -> Dict[str, str]:
    """
    Extract the flat query-string parameters of a URI.

    Duplicate keys keep their last value. Never raises: a URI without a
    query string, or one that cannot be split, yields an empty dict.

    Args:
        uri: Full URI, e.g. "brex://expenses?summary_only=true&limit=5"

    Returns:
        Mapping of query key to raw (percent-decoded) string value

    Examples:
        >>> parse_query_params("brex://expenses?limit=5&fields=id,status")
        {'limit': '5', 'fields': 'id,status'}

        >>> parse_query_params("brex://expenses?limit=5&limit=10")
        {'limit': '10'}

        >>> parse_query_params("brex://expenses")
        {}
    """
    try:
        query = urlsplit(uri).query
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not split URI for query params: {e}")
        return {}

    return dict(parse_qsl(query, keep_blank_values=True))


def strip_query(uri: str) -> str:
    """
    Drop the query string and fragment from a URI.

    Examples:
        >>> strip_query("brex://expenses/card/exp_1?summary_only=true")
        'brex://expenses/card/exp_1'
    """
    return uri.split("#", 1)[0].split("?", 1)[0]


def build_api_url(base_url: str, path: str) -> str:
    """
    Join the API base URL and an endpoint path with exactly one slash.

    Examples:
        >>> build_api_url("https://platform.brexapis.com/", "/v1/expenses")
        'https://platform.brexapis.com/v1/expenses'
        >>> build_api_url("https://platform.brexapis.com", "v2/budgets/b_1")
        'https://platform.brexapis.com/v2/budgets/b_1'
    """
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def build_query_pairs(params: Optional[Dict[str, Any]]) -> List[Tuple[str, str]]:
    """
    Flatten request parameters into (key, value) pairs for aiohttp.

    None values are dropped, lists become repeated keys and booleans are
    lower-cased the way the Brex API expects them.

    Examples:
        >>> build_query_pairs({"limit": 5, "expand": ["merchant", "budget"], "cursor": None})
        [('limit', '5'), ('expand', 'merchant'), ('expand', 'budget')]

        >>> build_query_pairs({"load_custom_fields": True})
        [('load_custom_fields', 'true')]
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if item is None:
                continue
            if isinstance(item, bool):
                item = "true" if item else "false"
            pairs.append((key, str(item)))
    return pairs


def format_iso_datetime(value: datetime) -> str:
    """
    Format a datetime as the ISO-8601 UTC string the Brex API accepts.

    Examples:
        >>> format_iso_datetime(datetime(2025, 8, 1, tzinfo=timezone.utc))
        '2025-08-01T00:00:00.000Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def calculate_date_windows(
    start: datetime, end: datetime, window_days: int
) -> List[Tuple[datetime, datetime]]:
    """
    Split [start, end] into consecutive windows of at most window_days.

    The last window is clamped to end. An inverted range yields no windows.

    Args:
        start: Range start
        end: Range end
        window_days: Window length in days (positive)

    Returns:
        List of (window_start, window_end) tuples

    Examples:
        >>> windows = calculate_date_windows(
        ...     datetime(2025, 8, 1), datetime(2025, 8, 18), 7
        ... )
        >>> [(s.day, e.day) for s, e in windows]
        [(1, 8), (8, 15), (15, 18)]
    """
    windows = []
    step = timedelta(days=window_days)
    cursor = start
    while cursor <= end:
        window_end = min(cursor + step, end)
        windows.append((cursor, window_end))
        cursor = cursor + step
    return windows


def to_json_text(data: Any) -> str:
    """Pretty JSON text for MCP text contents."""
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def extract_error_message(
    exception: Exception, max_length: int = MAX_ERROR_BODY_LENGTH
) -> str:
    """
    Error text safe to echo to the caller: the exception message, or its
    class name when empty, cut to `max_length` with a trailing "...".

    Examples:
        >>> extract_error_message(ValueError("This is an error"), max_length=10)
        'This is...'
    """
    msg = str(exception) or type(exception).__name__
    if len(msg) > max_length:
        return msg[: max_length - 3] + "..."
    return msg
