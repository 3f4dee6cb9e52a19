"""Utility functions for the Brex MCP server"""

from .helpers import (
    build_api_url,
    build_query_pairs,
    calculate_date_windows,
    extract_error_message,
    format_iso_datetime,
    parse_query_params,
    strip_query,
    to_json_text,
)
from .validation import ValidationError

__all__ = [
    "build_api_url",
    "build_query_pairs",
    "calculate_date_windows",
    "extract_error_message",
    "format_iso_datetime",
    "parse_query_params",
    "strip_query",
    "to_json_text",
    "ValidationError",
]
