#!/usr/bin/env python3
"""
Shared building blocks for MCP tools.

A tool is an input JSON schema, a request dataclass whose `from_arguments`
validates raw arguments, and an async handler taking
`(client, limiter, request)` that returns a JSON-serializable dict.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from brex_mcp.api.client import unwrap_page
from brex_mcp.config.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from brex_mcp.optimization.token_optimizer import LimiterConfig, PayloadLimiter
from brex_mcp.utils.validation import (
    ValidationError,
    validate_positive_int,
    validate_required_args,
    validate_string,
)

logger = logging.getLogger(__name__)

Handler = Callable[..., Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class ToolSpec:
    """Everything the server needs to list and dispatch one tool."""

    name: str
    description: str
    input_schema: Dict[str, Any]
    request_cls: type
    handler: Handler

    def definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


# =============================================================================
# Schema fragments
# =============================================================================

SHAPING_PROPERTIES = {
    "summary_only": {
        "type": "boolean",
        "default": False,
        "description": "Project results to compact summary fields to reduce payload size",
    },
    "fields": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Dot-notation fields to include (e.g. purchased_amount.amount)",
    },
}

CURSOR_PROPERTIES = {
    "cursor": {
        "type": "string",
        "description": "Pagination cursor returned as meta.next_cursor by a previous call",
    },
    "limit": {
        "type": "integer",
        "minimum": 1,
        "maximum": MAX_LIST_LIMIT,
        "default": DEFAULT_LIST_LIMIT,
        "description": f"Items per page (1-{MAX_LIST_LIMIT})",
    },
}


def object_schema(properties: Dict[str, Any], required: Optional[List[str]] = None):
    schema = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    return schema


# =============================================================================
# Argument helpers
# =============================================================================


def optional(arguments: Dict[str, Any], name: str, validator, *args, **kwargs):
    """Run validator on arguments[name] if present, else return None."""
    value = arguments.get(name)
    if value is None:
        return None
    return validator(value, name, *args, **kwargs)


def required_string(arguments: Dict[str, Any], name: str) -> str:
    validate_required_args(arguments, [name])
    return validate_string(arguments[name], name, allow_empty=False)


def read_limit(
    arguments: Dict[str, Any], name: str = "limit", default: int = DEFAULT_LIST_LIMIT
) -> int:
    value = optional(arguments, name, validate_positive_int, max_value=MAX_LIST_LIMIT)
    return default if value is None else value


def read_cursor(arguments: Dict[str, Any]) -> Optional[str]:
    return optional(arguments, "cursor", validate_string) or None


def read_shaping(arguments: Dict[str, Any]) -> LimiterConfig:
    return LimiterConfig.from_arguments(arguments)


def check_arguments(arguments: Any) -> Dict[str, Any]:
    if arguments is None:
        return {}
    if not isinstance(arguments, dict):
        raise ValidationError("Tool arguments must be an object")
    return arguments


# =============================================================================
# Result helpers
# =============================================================================


def shaped_list(
    limiter: PayloadLimiter,
    items: List[Any],
    kind: str,
    config: LimiterConfig,
    key: str,
    next_cursor: Optional[str] = None,
    **extra_meta: Any,
) -> Dict[str, Any]:
    """Run items through the limiter and wrap them in a result envelope."""
    result = limiter.limit(items, kind, config)
    return result.to_envelope(key, next_cursor=next_cursor, **extra_meta)


def shaped_item(
    limiter: PayloadLimiter,
    item: Any,
    kind: str,
    config: LimiterConfig,
    key: str,
    **extra_meta: Any,
) -> Dict[str, Any]:
    """Run a single object through the limiter: {key: obj, meta: {...}}."""
    shaped, result = limiter.limit_one(item, kind, config)
    meta = {"summary_applied": result.summary_applied}
    meta.update(extra_meta)
    return {key: shaped, "meta": meta}


async def collect_pages(
    fetch_page: Callable[[Optional[str], int], Awaitable[Any]],
    page_size: int,
    max_items: int,
    what: str,
    accept: Optional[Callable[[Any], bool]] = None,
) -> Tuple[List[Any], Optional[str]]:
    """
    Follow next_cursor until max_items accepted items are collected.

    Args:
        fetch_page: Coroutine function (cursor, limit) -> raw list response
        page_size: Items requested per page
        max_items: Cap on the number of collected items
        what: Name of the listed entity, for error messages
        accept: Optional filter applied to each page

    Returns:
        (collected_items, cursor_of_next_unread_page)
    """
    collected: List[Any] = []
    cursor: Optional[str] = None
    pages = 0

    while len(collected) < max_items:
        limit = min(page_size, max_items - len(collected))
        items, cursor = unwrap_page(await fetch_page(cursor, limit), what)
        pages += 1
        if accept is not None:
            items = [item for item in items if accept(item)]
        collected.extend(items)
        logger.debug(
            f"Fetched {what} page {pages}: {len(items)} kept (total: {len(collected)})"
        )
        if not cursor:
            break

    return collected[:max_items], cursor
