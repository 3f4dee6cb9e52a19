#!/usr/bin/env python3
"""Transaction and statement tools."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from brex_mcp.api.client import unwrap_page
from brex_mcp.config.constants import DEFAULT_LIST_LIMIT
from brex_mcp.optimization.token_optimizer import LimiterConfig
from brex_mcp.tools.base import (
    CURSOR_PROPERTIES,
    SHAPING_PROPERTIES,
    ToolSpec,
    check_arguments,
    object_schema,
    optional,
    read_cursor,
    read_limit,
    read_shaping,
    required_string,
    shaped_list,
)
from brex_mcp.utils.helpers import format_iso_datetime
from brex_mcp.utils.validation import validate_iso_datetime, validate_string_list

logger = logging.getLogger(__name__)

_EXPAND_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Related objects to expand (e.g. expense_id)",
}

_POSTED_AT_START_PROPERTY = {
    "type": "string",
    "description": "ISO-8601 lower bound for posted_at",
}


def _read_posted_at_start(arguments: Dict[str, Any]) -> Optional[str]:
    posted = optional(arguments, "posted_at_start", validate_iso_datetime)
    return format_iso_datetime(posted) if posted is not None else None


def _read_string_tuple(arguments: Dict[str, Any], name: str) -> Tuple[str, ...]:
    return tuple(optional(arguments, name, validate_string_list) or ())


# =============================================================================
# get_transactions
# =============================================================================


@dataclass(frozen=True)
class GetTransactionsRequest:
    account_id: str
    limit: int = DEFAULT_LIST_LIMIT
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetTransactionsRequest":
        arguments = check_arguments(arguments)
        return cls(
            account_id=required_string(arguments, "account_id"),
            limit=read_limit(arguments),
            shaping=read_shaping(arguments),
        )


async def handle_get_transactions(client, limiter, request: GetTransactionsRequest):
    """Account activity for a cash account, read from its statements."""
    data = await client.get_cash_account_statements(
        request.account_id, limit=request.limit
    )
    items, next_cursor = unwrap_page(data, "statements")
    return shaped_list(
        limiter,
        items,
        "statement",
        request.shaping,
        "transactions",
        next_cursor=next_cursor,
        account_id=request.account_id,
    )


# =============================================================================
# get_card_transactions / get_cash_transactions
# =============================================================================


@dataclass(frozen=True)
class GetCardTransactionsRequest:
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    user_ids: Tuple[str, ...] = ()
    posted_at_start: Optional[str] = None
    expand: Tuple[str, ...] = ()
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetCardTransactionsRequest":
        arguments = check_arguments(arguments)
        return cls(
            cursor=read_cursor(arguments),
            limit=read_limit(arguments),
            user_ids=_read_string_tuple(arguments, "user_ids"),
            posted_at_start=_read_posted_at_start(arguments),
            expand=_read_string_tuple(arguments, "expand"),
            shaping=read_shaping(arguments),
        )


async def handle_get_card_transactions(
    client, limiter, request: GetCardTransactionsRequest
):
    data = await client.get_card_transactions(
        {
            "cursor": request.cursor,
            "limit": request.limit,
            "user_ids": list(request.user_ids) or None,
            "posted_at_start": request.posted_at_start,
            "expand": list(request.expand) or None,
        }
    )
    items, next_cursor = unwrap_page(data, "card transactions")
    return shaped_list(
        limiter,
        items,
        "transaction",
        request.shaping,
        "transactions",
        next_cursor=next_cursor,
    )


@dataclass(frozen=True)
class GetCashTransactionsRequest:
    account_id: str
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    posted_at_start: Optional[str] = None
    expand: Tuple[str, ...] = ()
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetCashTransactionsRequest":
        arguments = check_arguments(arguments)
        return cls(
            account_id=required_string(arguments, "account_id"),
            cursor=read_cursor(arguments),
            limit=read_limit(arguments),
            posted_at_start=_read_posted_at_start(arguments),
            expand=_read_string_tuple(arguments, "expand"),
            shaping=read_shaping(arguments),
        )


async def handle_get_cash_transactions(
    client, limiter, request: GetCashTransactionsRequest
):
    data = await client.get_cash_transactions(
        request.account_id,
        {
            "cursor": request.cursor,
            "limit": request.limit,
            "posted_at_start": request.posted_at_start,
            "expand": list(request.expand) or None,
        },
    )
    items, next_cursor = unwrap_page(data, "cash transactions")
    return shaped_list(
        limiter,
        items,
        "transaction",
        request.shaping,
        "transactions",
        next_cursor=next_cursor,
        account_id=request.account_id,
    )


# =============================================================================
# Statements
# =============================================================================


@dataclass(frozen=True)
class GetCardStatementsRequest:
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetCardStatementsRequest":
        arguments = check_arguments(arguments)
        return cls(
            cursor=read_cursor(arguments),
            limit=read_limit(arguments),
            shaping=read_shaping(arguments),
        )


async def handle_get_card_statements_primary(
    client, limiter, request: GetCardStatementsRequest
):
    data = await client.get_primary_card_statements(request.cursor, request.limit)
    items, next_cursor = unwrap_page(data, "card statements")
    return shaped_list(
        limiter,
        items,
        "statement",
        request.shaping,
        "statements",
        next_cursor=next_cursor,
    )


@dataclass(frozen=True)
class GetCashAccountStatementsRequest:
    account_id: str
    cursor: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(
        cls, arguments: Dict[str, Any]
    ) -> "GetCashAccountStatementsRequest":
        arguments = check_arguments(arguments)
        return cls(
            account_id=required_string(arguments, "account_id"),
            cursor=read_cursor(arguments),
            limit=read_limit(arguments),
            shaping=read_shaping(arguments),
        )


async def handle_get_cash_account_statements(
    client, limiter, request: GetCashAccountStatementsRequest
):
    data = await client.get_cash_account_statements(
        request.account_id, request.cursor, request.limit
    )
    items, next_cursor = unwrap_page(data, "cash statements")
    return shaped_list(
        limiter,
        items,
        "statement",
        request.shaping,
        "statements",
        next_cursor=next_cursor,
        account_id=request.account_id,
    )


_ACCOUNT_ID_PROPERTY = {"type": "string", "description": "ID of the Brex cash account"}

TRANSACTION_TOOLS = [
    ToolSpec(
        name="get_transactions",
        description="Get account activity for a Brex cash account (statement based)",
        input_schema=object_schema(
            {
                "account_id": _ACCOUNT_ID_PROPERTY,
                "limit": CURSOR_PROPERTIES["limit"],
                **SHAPING_PROPERTIES,
            },
            required=["account_id"],
        ),
        request_cls=GetTransactionsRequest,
        handler=handle_get_transactions,
    ),
    ToolSpec(
        name="get_card_transactions",
        description="List settled transactions for all cards of the primary card account",
        input_schema=object_schema(
            {
                **CURSOR_PROPERTIES,
                "user_ids": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Only return transactions of these users",
                },
                "posted_at_start": _POSTED_AT_START_PROPERTY,
                "expand": _EXPAND_PROPERTY,
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetCardTransactionsRequest,
        handler=handle_get_card_transactions,
    ),
    ToolSpec(
        name="get_cash_transactions",
        description="List transactions of a Brex cash account (requires cash scopes)",
        input_schema=object_schema(
            {
                "account_id": _ACCOUNT_ID_PROPERTY,
                **CURSOR_PROPERTIES,
                "posted_at_start": _POSTED_AT_START_PROPERTY,
                "expand": _EXPAND_PROPERTY,
                **SHAPING_PROPERTIES,
            },
            required=["account_id"],
        ),
        request_cls=GetCashTransactionsRequest,
        handler=handle_get_cash_transactions,
    ),
    ToolSpec(
        name="get_card_statements_primary",
        description="List finalized statements of the primary card account",
        input_schema=object_schema({**CURSOR_PROPERTIES, **SHAPING_PROPERTIES}),
        request_cls=GetCardStatementsRequest,
        handler=handle_get_card_statements_primary,
    ),
    ToolSpec(
        name="get_cash_account_statements",
        description="List finalized statements of a Brex cash account",
        input_schema=object_schema(
            {
                "account_id": _ACCOUNT_ID_PROPERTY,
                **CURSOR_PROPERTIES,
                **SHAPING_PROPERTIES,
            },
            required=["account_id"],
        ),
        request_cls=GetCashAccountStatementsRequest,
        handler=handle_get_cash_account_statements,
    ),
]
