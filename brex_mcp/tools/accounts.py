#!/usr/bin/env python3
"""Account tools: cash account listing and details."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from brex_mcp.api.client import unwrap_page
from brex_mcp.api.errors import BrexAPIError, DataShapeError
from brex_mcp.api.models import AccountStatus, enum_values, is_cash_account
from brex_mcp.config.constants import (
    DEFAULT_MAX_ITEMS,
    DEFAULT_PAGE_SIZE,
    MAX_LIST_LIMIT,
    RECENT_ACTIVITY_ITEMS,
)
from brex_mcp.optimization.token_optimizer import LimiterConfig
from brex_mcp.tools.base import (
    SHAPING_PROPERTIES,
    ToolSpec,
    check_arguments,
    collect_pages,
    object_schema,
    optional,
    read_limit,
    read_shaping,
    required_string,
    shaped_item,
    shaped_list,
)
from brex_mcp.utils.helpers import extract_error_message
from brex_mcp.utils.validation import validate_choice, validate_positive_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GetAllAccountsRequest:
    page_size: int = DEFAULT_PAGE_SIZE
    max_items: int = DEFAULT_MAX_ITEMS
    status: Optional[str] = None
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetAllAccountsRequest":
        arguments = check_arguments(arguments)
        status = arguments.get("status")
        if status is not None:
            status = validate_choice(
                str(status).upper(), "status", enum_values(AccountStatus)
            )
        max_items = optional(arguments, "max_items", validate_positive_int)
        return cls(
            page_size=read_limit(arguments, "page_size", DEFAULT_PAGE_SIZE),
            max_items=DEFAULT_MAX_ITEMS if max_items is None else max_items,
            status=status,
            shaping=read_shaping(arguments),
        )


async def handle_get_all_accounts(client, limiter, request: GetAllAccountsRequest):
    """Page through cash accounts, optionally keeping one status only."""

    def accept(account):
        if not is_cash_account(account):
            return False
        return request.status is None or account.get("status") == request.status

    accounts, next_cursor = await collect_pages(
        client.get_cash_accounts,
        request.page_size,
        request.max_items,
        "cash accounts",
        accept=accept,
    )
    logger.debug(f"Collected {len(accounts)} accounts")
    return shaped_list(
        limiter,
        accounts,
        "account",
        request.shaping,
        "accounts",
        next_cursor=next_cursor,
        total_count=len(accounts),
    )


@dataclass(frozen=True)
class GetAccountDetailsRequest:
    account_id: str
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetAccountDetailsRequest":
        arguments = check_arguments(arguments)
        return cls(
            account_id=required_string(arguments, "account_id"),
            shaping=read_shaping(arguments),
        )


async def handle_get_account_details(
    client, limiter, request: GetAccountDetailsRequest
):
    """
    Fetch one cash account with its most recent statements attached as
    `recent_activity`.

    A failure to load the statements does not fail the call; the error text
    is reported in meta.recent_activity_error instead.
    """
    account = await client.get_cash_account(request.account_id)
    if not is_cash_account(account):
        raise DataShapeError("Invalid account data received from Brex API")

    extra_meta = {}
    try:
        statements, _ = unwrap_page(
            await client.get_cash_account_statements(
                request.account_id, limit=RECENT_ACTIVITY_ITEMS
            ),
            "statements",
        )
        account = dict(account, recent_activity=statements[:RECENT_ACTIVITY_ITEMS])
    except (BrexAPIError, DataShapeError) as e:
        logger.warning(
            f"Could not load recent activity for account {request.account_id}: {e}"
        )
        extra_meta["recent_activity_error"] = extract_error_message(e)

    return shaped_item(
        limiter, account, "account", request.shaping, "account", **extra_meta
    )


ACCOUNT_TOOLS = [
    ToolSpec(
        name="get_all_accounts",
        description="List Brex cash accounts with pagination and an optional status filter",
        input_schema=object_schema(
            {
                "page_size": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": MAX_LIST_LIMIT,
                    "default": DEFAULT_PAGE_SIZE,
                    "description": "Accounts per page",
                },
                "max_items": {
                    "type": "integer",
                    "minimum": 1,
                    "default": DEFAULT_MAX_ITEMS,
                    "description": "Maximum number of accounts to return",
                },
                "status": {
                    "type": "string",
                    "enum": enum_values(AccountStatus),
                    "description": "Only return accounts with this status",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetAllAccountsRequest,
        handler=handle_get_all_accounts,
    ),
    ToolSpec(
        name="get_account_details",
        description="Get a Brex cash account with its most recent statements",
        input_schema=object_schema(
            {
                "account_id": {
                    "type": "string",
                    "description": "ID of the Brex cash account",
                },
                **SHAPING_PROPERTIES,
            },
            required=["account_id"],
        ),
        request_cls=GetAccountDetailsRequest,
        handler=handle_get_account_details,
    ),
]
