#!/usr/bin/env python3
"""
Expense tools.

The get_all_* tools paginate for the caller. Large date ranges can be split
into windows of `window_days` (filtered on updated_at) so each upstream query
stays small; amount and merchant filters are applied client-side.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from brex_mcp.api.client import EXPENSE_DETAIL_EXPAND, unwrap_page
from brex_mcp.api.errors import DataShapeError
from brex_mcp.api.models import (
    ExpensePaymentStatus,
    ExpenseStatus,
    ExpenseType,
    enum_values,
    is_expense,
)
from brex_mcp.config.constants import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_MAX_ITEMS,
    DEFAULT_PAGE_SIZE,
    MAX_LIST_LIMIT,
)
from brex_mcp.optimization.token_optimizer import LimiterConfig
from brex_mcp.tools.base import (
    CURSOR_PROPERTIES,
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
from brex_mcp.utils.helpers import calculate_date_windows, format_iso_datetime
from brex_mcp.utils.validation import (
    ValidationError,
    validate_choice,
    validate_choice_list,
    validate_dict,
    validate_iso_datetime,
    validate_list,
    validate_non_negative_float,
    validate_positive_int,
    validate_string,
    validate_string_list,
)

logger = logging.getLogger(__name__)

EXPENSE_TYPES = enum_values(ExpenseType)
EXPENSE_STATUSES = enum_values(ExpenseStatus)
PAYMENT_STATUSES = enum_values(ExpensePaymentStatus)


# =============================================================================
# Filters
# =============================================================================


def _amount_of(expense: Dict[str, Any]) -> Optional[float]:
    purchased = expense.get("purchased_amount")
    amount = purchased.get("amount") if isinstance(purchased, dict) else None
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return None
    return amount


def amount_filter(min_amount: Optional[float], max_amount: Optional[float]):
    """
    Build a predicate on purchased_amount.amount.

    Expenses without a numeric amount are rejected whenever a bound is set.
    """

    def accept(expense: Dict[str, Any]) -> bool:
        if min_amount is None and max_amount is None:
            return True
        amount = _amount_of(expense)
        if amount is None:
            return False
        if min_amount is not None and amount < min_amount:
            return False
        if max_amount is not None and amount > max_amount:
            return False
        return True

    return accept


def merchant_filter(merchant_name: Optional[str]):
    """Case-insensitive substring match on merchant.raw_descriptor."""
    needle = merchant_name.lower() if merchant_name else None

    def accept(expense: Dict[str, Any]) -> bool:
        if needle is None:
            return True
        merchant = expense.get("merchant")
        descriptor = merchant.get("raw_descriptor") if isinstance(merchant, dict) else None
        return isinstance(descriptor, str) and needle in descriptor.lower()

    return accept


def _read_date_range(
    arguments: Dict[str, Any],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    start = optional(arguments, "start_date", validate_iso_datetime)
    end = optional(arguments, "end_date", validate_iso_datetime)
    if start is not None and end is not None and start > end:
        raise ValidationError("start_date cannot be after end_date")
    return start, end


def _read_amount_range(
    arguments: Dict[str, Any],
) -> Tuple[Optional[float], Optional[float]]:
    min_amount = optional(arguments, "min_amount", validate_non_negative_float)
    max_amount = optional(arguments, "max_amount", validate_non_negative_float)
    if min_amount is not None and max_amount is not None and min_amount > max_amount:
        raise ValidationError("min_amount cannot be greater than max_amount")
    return min_amount, max_amount


def _windows(
    start: Optional[datetime], end: Optional[datetime], window_days: Optional[int]
) -> List[Tuple[Optional[datetime], Optional[datetime]]]:
    if window_days and start is not None and end is not None:
        return calculate_date_windows(start, end, window_days)
    return [(start, end)]


def _iso_or_none(value: Optional[datetime]) -> Optional[str]:
    return format_iso_datetime(value) if value is not None else None


# =============================================================================
# get_expenses
# =============================================================================


@dataclass(frozen=True)
class GetExpensesRequest:
    expense_type: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetExpensesRequest":
        arguments = check_arguments(arguments)
        return cls(
            expense_type=optional(arguments, "expense_type", validate_choice, EXPENSE_TYPES),
            status=optional(arguments, "status", validate_choice, EXPENSE_STATUSES),
            payment_status=optional(
                arguments, "payment_status", validate_choice, PAYMENT_STATUSES
            ),
            limit=read_limit(arguments),
            shaping=read_shaping(arguments),
        )


async def handle_get_expenses(client, limiter, request: GetExpensesRequest):
    """Single page of expenses."""
    params = {
        "limit": request.limit,
        "expense_type": [request.expense_type] if request.expense_type else None,
        "status": [request.status] if request.status else None,
        "payment_status": [request.payment_status] if request.payment_status else None,
    }
    items, next_cursor = unwrap_page(await client.get_expenses(params), "expenses")
    expenses = [item for item in items if is_expense(item)]
    return shaped_list(
        limiter,
        expenses,
        "expense",
        request.shaping,
        "expenses",
        next_cursor=next_cursor,
    )


# =============================================================================
# get_all_expenses / get_all_card_expenses
# =============================================================================


@dataclass(frozen=True)
class GetAllExpensesRequest:
    page_size: int = DEFAULT_PAGE_SIZE
    max_items: int = DEFAULT_MAX_ITEMS
    expense_type: Tuple[str, ...] = ()
    status: Tuple[str, ...] = ()
    payment_status: Tuple[str, ...] = ()
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    window_days: Optional[int] = None
    expand: Tuple[str, ...] = ()
    merchant_name: Optional[str] = None
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetAllExpensesRequest":
        arguments = check_arguments(arguments)
        start, end = _read_date_range(arguments)
        min_amount, max_amount = _read_amount_range(arguments)
        max_items = optional(arguments, "max_items", validate_positive_int)
        return cls(
            page_size=read_limit(arguments, "page_size", DEFAULT_PAGE_SIZE),
            max_items=DEFAULT_MAX_ITEMS if max_items is None else max_items,
            expense_type=tuple(
                optional(arguments, "expense_type", validate_choice_list, EXPENSE_TYPES)
                or ()
            ),
            status=tuple(
                optional(arguments, "status", validate_choice_list, EXPENSE_STATUSES)
                or ()
            ),
            payment_status=tuple(
                optional(
                    arguments, "payment_status", validate_choice_list, PAYMENT_STATUSES
                )
                or ()
            ),
            start_date=start,
            end_date=end,
            min_amount=min_amount,
            max_amount=max_amount,
            window_days=optional(arguments, "window_days", validate_positive_int),
            expand=tuple(optional(arguments, "expand", validate_string_list) or ()),
            merchant_name=optional(
                arguments, "merchant_name", validate_string, allow_empty=False
            ),
            shaping=read_shaping(arguments),
        )

    def requested_parameters(self) -> Dict[str, Any]:
        """Echo of the effective filters, for result metadata."""
        echo = {
            "page_size": self.page_size,
            "max_items": self.max_items,
            "expense_type": list(self.expense_type) or None,
            "status": list(self.status) or None,
            "payment_status": list(self.payment_status) or None,
            "start_date": _iso_or_none(self.start_date),
            "end_date": _iso_or_none(self.end_date),
            "min_amount": self.min_amount,
            "max_amount": self.max_amount,
            "window_days": self.window_days,
            "merchant_name": self.merchant_name,
        }
        return {key: value for key, value in echo.items() if value is not None}


async def fetch_expenses_windowed(
    fetch,
    request: GetAllExpensesRequest,
    base_params: Dict[str, Any],
    what: str,
) -> List[Dict[str, Any]]:
    """
    Collect up to request.max_items expenses across date windows.

    Args:
        fetch: Client coroutine taking a params dict (get_expenses or
            get_card_expenses)
        request: Validated request
        base_params: Query params sent with every page
        what: Entity name for logs and errors
    """
    by_amount = amount_filter(request.min_amount, request.max_amount)
    by_merchant = merchant_filter(request.merchant_name)

    def accept(expense):
        return is_expense(expense) and by_amount(expense) and by_merchant(expense)

    collected: List[Dict[str, Any]] = []
    windows = _windows(request.start_date, request.end_date, request.window_days)
    for window_start, window_end in windows:
        remaining = request.max_items - len(collected)
        if remaining <= 0:
            break

        window_params = dict(
            base_params,
            updated_at_start=_iso_or_none(window_start),
            updated_at_end=_iso_or_none(window_end),
        )
        logger.debug(
            f"Fetching {what} for window "
            f"{window_params['updated_at_start'] or 'none'}..{window_params['updated_at_end'] or 'none'}"
        )

        async def fetch_page(cursor, limit, params=window_params):
            return await fetch(dict(params, cursor=cursor, limit=limit))

        items, _ = await collect_pages(
            fetch_page, request.page_size, remaining, what, accept=accept
        )
        collected.extend(items)

    logger.debug(f"Collected {len(collected)} {what} across {len(windows)} window(s)")
    return collected


async def handle_get_all_expenses(client, limiter, request: GetAllExpensesRequest):
    base_params = {
        "expense_type": list(request.expense_type) or None,
        "status": list(request.status) or None,
        "payment_status": list(request.payment_status) or None,
        "expand": list(request.expand) or None,
    }
    expenses = await fetch_expenses_windowed(
        client.get_expenses, request, base_params, "expenses"
    )
    return shaped_list(
        limiter,
        expenses,
        "expense",
        request.shaping,
        "expenses",
        total_count=len(expenses),
        requested_parameters=request.requested_parameters(),
    )


async def handle_get_all_card_expenses(
    client, limiter, request: GetAllExpensesRequest
):
    base_params = {
        "expense_type": [ExpenseType.CARD.value],
        "status": list(request.status) or None,
        "payment_status": list(request.payment_status) or None,
        "expand": ["merchant", "budget"],
    }
    expenses = await fetch_expenses_windowed(
        client.get_card_expenses, request, base_params, "card expenses"
    )
    return shaped_list(
        limiter,
        expenses,
        "expense",
        request.shaping,
        "card_expenses",
        total_count=len(expenses),
        requested_parameters=request.requested_parameters(),
    )


# =============================================================================
# get_expense / get_card_expense
# =============================================================================


@dataclass(frozen=True)
class GetExpenseRequest:
    expense_id: str
    expand: Tuple[str, ...] = tuple(EXPENSE_DETAIL_EXPAND)
    load_custom_fields: bool = True
    shaping: LimiterConfig = LimiterConfig()

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetExpenseRequest":
        arguments = check_arguments(arguments)
        expand = optional(arguments, "expand", validate_string_list)
        return cls(
            expense_id=required_string(arguments, "expense_id"),
            expand=tuple(expand) if expand is not None else tuple(EXPENSE_DETAIL_EXPAND),
            shaping=read_shaping(arguments),
        )

    def query(self) -> Dict[str, Any]:
        return {
            "expand": list(self.expand) or None,
            "load_custom_fields": self.load_custom_fields,
        }


async def handle_get_expense(client, limiter, request: GetExpenseRequest):
    expense = await client.get_expense(request.expense_id, request.query())
    if not is_expense(expense):
        raise DataShapeError(f"Invalid expense data for {request.expense_id}")
    return shaped_item(limiter, expense, "expense", request.shaping, "expense")


async def handle_get_card_expense(client, limiter, request: GetExpenseRequest):
    expense = await client.get_card_expense(request.expense_id, request.query())
    if not is_expense(expense):
        raise DataShapeError(f"Invalid card expense data for {request.expense_id}")
    return shaped_item(limiter, expense, "expense", request.shaping, "card_expense")


# =============================================================================
# update_expense
# =============================================================================

UPDATE_FIELDS = ["memo", "category", "budget_id", "department_id", "location_id"]


@dataclass(frozen=True)
class UpdateExpenseRequest:
    expense_id: str
    changes: Dict[str, Any]

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "UpdateExpenseRequest":
        arguments = check_arguments(arguments)
        expense_id = required_string(arguments, "expense_id")

        changes: Dict[str, Any] = {}
        for name in UPDATE_FIELDS:
            value = optional(arguments, name, validate_string)
            if value:
                changes[name] = value

        custom_fields = optional(arguments, "custom_fields", validate_list, min_length=1)
        if custom_fields:
            changes["custom_fields"] = [
                validate_dict(entry, f"custom_fields[{i}]", required_keys=["key", "value"])
                for i, entry in enumerate(custom_fields)
            ]

        if not changes:
            raise ValidationError(
                "At least one update field is required "
                f"({', '.join(UPDATE_FIELDS)}, or custom_fields)"
            )
        return cls(expense_id=expense_id, changes=changes)


async def handle_update_expense(client, limiter, request: UpdateExpenseRequest):
    updated = await client.update_card_expense(request.expense_id, request.changes)
    if not isinstance(updated, dict) or not updated.get("id"):
        raise DataShapeError("Invalid response from expense update request")

    logger.info(f"Updated expense {updated['id']}: {', '.join(request.changes)}")
    return {
        "status": "success",
        "expense_id": updated["id"],
        "updated_at": updated.get("updated_at"),
        "expense_status": updated.get("status"),
        "updated_fields": list(request.changes),
        "message": f"Expense {updated['id']} was updated successfully.",
    }


# =============================================================================
# Tool definitions
# =============================================================================

_DATE_WINDOW_PROPERTIES = {
    "start_date": {
        "type": "string",
        "description": "ISO-8601 lower bound for updated_at",
    },
    "end_date": {
        "type": "string",
        "description": "ISO-8601 upper bound for updated_at",
    },
    "window_days": {
        "type": "integer",
        "minimum": 1,
        "description": "Split the date range into windows of this many days (e.g. 7)",
    },
    "min_amount": {
        "type": "number",
        "minimum": 0,
        "description": "Client-side minimum purchased_amount.amount",
    },
    "max_amount": {
        "type": "number",
        "minimum": 0,
        "description": "Client-side maximum purchased_amount.amount",
    },
}

_PAGINATION_PROPERTIES = {
    "page_size": {
        "type": "integer",
        "minimum": 1,
        "maximum": MAX_LIST_LIMIT,
        "default": DEFAULT_PAGE_SIZE,
        "description": "Items per upstream page (<= 50 recommended)",
    },
    "max_items": {
        "type": "integer",
        "minimum": 1,
        "default": DEFAULT_MAX_ITEMS,
        "description": "Cap on total items across pages",
    },
}


def _enum_array(values: List[str], description: str) -> Dict[str, Any]:
    return {
        "type": "array",
        "items": {"type": "string", "enum": values},
        "description": description,
    }


_EXPENSE_ID_SCHEMA = object_schema(
    {
        "expense_id": {"type": "string", "description": "ID of the expense"},
        "expand": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Related objects to expand (default: merchant, budget, location, department, receipts.download_uris)",
        },
        **SHAPING_PROPERTIES,
    },
    required=["expense_id"],
)

EXPENSE_TOOLS = [
    ToolSpec(
        name="get_expenses",
        description="Get a single page of Brex expenses (small samples)",
        input_schema=object_schema(
            {
                "expense_type": {
                    "type": "string",
                    "enum": EXPENSE_TYPES,
                    "description": "Type of expenses to retrieve",
                },
                "status": {
                    "type": "string",
                    "enum": EXPENSE_STATUSES,
                    "description": "Status filter for expenses",
                },
                "payment_status": {
                    "type": "string",
                    "enum": PAYMENT_STATUSES,
                    "description": "Payment status filter for expenses",
                },
                "limit": CURSOR_PROPERTIES["limit"],
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetExpensesRequest,
        handler=handle_get_expenses,
    ),
    ToolSpec(
        name="get_all_expenses",
        description="Paginated list of all expenses with filters and optional date windows",
        input_schema=object_schema(
            {
                **_PAGINATION_PROPERTIES,
                "expense_type": _enum_array(EXPENSE_TYPES, "Expense types to include"),
                "status": _enum_array(EXPENSE_STATUSES, "Statuses to include"),
                "payment_status": _enum_array(
                    PAYMENT_STATUSES, "Payment statuses to include"
                ),
                **_DATE_WINDOW_PROPERTIES,
                "expand": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Related objects to expand (e.g. merchant, budget)",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetAllExpensesRequest,
        handler=handle_get_all_expenses,
    ),
    ToolSpec(
        name="get_all_card_expenses",
        description="Paginated list of card expenses with merchant and amount filters",
        input_schema=object_schema(
            {
                **_PAGINATION_PROPERTIES,
                "status": _enum_array(EXPENSE_STATUSES, "Statuses to include"),
                "payment_status": _enum_array(
                    PAYMENT_STATUSES, "Payment statuses to include"
                ),
                **_DATE_WINDOW_PROPERTIES,
                "merchant_name": {
                    "type": "string",
                    "description": "Case-insensitive substring of the merchant descriptor",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetAllExpensesRequest,
        handler=handle_get_all_card_expenses,
    ),
    ToolSpec(
        name="get_expense",
        description="Get one expense by ID with merchant, budget and receipts expanded",
        input_schema=_EXPENSE_ID_SCHEMA,
        request_cls=GetExpenseRequest,
        handler=handle_get_expense,
    ),
    ToolSpec(
        name="get_card_expense",
        description="Get one card expense by ID with merchant, budget and receipts expanded",
        input_schema=_EXPENSE_ID_SCHEMA,
        request_cls=GetExpenseRequest,
        handler=handle_get_card_expense,
    ),
    ToolSpec(
        name="update_expense",
        description="Update metadata of a card expense (memo, category, budget, custom fields)",
        input_schema=object_schema(
            {
                "expense_id": {"type": "string", "description": "ID of the card expense"},
                "memo": {"type": "string", "description": "New memo"},
                "category": {"type": "string", "description": "New category"},
                "budget_id": {"type": "string", "description": "Budget to assign"},
                "department_id": {"type": "string", "description": "Department to assign"},
                "location_id": {"type": "string", "description": "Location to assign"},
                "custom_fields": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {"key": {"type": "string"}, "value": {}},
                        "required": ["key", "value"],
                    },
                    "description": "Custom field values to set",
                },
            },
            required=["expense_id"],
        ),
        request_cls=UpdateExpenseRequest,
        handler=handle_update_expense,
    ),
]
