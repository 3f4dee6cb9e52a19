#!/usr/bin/env python3
"""Budget, spend limit and budget program tools."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from brex_mcp.api.client import unwrap_page
from brex_mcp.api.errors import DataShapeError
from brex_mcp.api.models import (
    BudgetProgramStatus,
    SpendBudgetStatus,
    SpendLimitStatus,
    enum_values,
    is_budget,
    is_identified,
)
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
    shaped_item,
    shaped_list,
)
from brex_mcp.utils.validation import validate_choice, validate_string


@dataclass(frozen=True)
class ListRequest:
    """
    Cursor-paginated listing with optional upstream filters.

    `filters` maps Brex query parameter names to validated values.
    """

    cursor: Optional[str] = None
    limit: int = DEFAULT_LIST_LIMIT
    filters: Optional[Dict[str, Any]] = None
    shaping: LimiterConfig = LimiterConfig()

    def query(self) -> Dict[str, Any]:
        return dict(self.filters or {}, cursor=self.cursor, limit=self.limit)


def _list_request(cls, arguments, **filter_readers) -> ListRequest:
    arguments = check_arguments(arguments)
    return cls(
        cursor=read_cursor(arguments),
        limit=read_limit(arguments),
        filters={name: read(arguments, name) for name, read in filter_readers.items()},
        shaping=read_shaping(arguments),
    )


def _read_id(arguments, name):
    return optional(arguments, name, validate_string) or None


def _enum_reader(enum_cls):
    def read(arguments, name):
        return optional(arguments, name, validate_choice, enum_values(enum_cls))

    return read


class GetBudgetsRequest(ListRequest):
    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> ListRequest:
        return _list_request(
            cls,
            arguments,
            parent_budget_id=_read_id,
            spend_budget_status=_enum_reader(SpendBudgetStatus),
        )


class GetSpendLimitsRequest(ListRequest):
    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> ListRequest:
        return _list_request(
            cls,
            arguments,
            parent_budget_id=_read_id,
            status=_enum_reader(SpendLimitStatus),
            member_user_id=_read_id,
        )


class GetBudgetProgramsRequest(ListRequest):
    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> ListRequest:
        return _list_request(
            cls,
            arguments,
            budget_program_status=_enum_reader(BudgetProgramStatus),
        )


async def handle_get_budgets(client, limiter, request: ListRequest):
    items, next_cursor = unwrap_page(await client.get_budgets(request.query()), "budgets")
    return shaped_list(
        limiter, items, "budget", request.shaping, "budgets", next_cursor=next_cursor
    )


async def handle_get_spend_limits(client, limiter, request: ListRequest):
    items, next_cursor = unwrap_page(
        await client.get_spend_limits(request.query()), "spend limits"
    )
    return shaped_list(
        limiter,
        items,
        "spend_limit",
        request.shaping,
        "spend_limits",
        next_cursor=next_cursor,
    )


async def handle_get_budget_programs(client, limiter, request: ListRequest):
    items, next_cursor = unwrap_page(
        await client.get_budget_programs(request.query()), "budget programs"
    )
    return shaped_list(
        limiter,
        items,
        "budget_program",
        request.shaping,
        "budget_programs",
        next_cursor=next_cursor,
    )


# =============================================================================
# Single-object lookups
# =============================================================================


@dataclass(frozen=True)
class GetByIdRequest:
    """Lookup by ID; the argument name differs per tool."""

    id: str
    shaping: LimiterConfig = LimiterConfig()

    id_argument = "id"

    @classmethod
    def from_arguments(cls, arguments: Dict[str, Any]) -> "GetByIdRequest":
        arguments = check_arguments(arguments)
        return cls(
            id=required_string(arguments, cls.id_argument),
            shaping=read_shaping(arguments),
        )


class GetBudgetRequest(GetByIdRequest):
    id_argument = "budget_id"


async def handle_get_budget(client, limiter, request: GetByIdRequest):
    budget = await client.get_budget(request.id)
    if not is_budget(budget):
        raise DataShapeError(f"Invalid budget data for {request.id}")
    return shaped_item(limiter, budget, "budget", request.shaping, "budget")


async def handle_get_spend_limit(client, limiter, request: GetByIdRequest):
    spend_limit = await client.get_spend_limit(request.id)
    if not is_identified(spend_limit):
        raise DataShapeError(f"Invalid spend limit data for {request.id}")
    return shaped_item(
        limiter, spend_limit, "spend_limit", request.shaping, "spend_limit"
    )


async def handle_get_budget_program(client, limiter, request: GetByIdRequest):
    program = await client.get_budget_program(request.id)
    if not is_identified(program):
        raise DataShapeError(f"Invalid budget program data for {request.id}")
    return shaped_item(
        limiter, program, "budget_program", request.shaping, "budget_program"
    )


def _id_schema(name: str, description: str) -> Dict[str, Any]:
    return object_schema(
        {name: {"type": "string", "description": description}, **SHAPING_PROPERTIES},
        required=[name],
    )


_PARENT_BUDGET_PROPERTY = {
    "type": "string",
    "description": "Only return children of this budget",
}

BUDGET_TOOLS = [
    ToolSpec(
        name="get_budgets",
        description="List Brex budgets",
        input_schema=object_schema(
            {
                **CURSOR_PROPERTIES,
                "parent_budget_id": _PARENT_BUDGET_PROPERTY,
                "spend_budget_status": {
                    "type": "string",
                    "enum": enum_values(SpendBudgetStatus),
                    "description": "Budget status filter",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetBudgetsRequest,
        handler=handle_get_budgets,
    ),
    ToolSpec(
        name="get_budget",
        description="Get one Brex budget by ID",
        input_schema=_id_schema("budget_id", "ID of the budget"),
        request_cls=GetBudgetRequest,
        handler=handle_get_budget,
    ),
    ToolSpec(
        name="get_spend_limits",
        description="List Brex spend limits",
        input_schema=object_schema(
            {
                **CURSOR_PROPERTIES,
                "parent_budget_id": _PARENT_BUDGET_PROPERTY,
                "status": {
                    "type": "string",
                    "enum": enum_values(SpendLimitStatus),
                    "description": "Spend limit status filter",
                },
                "member_user_id": {
                    "type": "string",
                    "description": "Only return spend limits this user belongs to",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetSpendLimitsRequest,
        handler=handle_get_spend_limits,
    ),
    ToolSpec(
        name="get_spend_limit",
        description="Get one Brex spend limit by ID",
        input_schema=_id_schema("id", "ID of the spend limit"),
        request_cls=GetByIdRequest,
        handler=handle_get_spend_limit,
    ),
    ToolSpec(
        name="get_budget_programs",
        description="List Brex budget programs",
        input_schema=object_schema(
            {
                **CURSOR_PROPERTIES,
                "budget_program_status": {
                    "type": "string",
                    "enum": enum_values(BudgetProgramStatus),
                    "description": "Budget program status filter",
                },
                **SHAPING_PROPERTIES,
            }
        ),
        request_cls=GetBudgetProgramsRequest,
        handler=handle_get_budget_programs,
    ),
    ToolSpec(
        name="get_budget_program",
        description="Get one Brex budget program by ID",
        input_schema=_id_schema("id", "ID of the budget program"),
        request_cls=GetByIdRequest,
        handler=handle_get_budget_program,
    ),
]
