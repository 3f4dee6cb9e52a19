#!/usr/bin/env python3
"""
Resource routing for brex:// URIs.

A URI is matched without its query string against an ordered table of
templates; the first match wins, so more specific templates come first
(brex://expenses/card before brex://expenses). The query string carries the
shaping hints (fields, summary_only) and pagination (cursor, limit).
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from brex_mcp.api.client import EXPENSE_DETAIL_EXPAND, unwrap_page
from brex_mcp.api.errors import DataShapeError
from brex_mcp.api.models import (
    ExpenseType,
    is_budget,
    is_card_account,
    is_expense,
    is_identified,
)
from brex_mcp.config.constants import (
    DEFAULT_LIST_LIMIT,
    JSON_MIME_TYPE,
    MAX_LIST_LIMIT,
    USAGE_RESOURCE_URI,
)
from brex_mcp.optimization.token_optimizer import LimiterConfig, PayloadLimiter
from brex_mcp.resources.template import ResourceTemplate
from brex_mcp.resources.usage import build_usage_doc
from brex_mcp.utils.helpers import parse_query_params, strip_query
from brex_mcp.utils.validation import ValidationError, validate_positive_int

logger = logging.getLogger(__name__)

# Advertised by resources/list
STATIC_RESOURCES = [
    ("brex://accounts", "Brex Accounts", "All Brex cash accounts"),
    ("brex://accounts/card", "Brex Card Accounts", "Card accounts"),
    ("brex://accounts/cash", "Brex Cash Accounts", "Cash accounts"),
    ("brex://expenses", "Brex Expenses", "Expenses (use ?summary_only=true or ?fields=...)"),
    ("brex://expenses/card", "Brex Card Expenses", "Card expenses with merchant and budget"),
    (
        "brex://transactions/card/primary",
        "Primary Card Transactions",
        "Settled transactions of the primary card account",
    ),
    ("brex://budgets", "Brex Budgets", "Budgets"),
    ("brex://spend_limits", "Brex Spend Limits", "Spend limits"),
    ("brex://budget_programs", "Brex Budget Programs", "Budget programs"),
    (USAGE_RESOURCE_URI, "Brex MCP Usage Guide", "How to call this server economically"),
]


@dataclass
class ResourceRequest:
    """Everything a route handler needs from the requested URI."""

    uri: str
    params: Dict[str, str]
    query: Dict[str, str]
    shaping: LimiterConfig
    cursor: Optional[str]
    limit: int
    kind: Optional[str] = None


@dataclass(frozen=True)
class Route:
    template: ResourceTemplate
    kind: Optional[str]
    handler: Callable[[ResourceRequest], Awaitable[Any]]


def read_resource_request(
    uri: str, params: Dict[str, str], kind: Optional[str] = None
) -> ResourceRequest:
    """
    Read pagination and shaping hints from the URI query string.

    Raises:
        ValidationError: If `limit` is not an integer in 1..MAX_LIST_LIMIT
    """
    query = parse_query_params(uri)
    limit = DEFAULT_LIST_LIMIT
    if query.get("limit"):
        limit = validate_positive_int(query["limit"], "limit", max_value=MAX_LIST_LIMIT)
    return ResourceRequest(
        uri=uri,
        params=params,
        query=query,
        shaping=LimiterConfig.from_query_params(query),
        cursor=query.get("cursor") or None,
        limit=limit,
        kind=kind,
    )


class ResourceRouter:
    """Maps brex:// URIs to Brex API reads, shaped by the payload limiter."""

    def __init__(self, client, limiter: Optional[PayloadLimiter] = None):
        self.client = client
        self.limiter = limiter or PayloadLimiter()
        self.routes: List[Route] = [
            self._route(USAGE_RESOURCE_URI, None, self._read_usage),
            self._route(
                "brex://accounts/card/primary/statements",
                "statement",
                self._read_card_statements,
            ),
            self._route("brex://accounts/card{/id}", "card_account", self._read_card_accounts),
            self._route(
                "brex://accounts/cash{/id}/statements",
                "statement",
                self._read_cash_statements,
            ),
            self._route("brex://accounts/cash{/id}", "account", self._read_cash_accounts),
            self._route("brex://accounts{/id}", "account", self._read_cash_accounts),
            self._route("brex://expenses/card{/id}", "expense", self._read_card_expenses),
            self._route("brex://expenses{/id}", "expense", self._read_expenses),
            self._route(
                "brex://transactions/card/primary",
                "transaction",
                self._read_card_transactions,
            ),
            self._route(
                "brex://transactions/cash{/id}", "transaction", self._read_cash_transactions
            ),
            self._route("brex://budgets{/id}", "budget", self._read_budgets),
            self._route("brex://spend_limits{/id}", "spend_limit", self._read_spend_limits),
            self._route(
                "brex://budget_programs{/id}", "budget_program", self._read_budget_programs
            ),
        ]

    @staticmethod
    def _route(pattern: str, kind: Optional[str], handler) -> Route:
        return Route(ResourceTemplate(pattern), kind, handler)

    @staticmethod
    def list_resources() -> List[Dict[str, str]]:
        return [
            {"uri": uri, "name": name, "description": description, "mimeType": JSON_MIME_TYPE}
            for uri, name, description in STATIC_RESOURCES
        ]

    def resolve(self, uri: str) -> Optional[Route]:
        path = strip_query(uri)
        for route in self.routes:
            if route.template.match(path):
                return route
        return None

    async def read(self, uri: str) -> Any:
        """
        Read a resource and return its JSON-serializable payload.

        Unknown URIs are not an error: they yield a guidance payload pointing
        at the supported resources.

        Raises:
            ValidationError: Bad query parameters or unsupported parameter use
            BrexAPIError: Upstream request failed
            DataShapeError: Upstream payload had an unexpected shape
        """
        route = self.resolve(uri)
        if route is None:
            logger.info(f"No resource route for {uri}")
            return {
                "error": "Unsupported resource URI",
                "uri": uri,
                "guidance": "Use tools or one of the supported resources: "
                + ", ".join(uri for uri, _, _ in STATIC_RESOURCES),
            }

        request = read_resource_request(
            uri, route.template.parse(strip_query(uri)), route.kind
        )
        logger.debug(f"Routing {uri} to {route.template.pattern} with {request.params}")
        return await route.handler(request)

    # ------------------------------------------------------------------
    # Shaping
    # ------------------------------------------------------------------

    def _list(self, items: List[Any], request: ResourceRequest, next_cursor):
        result = self.limiter.limit(items, request.kind, request.shaping)
        return result.to_envelope("items", next_cursor=next_cursor)

    def _one(self, item: Any, request: ResourceRequest):
        shaped, _ = self.limiter.limit_one(item, request.kind, request.shaping)
        return shaped

    def _page(self, data: Any, request: ResourceRequest, what: str, accept=None):
        items, next_cursor = unwrap_page(data, what)
        if accept is not None:
            items = [item for item in items if accept(item)]
        return self._list(items, request, next_cursor)

    @staticmethod
    def _require_id(request: ResourceRequest, what: str) -> str:
        if "id" not in request.params:
            raise ValidationError(f"{what} requires an ID in the URI")
        return request.params["id"]

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _read_usage(self, request: ResourceRequest):
        return build_usage_doc()

    async def _read_card_statements(self, request: ResourceRequest):
        data = await self.client.get_primary_card_statements(request.cursor, request.limit)
        return self._page(data, request, "card statements")

    async def _read_card_accounts(self, request: ResourceRequest):
        if "id" in request.params:
            raise ValidationError(
                "Card account lookup by ID is not supported; read brex://accounts/card"
            )
        data = await self.client.get_card_accounts()
        return self._page(data, request, "card accounts", accept=is_card_account)

    async def _read_cash_statements(self, request: ResourceRequest):
        account_id = self._require_id(request, "Cash account statements")
        data = await self.client.get_cash_account_statements(
            account_id, request.cursor, request.limit
        )
        return self._page(data, request, "cash statements")

    async def _read_cash_accounts(self, request: ResourceRequest):
        account_id = request.params.get("id")
        if account_id is None:
            data = await self.client.get_cash_accounts(request.cursor, request.limit)
            return self._page(data, request, "cash accounts")

        if account_id == "primary":
            account = await self.client.get_primary_cash_account()
        else:
            account = await self.client.get_cash_account(account_id)
        if not is_identified(account):
            raise DataShapeError(f"Invalid account data for {account_id}")
        return self._one(account, request)

    async def _read_card_expenses(self, request: ResourceRequest):
        expense_id = request.params.get("id")
        if expense_id is None:
            data = await self.client.get_card_expenses(
                {
                    "limit": request.limit,
                    "cursor": request.cursor,
                    "expand": ["merchant", "budget"],
                    "expense_type": [ExpenseType.CARD.value],
                }
            )
            return self._page(data, request, "card expenses", accept=is_expense)

        expense = await self.client.get_card_expense(
            expense_id, {"expand": EXPENSE_DETAIL_EXPAND, "load_custom_fields": True}
        )
        if not is_expense(expense):
            raise DataShapeError(f"Invalid card expense data for {expense_id}")
        return self._one(expense, request)

    async def _read_expenses(self, request: ResourceRequest):
        expense_id = request.params.get("id")
        if expense_id is None:
            data = await self.client.get_expenses(
                {
                    "limit": request.limit,
                    "cursor": request.cursor,
                    "expand": ["merchant", "budget"],
                }
            )
            return self._page(data, request, "expenses", accept=is_expense)

        expense = await self.client.get_expense(
            expense_id, {"expand": EXPENSE_DETAIL_EXPAND, "load_custom_fields": True}
        )
        if not is_expense(expense):
            raise DataShapeError(f"Invalid expense data for {expense_id}")
        return self._one(expense, request)

    async def _read_card_transactions(self, request: ResourceRequest):
        data = await self.client.get_card_transactions(
            {"cursor": request.cursor, "limit": request.limit}
        )
        return self._page(data, request, "card transactions")

    async def _read_cash_transactions(self, request: ResourceRequest):
        account_id = self._require_id(request, "Cash transactions")
        data = await self.client.get_cash_transactions(
            account_id, {"cursor": request.cursor, "limit": request.limit}
        )
        return self._page(data, request, "cash transactions")

    async def _read_budgets(self, request: ResourceRequest):
        budget_id = request.params.get("id")
        if budget_id is None:
            data = await self.client.get_budgets(
                {"cursor": request.cursor, "limit": request.limit}
            )
            return self._page(data, request, "budgets")

        budget = await self.client.get_budget(budget_id)
        if not is_budget(budget):
            raise DataShapeError(f"Invalid budget data for {budget_id}")
        return self._one(budget, request)

    async def _read_spend_limits(self, request: ResourceRequest):
        spend_limit_id = request.params.get("id")
        if spend_limit_id is None:
            data = await self.client.get_spend_limits(
                {"cursor": request.cursor, "limit": request.limit}
            )
            return self._page(data, request, "spend limits")

        spend_limit = await self.client.get_spend_limit(spend_limit_id)
        if not is_identified(spend_limit):
            raise DataShapeError(f"Invalid spend limit data for {spend_limit_id}")
        return self._one(spend_limit, request)

    async def _read_budget_programs(self, request: ResourceRequest):
        program_id = request.params.get("id")
        if program_id is None:
            data = await self.client.get_budget_programs(
                {"cursor": request.cursor, "limit": request.limit}
            )
            return self._page(data, request, "budget programs")

        program = await self.client.get_budget_program(program_id)
        if not is_identified(program):
            raise DataShapeError(f"Invalid budget program data for {program_id}")
        return self._one(program, request)
