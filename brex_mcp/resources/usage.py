"""
Usage guide served at brex://docs/usage.

The document teaches the model host how to call this server economically:
small pages, date windows and summary projections.
"""

from typing import Any, Dict

from brex_mcp.config.constants import HARD_TOKEN_LIMIT, USAGE_RESOURCE_URI

_SUMMARY_EXPENSE_FIELDS = [
    "id",
    "updated_at",
    "status",
    "purchased_amount.amount",
    "purchased_amount.currency",
    "merchant.raw_descriptor",
]


def build_usage_doc() -> Dict[str, Any]:
    return {
        "title": "Brex MCP Usage Guide",
        "uri": USAGE_RESOURCE_URI,
        "key_principles": [
            "Always pass parameters under arguments, not input",
            "Default to summary_only: true and provide a tight fields list",
            "Use date ranges and small windows (window_days) for large datasets",
            "Keep page_size <= 50 and max_items <= 500 for paginated tools",
            "Prefer get_all_* for pagination; use get_expense / get_card_expense for single items",
            "Cash endpoints require cash scopes; card endpoints generally work by default",
            f"Responses above ~{HARD_TOKEN_LIMIT} tokens are summarized automatically "
            "(meta.summary_applied tells you when)",
        ],
        "common_parameters": {
            "summary_only": "boolean - project to compact fields to reduce payload size",
            "fields": "string[] - dot-notation fields to include (e.g., purchased_amount.amount)",
            "page_size": "number - items per page (<= 50)",
            "max_items": "number - cap total items across pages (<= 500 recommended)",
            "start_date": "ISO string - lower bound for updated_at",
            "end_date": "ISO string - upper bound for updated_at",
            "window_days": "number - split large date ranges into smaller windows (e.g., 7)",
            "min_amount": "number - client-side minimum purchased_amount.amount",
            "max_amount": "number - client-side maximum purchased_amount.amount",
        },
        "resource_query_parameters": {
            "fields": "comma-separated dot-notation fields, e.g. ?fields=id,status",
            "summary_only": "'true' to project to the default summary fields",
            "cursor": "pagination cursor from meta.next_cursor",
            "limit": "items per page (1-100)",
        },
        "tool_selection": [
            {"tool": "get_all_card_expenses", "use_for": "Paginated list of card expenses"},
            {"tool": "get_card_expense", "use_for": "One card expense by ID"},
            {
                "tool": "get_all_expenses",
                "use_for": "Paginated list of all expenses (with filters)",
            },
            {"tool": "get_expenses", "use_for": "Single-page list (small samples)"},
            {
                "tool": "get_card_transactions",
                "use_for": "Primary card transactions (use posted_at_start)",
            },
            {
                "tool": "get_cash_transactions",
                "use_for": "Cash transactions (requires cash scopes)",
            },
            {"tool": "get_budgets", "use_for": "Budgets, with get_budget for one by ID"},
        ],
        "recommended_patterns": [
            {
                "name": "List recent card expenses (windowed)",
                "request": {
                    "name": "get_all_card_expenses",
                    "arguments": {
                        "page_size": 50,
                        "max_items": 200,
                        "start_date": "2025-08-01T00:00:00Z",
                        "end_date": "2025-08-18T00:00:00Z",
                        "window_days": 7,
                        "min_amount": 100,
                        "summary_only": True,
                        "fields": _SUMMARY_EXPENSE_FIELDS,
                    },
                },
            },
            {
                "name": "Small sample of expenses (single page)",
                "request": {
                    "name": "get_expenses",
                    "arguments": {
                        "limit": 5,
                        "status": "APPROVED",
                        "summary_only": True,
                        "fields": [
                            "id",
                            "status",
                            "purchased_amount.amount",
                            "merchant.raw_descriptor",
                        ],
                    },
                },
            },
            {
                "name": "Card transactions (recent)",
                "request": {
                    "name": "get_card_transactions",
                    "arguments": {
                        "limit": 10,
                        "posted_at_start": "2025-08-01T00:00:00Z",
                        "summary_only": True,
                        "fields": [
                            "id",
                            "posted_at",
                            "amount.amount",
                            "amount.currency",
                            "merchant.raw_descriptor",
                        ],
                    },
                },
            },
        ],
        "anti_patterns": [
            "Do not omit date ranges on get_all_* for high-volume orgs",
            "Do not request large page_size (>50) or unlimited max_items",
            "Do not omit summary_only/fields when embedding results in prompts",
            "Do not call cash endpoints without verifying required scopes",
        ],
    }
