"""
Configuration constants for the Brex MCP server.

Token budget, pagination bounds, API defaults and the per-kind summary
field table. Runtime settings read from the environment live in settings.py.
"""

# =============================================================================
# Token Budget
# =============================================================================

# Hard ceiling for a single response, in approximate LLM tokens.
# Above this, list payloads are projected down to their summary fields.
HARD_TOKEN_LIMIT = 24000

# Average characters (UTF-8 bytes) per token used by the size estimator
CHARS_PER_TOKEN = 4


# =============================================================================
# Pagination & Limits
# =============================================================================

# Default page size for list endpoints when the caller gives none
DEFAULT_LIST_LIMIT = 50

# Upper bound for the `limit` / `page_size` parameters
MAX_LIST_LIMIT = 100

# Default page size used by the paginating get_all_* tools
DEFAULT_PAGE_SIZE = 50

# Default cap on the total items collected by get_all_* tools
DEFAULT_MAX_ITEMS = 100

# Number of statement entries attached as recent activity to account details
RECENT_ACTIVITY_ITEMS = 5


# =============================================================================
# Network
# =============================================================================

# Production Brex API base URL
DEFAULT_BREX_API_URL = "https://platform.brexapis.com"

# Default API request timeout (seconds)
API_REQUEST_TIMEOUT_SECONDS = 30

# Maximum length of upstream error bodies echoed into error messages
MAX_ERROR_BODY_LENGTH = 200


# =============================================================================
# Resources
# =============================================================================

USAGE_RESOURCE_URI = "brex://docs/usage"

JSON_MIME_TYPE = "application/json"


# =============================================================================
# Field Selection
# =============================================================================

# Default projection for each data kind. Used when the caller asks for
# summary_only without naming fields, and when the token budget is exceeded.
SUMMARY_FIELD_SETS = {
    "expense": [
        "id",
        "updated_at",
        "status",
        "payment_status",
        "expense_type",
        "purchased_at",
        "purchased_amount.amount",
        "purchased_amount.currency",
        "merchant.raw_descriptor",
        "category",
        "budget_id",
        "merchant_id",
    ],
    "transaction": [
        "id",
        "status",
        "posted_at",
        "amount.amount",
        "amount.currency",
        "merchant.raw_descriptor",
        "card_last_four",
        "description",
    ],
    "statement": [
        "id",
        "period_start",
        "period_end",
        "start_balance.amount",
        "start_balance.currency",
        "end_balance.amount",
        "end_balance.currency",
        "opening_balance.amount",
        "opening_balance.currency",
        "closing_balance.amount",
        "closing_balance.currency",
    ],
    "account": [
        "id",
        "name",
        "status",
        "primary",
        "current_balance.amount",
        "current_balance.currency",
        "available_balance.amount",
        "available_balance.currency",
    ],
    "card_account": [
        "id",
        "status",
        "current_balance.amount",
        "current_balance.currency",
        "account_limit.amount",
        "account_limit.currency",
    ],
    "budget": [
        "budget_id",
        "name",
        "spend_budget_status",
        "amount.amount",
        "amount.currency",
        "period_recurrence_type",
        "updated_at",
    ],
    "spend_limit": [
        "id",
        "name",
        "status",
        "amount.amount",
        "amount.currency",
        "period_recurrence_type",
        "updated_at",
    ],
    "budget_program": [
        "id",
        "name",
        "budget_program_status",
        "description",
        "updated_at",
    ],
}
