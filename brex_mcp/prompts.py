"""
MCP prompts that embed shaped Brex data for the model to summarize.

Embedded data always goes through the payload limiter with summary_only so a
prompt never carries full API objects.
"""

import asyncio
import logging
from typing import Any, List

import mcp.types as types

from brex_mcp.api.client import unwrap_page
from brex_mcp.api.models import ExpenseType, is_cash_account, is_expense
from brex_mcp.config.constants import DEFAULT_LIST_LIMIT, JSON_MIME_TYPE
from brex_mcp.optimization.token_optimizer import LimiterConfig, PayloadLimiter
from brex_mcp.utils.helpers import to_json_text
from brex_mcp.utils.validation import ValidationError

logger = logging.getLogger(__name__)

PROMPT_DESCRIPTIONS = {
    "summarize_transactions": "Summarize transactions for a Brex account",
    "summarize_expenses": "Summarize expenses by category and status",
}

_SUMMARY = LimiterConfig(summary_only=True)


def list_prompts() -> List[types.Prompt]:
    return [
        types.Prompt(name=name, description=description)
        for name, description in PROMPT_DESCRIPTIONS.items()
    ]


def _text(text: str) -> types.PromptMessage:
    return types.PromptMessage(
        role="user", content=types.TextContent(type="text", text=text)
    )


def _embedded(uri: str, data: Any) -> types.PromptMessage:
    return types.PromptMessage(
        role="user",
        content=types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(
                uri=uri, mimeType=JSON_MIME_TYPE, text=to_json_text(data)
            ),
        ),
    )


async def summarize_expenses(client, limiter: PayloadLimiter) -> types.GetPromptResult:
    """Embed one page each of card and reimbursement expenses."""
    card_data, reimbursement_data = await asyncio.gather(
        client.get_expenses(
            {"expense_type": [ExpenseType.CARD.value], "limit": DEFAULT_LIST_LIMIT}
        ),
        client.get_expenses(
            {
                "expense_type": [ExpenseType.REIMBURSEMENT.value],
                "limit": DEFAULT_LIST_LIMIT,
            }
        ),
    )
    card, _ = unwrap_page(card_data, "card expenses")
    reimbursements, _ = unwrap_page(reimbursement_data, "reimbursement expenses")

    card_result = limiter.limit([e for e in card if is_expense(e)], "expense", _SUMMARY)
    reimbursement_result = limiter.limit(
        [e for e in reimbursements if is_expense(e)], "expense", _SUMMARY
    )
    logger.debug(
        f"summarize_expenses: {len(card_result.items)} card, "
        f"{len(reimbursement_result.items)} reimbursement expenses"
    )

    return types.GetPromptResult(
        description=PROMPT_DESCRIPTIONS["summarize_expenses"],
        messages=[
            _text("Please analyze the following Brex expenses:"),
            _embedded("brex://expenses/card", card_result.items),
            _embedded("brex://expenses", reimbursement_result.items),
            _text(
                "Provide a summary of expenses, including:\n"
                "1. Total amount by expense type (card vs reimbursement)\n"
                "2. Breakdown by expense status\n"
                "3. Top merchants or vendors by spend\n"
                "4. Any notable patterns or unusual expenses"
            ),
        ],
    )


async def summarize_transactions(client, limiter: PayloadLimiter) -> types.GetPromptResult:
    """Embed every cash account, one resource per account."""
    accounts, _ = unwrap_page(await client.get_cash_accounts(), "cash accounts")
    accounts = [account for account in accounts if is_cash_account(account)]

    messages = [_text("Please analyze the following Brex accounts:")]
    for account in accounts:
        shaped, _ = limiter.limit_one(account, "account", _SUMMARY)
        messages.append(_embedded(f"brex://accounts/{account['id']}", shaped))
    messages.append(
        _text(
            "Provide a summary of the accounts, including total balances by "
            "currency and account status."
        )
    )

    return types.GetPromptResult(
        description=PROMPT_DESCRIPTIONS["summarize_transactions"],
        messages=messages,
    )


_PROMPT_BUILDERS = {
    "summarize_expenses": summarize_expenses,
    "summarize_transactions": summarize_transactions,
}


async def get_prompt(name: str, client, limiter: PayloadLimiter) -> types.GetPromptResult:
    """
    Build a prompt by name.

    Raises:
        ValidationError: Unknown prompt name
    """
    builder = _PROMPT_BUILDERS.get(name)
    if builder is None:
        raise ValidationError(f"Unknown prompt: {name}")
    return await builder(client, limiter)
