import json

import pytest

from brex_mcp.prompts import get_prompt, list_prompts
from brex_mcp.utils.validation import ValidationError
from tests.factories import make_cash_account, make_expense, page


def test_list_prompts():
    assert {prompt.name for prompt in list_prompts()} == {
        "summarize_transactions",
        "summarize_expenses",
    }


async def test_summarize_expenses_embeds_summaries(client, limiter):
    client.get_expenses.side_effect = [
        page([make_expense("c1"), "junk"]),
        page([make_expense("r1", expense_type="REIMBURSEMENT")]),
    ]

    result = await get_prompt("summarize_expenses", client, limiter)

    types_requested = [c.args[0]["expense_type"] for c in client.get_expenses.call_args_list]
    assert types_requested == [["CARD"], ["REIMBURSEMENT"]]

    card, reimbursements = result.messages[1], result.messages[2]
    assert str(card.content.resource.uri).startswith("brex://expenses")
    card_items = json.loads(card.content.resource.text)
    assert [e["id"] for e in card_items] == ["c1"]
    assert "memo" not in card_items[0]
    assert json.loads(reimbursements.content.resource.text)[0]["expense_type"] == "REIMBURSEMENT"
    assert result.messages[-1].content.text.startswith("Provide a summary")


async def test_summarize_transactions_one_message_per_account(client, limiter):
    client.get_cash_accounts.return_value = page(
        [make_cash_account("a1"), make_cash_account("a2"), {"id": "broken"}]
    )

    result = await get_prompt("summarize_transactions", client, limiter)

    embedded = [m for m in result.messages if m.content.type == "resource"]
    assert len(embedded) == 2
    first = json.loads(embedded[0].content.resource.text)
    assert first["id"] == "a1"
    assert "account_number" not in first


async def test_unknown_prompt(client, limiter):
    with pytest.raises(ValidationError, match="Unknown prompt"):
        await get_prompt("nope", client, limiter)
