"""Sample Brex payloads for tests."""


def make_expense(expense_id, amount=10.0, merchant="ACME CORP", **extra):
    expense = {
        "id": expense_id,
        "updated_at": "2025-08-02T10:00:00Z",
        "status": "APPROVED",
        "expense_type": "CARD",
        "memo": "team lunch",
        "purchased_amount": {"amount": amount, "currency": "USD"},
        "merchant": {"raw_descriptor": merchant, "mcc": "5812"},
    }
    expense.update(extra)
    return expense


def make_cash_account(account_id, status="ACTIVE", primary=False):
    return {
        "id": account_id,
        "name": f"Account {account_id}",
        "status": status,
        "primary": primary,
        "current_balance": {"amount": 1000, "currency": "USD"},
        "available_balance": {"amount": 900, "currency": "USD"},
        "account_number": "123456789",
    }


def page(items, next_cursor=None):
    return {"items": items, "next_cursor": next_cursor}
