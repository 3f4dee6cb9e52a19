import pytest

from brex_mcp.api.client import EXPENSE_DETAIL_EXPAND
from brex_mcp.api.errors import DataShapeError
from brex_mcp.tools import call_tool
from brex_mcp.tools.expenses import (
    GetAllExpensesRequest,
    GetExpenseRequest,
    UpdateExpenseRequest,
    amount_filter,
    merchant_filter,
)
from brex_mcp.utils.validation import ValidationError
from tests.factories import make_expense, page


class TestFilters:
    def test_amount_filter(self):
        accept = amount_filter(10, 100)
        assert accept(make_expense("e1", amount=10))
        assert accept(make_expense("e1", amount=100))
        assert not accept(make_expense("e1", amount=9.99))
        assert not accept(make_expense("e1", amount=101))
        assert not accept({"id": "e1"})

    def test_amount_filter_without_bounds_accepts_everything(self):
        assert amount_filter(None, None)({"id": "e1"})

    def test_merchant_filter_is_case_insensitive_substring(self):
        accept = merchant_filter("acme")
        assert accept(make_expense("e1", merchant="ACME CORP"))
        assert not accept(make_expense("e1", merchant="Globex"))
        assert not accept({"id": "e1", "merchant": None})


class TestRequests:
    def test_get_all_defaults(self):
        request = GetAllExpensesRequest.from_arguments({})
        assert request.page_size == 50
        assert request.max_items == 100
        assert request.expense_type == ()
        assert request.shaping.summary_only is False

    def test_get_all_parses_filters(self):
        request = GetAllExpensesRequest.from_arguments(
            {
                "expense_type": "CARD",
                "status": ["APPROVED", "SUBMITTED"],
                "start_date": "2025-08-01T00:00:00Z",
                "end_date": "2025-08-18",
                "window_days": "7",
                "min_amount": "5",
                "summary_only": True,
            }
        )
        assert request.expense_type == ("CARD",)
        assert request.status == ("APPROVED", "SUBMITTED")
        assert request.window_days == 7
        assert request.min_amount == 5.0
        assert request.requested_parameters()["start_date"] == "2025-08-01T00:00:00.000Z"
        assert "max_amount" not in request.requested_parameters()

    @pytest.mark.parametrize(
        "arguments,message",
        [
            ({"start_date": "2025-08-10", "end_date": "2025-08-01"}, "start_date"),
            ({"min_amount": 10, "max_amount": 5}, "min_amount"),
            ({"page_size": 500}, "page_size must be <= 100"),
            ({"status": "LOST"}, "status must be one of"),
            ({"window_days": 0}, "window_days must be >= 1"),
            ({"start_date": "last week"}, "start_date"),
        ],
    )
    def test_get_all_rejects(self, arguments, message):
        with pytest.raises(ValidationError, match=message):
            GetAllExpensesRequest.from_arguments(arguments)

    def test_get_expense_default_expand(self):
        request = GetExpenseRequest.from_arguments({"expense_id": "e1"})
        assert request.query() == {
            "expand": EXPENSE_DETAIL_EXPAND,
            "load_custom_fields": True,
        }

    def test_update_requires_a_change(self):
        with pytest.raises(ValidationError, match="At least one update field"):
            UpdateExpenseRequest.from_arguments({"expense_id": "e1"})

    def test_update_custom_fields_need_key_and_value(self):
        with pytest.raises(ValidationError, match="custom_fields\\[0\\]"):
            UpdateExpenseRequest.from_arguments(
                {"expense_id": "e1", "custom_fields": [{"key": "project"}]}
            )


class TestGetExpenses:
    async def test_single_page(self, client, limiter):
        client.get_expenses.return_value = page(
            [make_expense("e1"), "garbage", make_expense("e2")], "next"
        )

        result = await call_tool(
            "get_expenses", {"status": "APPROVED", "limit": 2}, client, limiter
        )

        params = client.get_expenses.call_args.args[0]
        assert params["status"] == ["APPROVED"]
        assert params["limit"] == 2
        assert params["expense_type"] is None
        assert [e["id"] for e in result["expenses"]] == ["e1", "e2"]
        assert result["meta"] == {
            "count": 2,
            "next_cursor": "next",
            "summary_applied": False,
        }

    async def test_fields_projection(self, client, limiter):
        client.get_expenses.return_value = page([make_expense("e1", amount=7)])
        result = await call_tool(
            "get_expenses",
            {"fields": ["id", "purchased_amount.amount"]},
            client,
            limiter,
        )
        assert result["expenses"] == [{"id": "e1", "purchased_amount": {"amount": 7}}]
        assert result["meta"]["summary_applied"] is True


class TestGetAllExpenses:
    async def test_follows_cursor_until_max_items(self, client, limiter):
        client.get_expenses.side_effect = [
            page([make_expense("e1"), make_expense("e2")], "c2"),
            page([make_expense("e3")], "c3"),
        ]

        result = await call_tool(
            "get_all_expenses", {"page_size": 2, "max_items": 3}, client, limiter
        )

        calls = [c.args[0] for c in client.get_expenses.call_args_list]
        assert [(p["cursor"], p["limit"]) for p in calls] == [(None, 2), ("c2", 1)]
        assert [e["id"] for e in result["expenses"]] == ["e1", "e2", "e3"]
        assert result["meta"]["total_count"] == 3
        assert result["meta"]["requested_parameters"]["max_items"] == 3

    async def test_stops_when_no_cursor(self, client, limiter):
        client.get_expenses.return_value = page([make_expense("e1")])
        result = await call_tool("get_all_expenses", {}, client, limiter)
        assert client.get_expenses.call_count == 1
        assert result["meta"]["count"] == 1

    async def test_date_windows(self, client, limiter):
        client.get_expenses.side_effect = [
            page([make_expense("w1")]),
            page([make_expense("w2")]),
            page([make_expense("w3")]),
        ]

        result = await call_tool(
            "get_all_expenses",
            {
                "start_date": "2025-08-01T00:00:00Z",
                "end_date": "2025-08-18T00:00:00Z",
                "window_days": 7,
            },
            client,
            limiter,
        )

        windows = [
            (c.args[0]["updated_at_start"], c.args[0]["updated_at_end"])
            for c in client.get_expenses.call_args_list
        ]
        assert windows == [
            ("2025-08-01T00:00:00.000Z", "2025-08-08T00:00:00.000Z"),
            ("2025-08-08T00:00:00.000Z", "2025-08-15T00:00:00.000Z"),
            ("2025-08-15T00:00:00.000Z", "2025-08-18T00:00:00.000Z"),
        ]
        assert [e["id"] for e in result["expenses"]] == ["w1", "w2", "w3"]

    async def test_without_windows_dates_bound_one_query(self, client, limiter):
        client.get_expenses.return_value = page([])
        await call_tool(
            "get_all_expenses", {"start_date": "2025-08-01T00:00:00Z"}, client, limiter
        )
        params = client.get_expenses.call_args.args[0]
        assert params["updated_at_start"] == "2025-08-01T00:00:00.000Z"
        assert params["updated_at_end"] is None

    async def test_amount_filter_is_client_side(self, client, limiter):
        client.get_expenses.return_value = page(
            [make_expense("cheap", amount=5), make_expense("big", amount=500)]
        )
        result = await call_tool("get_all_expenses", {"min_amount": 100}, client, limiter)
        assert [e["id"] for e in result["expenses"]] == ["big"]

    async def test_card_expenses_force_type_and_expand(self, client, limiter):
        client.get_card_expenses.return_value = page(
            [make_expense("e1", merchant="Acme"), make_expense("e2", merchant="Other")]
        )

        result = await call_tool(
            "get_all_card_expenses",
            {"merchant_name": "acme", "summary_only": True},
            client,
            limiter,
        )

        params = client.get_card_expenses.call_args.args[0]
        assert params["expense_type"] == ["CARD"]
        assert params["expand"] == ["merchant", "budget"]
        assert [e["id"] for e in result["card_expenses"]] == ["e1"]
        assert "memo" not in result["card_expenses"][0]
        assert result["meta"]["summary_applied"] is True


class TestSingleExpense:
    async def test_get_expense(self, client, limiter):
        client.get_expense.return_value = make_expense("e1")
        result = await call_tool(
            "get_expense", {"expense_id": "e1", "fields": "id,status"}, client, limiter
        )
        client.get_expense.assert_awaited_once_with(
            "e1", {"expand": EXPENSE_DETAIL_EXPAND, "load_custom_fields": True}
        )
        assert result == {
            "expense": {"id": "e1", "status": "APPROVED"},
            "meta": {"summary_applied": True},
        }

    async def test_get_card_expense_bad_shape(self, client, limiter):
        client.get_card_expense.return_value = {"unexpected": True}
        with pytest.raises(DataShapeError):
            await call_tool("get_card_expense", {"expense_id": "e1"}, client, limiter)

    async def test_missing_id(self, client, limiter):
        with pytest.raises(ValidationError, match="expense_id"):
            await call_tool("get_expense", {}, client, limiter)
        client.get_expense.assert_not_awaited()


class TestUpdateExpense:
    async def test_update(self, client, limiter):
        client.update_card_expense.return_value = {
            "id": "e1",
            "updated_at": "2025-08-20T00:00:00Z",
            "status": "SUBMITTED",
        }

        result = await call_tool(
            "update_expense",
            {
                "expense_id": "e1",
                "memo": " Client dinner ",
                "custom_fields": [{"key": "project", "value": "apollo"}],
            },
            client,
            limiter,
        )

        client.update_card_expense.assert_awaited_once_with(
            "e1",
            {
                "memo": "Client dinner",
                "custom_fields": [{"key": "project", "value": "apollo"}],
            },
        )
        assert result["status"] == "success"
        assert result["updated_fields"] == ["memo", "custom_fields"]
        assert result["expense_status"] == "SUBMITTED"

    async def test_update_bad_response(self, client, limiter):
        client.update_card_expense.return_value = {}
        with pytest.raises(DataShapeError):
            await call_tool("update_expense", {"expense_id": "e1", "memo": "m"}, client, limiter)
