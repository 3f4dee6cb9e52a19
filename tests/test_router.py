import pytest

from brex_mcp.api.client import EXPENSE_DETAIL_EXPAND
from brex_mcp.api.errors import DataShapeError
from brex_mcp.config.constants import SUMMARY_FIELD_SETS
from brex_mcp.resources.router import ResourceRouter, read_resource_request
from brex_mcp.utils.validation import ValidationError
from tests.factories import make_cash_account, make_expense, page


@pytest.fixture
def router(client, limiter):
    return ResourceRouter(client, limiter)


class TestRouting:
    @pytest.mark.parametrize(
        "uri,pattern",
        [
            ("brex://docs/usage", "brex://docs/usage"),
            ("brex://accounts/card/primary/statements", "brex://accounts/card/primary/statements"),
            ("brex://accounts/card", "brex://accounts/card{/id}"),
            ("brex://accounts/cash/a1/statements", "brex://accounts/cash{/id}/statements"),
            ("brex://accounts/cash/primary", "brex://accounts/cash{/id}"),
            ("brex://accounts/a1", "brex://accounts{/id}"),
            ("brex://expenses/card/e1", "brex://expenses/card{/id}"),
            ("brex://expenses/e1", "brex://expenses{/id}"),
            ("brex://transactions/card/primary", "brex://transactions/card/primary"),
            ("brex://transactions/cash/a1", "brex://transactions/cash{/id}"),
            ("brex://budgets/b1", "brex://budgets{/id}"),
            ("brex://spend_limits", "brex://spend_limits{/id}"),
            ("brex://budget_programs/p1", "brex://budget_programs{/id}"),
        ],
    )
    def test_specific_routes_win(self, router, uri, pattern):
        assert router.resolve(uri).template.pattern == pattern

    def test_query_is_ignored_for_matching(self, router):
        route = router.resolve("brex://expenses/card/e1?summary_only=true")
        assert route.template.pattern == "brex://expenses/card{/id}"

    def test_unknown(self, router):
        assert router.resolve("brex://nothing/here") is None

    def test_listing(self, router):
        uris = [resource["uri"] for resource in router.list_resources()]
        assert "brex://docs/usage" in uris
        assert "brex://expenses/card" in uris
        for uri in uris:
            assert router.resolve(uri) is not None


class TestResourceRequest:
    def test_defaults(self):
        request = read_resource_request("brex://budgets", {})
        assert request.limit == 50
        assert request.cursor is None
        assert request.shaping.summary_only is False
        assert request.kind is None

    def test_carries_kind(self):
        assert read_resource_request("brex://budgets", {}, "budget").kind == "budget"

    def test_reads_query(self):
        request = read_resource_request(
            "brex://budgets?limit=5&cursor=c1&fields=budget_id,name", {}
        )
        assert (request.limit, request.cursor) == (5, "c1")
        assert request.shaping.fields == ("budget_id", "name")

    @pytest.mark.parametrize("limit", ["0", "101", "ten"])
    def test_bad_limit(self, limit):
        with pytest.raises(ValidationError):
            read_resource_request(f"brex://budgets?limit={limit}", {})


class TestRead:
    async def test_usage_doc(self, router):
        doc = await router.read("brex://docs/usage")
        assert doc["title"] == "Brex MCP Usage Guide"
        assert doc["anti_patterns"]

    async def test_card_expense_by_id_with_summary(self, router, client):
        client.get_card_expense.return_value = make_expense("e1")

        result = await router.read("brex://expenses/card/e1?summary_only=true")

        client.get_card_expense.assert_awaited_once_with(
            "e1", {"expand": EXPENSE_DETAIL_EXPAND, "load_custom_fields": True}
        )
        assert result["id"] == "e1"
        assert "memo" not in result

    async def test_card_expense_list(self, router, client):
        client.get_card_expenses.return_value = page([make_expense("e1")], "c2")

        result = await router.read("brex://expenses/card?limit=10&cursor=c1")

        client.get_card_expenses.assert_awaited_once_with(
            {
                "limit": 10,
                "cursor": "c1",
                "expand": ["merchant", "budget"],
                "expense_type": ["CARD"],
            }
        )
        assert [e["id"] for e in result["items"]] == ["e1"]
        assert result["meta"] == {"count": 1, "next_cursor": "c2", "summary_applied": False}

    async def test_expense_fields(self, router, client):
        client.get_expense.return_value = make_expense("e1", amount=3)
        result = await router.read("brex://expenses/e1?fields=id,purchased_amount.amount")
        assert result == {"id": "e1", "purchased_amount": {"amount": 3}}

    async def test_primary_cash_account(self, router, client):
        client.get_primary_cash_account.return_value = make_cash_account("a1", primary=True)
        result = await router.read("brex://accounts/cash/primary")
        client.get_primary_cash_account.assert_awaited_once_with()
        client.get_cash_account.assert_not_awaited()
        assert result["id"] == "a1"

    async def test_account_by_id(self, router, client):
        client.get_cash_account.return_value = make_cash_account("a7")
        result = await router.read("brex://accounts/a7")
        client.get_cash_account.assert_awaited_once_with("a7")
        assert result["id"] == "a7"

    async def test_account_list(self, router, client):
        client.get_cash_accounts.return_value = page([make_cash_account("a1")])
        result = await router.read("brex://accounts?summary_only=true")
        client.get_cash_accounts.assert_awaited_once_with(None, 50)
        assert "account_number" not in result["items"][0]
        assert result["meta"]["summary_applied"] is True

    async def test_card_account_by_id_is_unsupported(self, router, client):
        with pytest.raises(ValidationError, match="not supported"):
            await router.read("brex://accounts/card/ca1")
        client.get_card_accounts.assert_not_awaited()

    async def test_card_accounts_accept_bare_list(self, router, client):
        client.get_card_accounts.return_value = [{"id": "ca1", "status": "ACTIVE"}]
        result = await router.read("brex://accounts/card")
        assert result["items"] == [{"id": "ca1", "status": "ACTIVE"}]
        assert result["meta"]["next_cursor"] is None

    @pytest.mark.parametrize(
        "uri,method,kind",
        [
            ("brex://accounts/card", "get_card_accounts", "card_account"),
            ("brex://accounts/cash/a1/statements", "get_cash_account_statements", "statement"),
            ("brex://spend_limits", "get_spend_limits", "spend_limit"),
        ],
    )
    async def test_summary_uses_route_kind_fields(self, router, client, uri, method, kind):
        item = {field: f"v-{field}" for field in SUMMARY_FIELD_SETS[kind] if "." not in field}
        getattr(client, method).return_value = page([dict(item, internal_note="x")])

        result = await router.read(f"{uri}?summary_only=true")

        assert result["items"] == [item]

    async def test_cash_statements_need_id(self, router):
        with pytest.raises(ValidationError, match="requires an ID"):
            await router.read("brex://accounts/cash/statements")

    async def test_cash_statements(self, router, client):
        client.get_cash_account_statements.return_value = page([{"id": "s1"}])
        await router.read("brex://accounts/cash/a1/statements?limit=3")
        client.get_cash_account_statements.assert_awaited_once_with("a1", None, 3)

    async def test_cash_transactions_need_id(self, router):
        with pytest.raises(ValidationError):
            await router.read("brex://transactions/cash")

    async def test_budget_bad_shape(self, router, client):
        client.get_budget.return_value = {"id": "not-a-budget"}
        with pytest.raises(DataShapeError):
            await router.read("brex://budgets/b1")

    async def test_unknown_uri_returns_guidance(self, router, client):
        result = await router.read("brex://payroll/runs")
        assert result["error"] == "Unsupported resource URI"
        assert "brex://docs/usage" in result["guidance"]
        assert client.method_calls == []
