"""Tests for the MCP tools, called directly with a stand-in context."""

import json
from types import SimpleNamespace

import pytest

from tests.conftest import make_bucket, make_item, make_state
from budget_buckets.mcp import server
from budget_buckets.models.schemas import (
    MAX_BUCKETS_PER_SECTION,
    MAX_ITEMS_PER_BUCKET,
    AddBucketInput,
    AddItemInput,
    ConvertFrequencyInput,
    RecordSpendingInput,
    SavingsCalculatorInput,
    SetDebtDetailsInput,
    SetIncomeInput,
    SetSavingsGoalInput,
)


def make_ctx(store, budget_id):
    return SimpleNamespace(
        request_context=SimpleNamespace(lifespan_context={"store": store, "budget_id": budget_id})
    )


@pytest.fixture
def budget(store):
    return store.create_budget(
        make_state(
            income=2000,
            expenses=[make_bucket("Housing", items=[make_item("Rent", 900)])],
            savings=[make_bucket("Holiday", type_="saving")],
            debt=[make_bucket("Credit Card", type_="debt", items=[make_item("Balance", 300)])],
        )
    )


@pytest.fixture
def ctx(store, budget):
    return make_ctx(store, budget.id)


class TestResolveActiveBudget:
    def test_creates_budget_when_empty(self, store):
        budget_id = server.resolve_active_budget(store)
        assert store.read_budget(budget_id).name == "My Budget"

    def test_uses_most_recent(self, store):
        store.create_budget(make_state(name="Old"))
        newest = store.create_budget(make_state(name="New"))
        assert server.resolve_active_budget(store) == newest.id

    def test_explicit_id_must_exist(self, store):
        from budget_buckets.core.budget_store import BudgetNotFoundError

        with pytest.raises(BudgetNotFoundError):
            server.resolve_active_budget(store, "missing")


class TestReadTools:
    async def test_get_balance(self, ctx):
        result = await server.budget_get_balance(ctx)
        assert "A$900.00" in result
        assert "A$800.00 is not yet allocated" in result

    async def test_list_buckets(self, ctx):
        result = await server.budget_list_buckets(ctx)
        assert "**Housing** (expense): A$900.00 | 45% of income | OK" in result
        assert "### Debt" in result

    async def test_allocation(self, ctx):
        result = await server.budget_get_allocation(ctx)
        assert "Monthly Allocation" in result

    async def test_bucket_status_unknown(self, ctx):
        result = await server.budget_bucket_status("Groceries", ctx)
        assert "No bucket found matching 'Groceries'" in result

    async def test_savings_plan_requires_saving_bucket(self, ctx):
        result = await server.budget_savings_plan("Housing", ctx)
        assert "No saving bucket found" in result

    async def test_convert_frequency(self, ctx):
        result = await server.budget_convert_frequency(ConvertFrequencyInput(amount=100, frequency="Weekly"), ctx)
        assert "A$100.00 weekly is:" in result
        assert "A$5,200.00" in result

    async def test_savings_calculator(self, ctx):
        params = SavingsCalculatorInput(target=1000, contribution=100, frequency="Monthly")
        result = await server.budget_savings_calculator(params, ctx)
        assert "**10 months**" in result

    async def test_export_is_json(self, ctx):
        result = await server.budget_export(ctx)
        payload = json.loads(result.removeprefix("```json\n").removesuffix("\n```"))
        assert payload["expenses"][0]["name"] == "Housing"
        assert "exportDate" in payload


class TestWriteTools:
    async def test_set_income(self, ctx, store, budget):
        result = await server.budget_set_income(SetIncomeInput(amount=3000, frequency="Monthly", currency="usd"), ctx)
        assert result == "Income set to $3,000.00 (monthly)."
        settings = store.read_budget(budget.id).settings
        assert settings.income_amount == 3000
        assert settings.currency == "USD"

    async def test_add_bucket_defaults_type_from_section(self, ctx, store, budget):
        result = await server.budget_add_bucket(AddBucketInput(name="Car Loan", section="debt"), ctx)
        assert "You now have 4 bucket(s)" in result
        added = store.read_budget(budget.id).debt[1]
        assert added.type.value == "debt"
        assert added.include is True
        assert added.debt is not None

    async def test_add_bucket_to_full_section(self, store):
        full = [make_bucket(f"Bucket {n}") for n in range(MAX_BUCKETS_PER_SECTION)]
        budget = store.create_budget(make_state(expenses=full))
        ctx = make_ctx(store, budget.id)
        result = await server.budget_add_bucket(AddBucketInput(name="Extra"), ctx)
        assert result == "Storage error: Section 'expenses' is full (50 buckets)."
        assert store.bucket_count() == MAX_BUCKETS_PER_SECTION

    async def test_add_item_to_full_bucket(self, store):
        items = [make_item(f"Item {n}", 1) for n in range(MAX_ITEMS_PER_BUCKET)]
        budget = store.create_budget(make_state(expenses=[make_bucket("Housing", items=items)]))
        ctx = make_ctx(store, budget.id)
        result = await server.budget_add_item(AddItemInput(bucket_name="Housing", name="Extra", amount=5), ctx)
        assert result == "Storage error: Bucket 'Housing' is full (200 items)."
        assert len(store.read_budget(budget.id).expenses[0].items) == MAX_ITEMS_PER_BUCKET

    async def test_remove_bucket(self, ctx, store, budget):
        result = await server.budget_remove_bucket("holiday", ctx)
        assert "Removed **Holiday**" in result
        assert store.read_budget(budget.id).savings == []
        assert store.bucket_count() == 2

    async def test_include_bucket(self, ctx, store, budget):
        await server.budget_include_bucket("Housing", False, ctx)
        assert "Remaining:** A$1,700.00" in await server.budget_get_balance(ctx)

    async def test_add_and_remove_item(self, ctx, store, budget):
        await server.budget_add_item(AddItemInput(bucket_name="hous", name="Power", amount=150), ctx)
        assert [i.name for i in store.read_budget(budget.id).expenses[0].items] == ["Rent", "Power"]
        result = await server.budget_remove_item("Housing", "rent", ctx)
        assert "Removed **Rent**" in result
        assert [i.name for i in store.read_budget(budget.id).expenses[0].items] == ["Power"]

    async def test_savings_goal_changes_totals(self, ctx, store, budget):
        params = SetSavingsGoalInput(bucket_name="Holiday", contribution_per_period=250, goal_amount=3000)
        result = await server.budget_set_savings_goal(params, ctx)
        assert "A$250.00 per fortnightly period" in result
        assert "**Savings:** A$250.00" in await server.budget_get_balance(ctx)

    async def test_savings_goal_rejects_expense_bucket(self, ctx):
        params = SetSavingsGoalInput(bucket_name="Housing", contribution_per_period=10)
        assert "No saving bucket found" in await server.budget_set_savings_goal(params, ctx)

    async def test_debt_details_shows_payoff(self, ctx):
        params = SetDebtDetailsInput(bucket_name="credit", apr_pct=0, min_payment=100)
        result = await server.budget_set_debt_details(params, ctx)
        assert "Credit Card: Payoff" in result
        assert "Paid off in" in result

    async def test_record_spending(self, ctx):
        result = await server.budget_record_spending(RecordSpendingInput(bucket_name="Housing", amount=800), ctx)
        assert "[Over]" not in result
        assert "[Warning] Housing" in result

    async def test_import_replaces_sections(self, ctx, store, budget):
        payload = json.dumps({"expenses": [], "settings": {"incomeAmount": 10}})
        result = await server.budget_import(payload, ctx)
        assert result.startswith("Budget imported.")
        state = store.read_budget(budget.id)
        assert state.expenses == []
        assert state.debt[0].name == "Credit Card"

    async def test_import_bad_json(self, ctx):
        assert (await server.budget_import("nope", ctx)).startswith("Could not import budget")

    async def test_import_legacy_switches_budget(self, ctx, store):
        payload = json.dumps({"settings": {"incomeAmount": 500}, "expenses": [], "savings": []})
        result = await server.budget_import_legacy(payload, ctx)
        new_id = ctx.request_context.lifespan_context["budget_id"]
        assert f"`{new_id}`" in result
        assert store.read_budget(new_id).name == "Imported Budget"
        assert len(store.list_budgets()) == 2

    async def test_load_demo_and_reset(self, ctx, store, budget):
        result = await server.budget_load_demo(ctx)
        assert "Demo data loaded." in result
        assert store.bucket_count() == 4
        result = await server.budget_reset(ctx)
        assert "has been reset" in result
        state = store.read_budget(budget.id)
        assert state.all_buckets() == []
        assert store.bucket_count() == 0
