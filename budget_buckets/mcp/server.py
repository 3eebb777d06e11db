"""Budget Buckets MCP Server.

Exposes bucket budgeting as MCP tools for use with Claude Desktop and
Claude Code: income and bucket editing, balance and allocation reports,
sinking-fund and debt-payoff projections, and JSON import/export.
"""

import json
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from mcp.server.fastmcp import Context, FastMCP

# Ensure project root is on sys.path so `budget_buckets` is importable when
# loaded directly by tools like `mcp dev` (which use importlib, not `python -m`).
_project_root = str(Path(__file__).resolve().parent.parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

load_dotenv()

from budget_buckets.core.aggregator import calculate_budget_balance
from budget_buckets.core.analyzers import (
    bucket_status,
    frequency_breakdown,
    project_debt_payoff,
    project_savings_goal,
    savings_plan,
    summarize_allocation,
)
from budget_buckets.core.budget_store import BudgetStore
from budget_buckets.core.resolvers import find_bucket_section, resolve_bucket, resolve_item
from budget_buckets.core.validation import (
    BudgetDataError,
    demo_budget,
    empty_budget,
    export_budget,
    import_budget,
    import_legacy_budget,
)
from budget_buckets.mcp.error_handling import handle_tool_errors
from budget_buckets.mcp.formatters import (
    format_allocation,
    format_balance,
    format_bucket_status,
    format_buckets,
    format_currency,
    format_frequency_breakdown,
    format_goal_projection,
    format_payoff_projection,
    format_savings_plan,
)
from budget_buckets.models.schemas import (
    AddBucketInput,
    AddItemInput,
    Bucket,
    BucketType,
    BudgetItem,
    ConvertFrequencyInput,
    DebtDetails,
    RecordSpendingInput,
    SavingsCalculatorInput,
    SavingsGoal,
    SetDebtDetailsInput,
    SetIncomeInput,
    SetSavingsGoalInput,
    dollars_to_cents,
)

logger = logging.getLogger("budget_buckets")

_SECTION_DEFAULT_TYPES = {
    "expenses": BucketType.EXPENSE,
    "savings": BucketType.SAVING,
    "debt": BucketType.DEBT,
}


def resolve_active_budget(store: BudgetStore, budget_id: Optional[str] = None) -> str:
    """Pick the budget tools operate on, creating one if the store is empty.

    An explicit *budget_id* must exist; otherwise the most recently
    updated budget is used.
    """
    if budget_id:
        return store.read_budget(budget_id).id
    budgets = store.list_budgets()
    if budgets:
        return budgets[0].id
    created = store.create_budget(empty_budget())
    logger.info("No budgets found; created %s", created.id)
    return created.id


# --- Lifespan: initialize shared resources ---


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    data_file = os.environ.get("BUDGET_BUCKETS_DATA_FILE") or None
    budget_id = os.environ.get("BUDGET_BUCKETS_BUDGET_ID") or None

    store = BudgetStore(data_file=data_file)
    active_id = resolve_active_budget(store, budget_id)

    yield {"store": store, "budget_id": active_id}


mcp = FastMCP("budget_buckets", lifespan=app_lifespan)


# --- Helpers ---


def _get_deps(ctx) -> tuple[BudgetStore, str]:
    state = ctx.request_context.lifespan_context
    return state["store"], state["budget_id"]


def _hints(title: str, read_only: bool, destructive: bool = False, idempotent: bool = True) -> dict[str, Any]:
    return {
        "title": title,
        "readOnlyHint": read_only,
        "destructiveHint": destructive,
        "idempotentHint": idempotent,
        "openWorldHint": False,
    }


# --- Read-Only Tools ---


@mcp.tool(name="budget_get_balance", annotations=_hints("Budget Balance", read_only=True))
@handle_tool_errors
async def budget_get_balance(ctx: Context) -> str:
    """Show income, expense/savings/debt totals and the remaining surplus for one income period."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    return format_balance(calculate_budget_balance(state), state)


@mcp.tool(name="budget_list_buckets", annotations=_hints("List Buckets", read_only=True))
@handle_tool_errors
async def budget_list_buckets(ctx: Context) -> str:
    """List every bucket with its items, share of income and overspend status."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    statuses = {b.id: bucket_status(b, state.settings) for b in state.all_buckets()}
    return format_buckets(state, statuses)


@mcp.tool(name="budget_get_allocation", annotations=_hints("Monthly Allocation", read_only=True))
@handle_tool_errors
async def budget_get_allocation(ctx: Context) -> str:
    """Show how monthly income is split between expenses, savings, debt and what's left."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    return format_allocation(summarize_allocation(state))


@mcp.tool(name="budget_bucket_status", annotations=_hints("Bucket Status", read_only=True))
@handle_tool_errors
async def budget_bucket_status(bucket_name: str, ctx: Context) -> str:
    """Show planned vs spent for one bucket this period."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name)
    status = bucket_status(bucket, state.settings)
    return format_bucket_status(status, state.settings.currency, state.settings.income_frequency.value)


@mcp.tool(name="budget_savings_plan", annotations=_hints("Savings Plan", read_only=True))
@handle_tool_errors
async def budget_savings_plan(bucket_name: str, ctx: Context) -> str:
    """Show how much a savings bucket needs each period to hit its target date."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name, BucketType.SAVING)
    plan = savings_plan(bucket, state.settings)
    return format_savings_plan(plan, state.settings.currency)


@mcp.tool(name="budget_debt_payoff", annotations=_hints("Debt Payoff", read_only=True))
@handle_tool_errors
async def budget_debt_payoff(bucket_name: str, ctx: Context) -> str:
    """Project when a debt bucket is paid off at its minimum payment."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name, BucketType.DEBT)
    projection = project_debt_payoff(bucket, state.settings)
    return format_payoff_projection(projection, state.settings.currency)


@mcp.tool(name="budget_savings_calculator", annotations=_hints("Savings Goal Calculator", read_only=True))
@handle_tool_errors
async def budget_savings_calculator(params: SavingsCalculatorInput, ctx: Context) -> str:
    """Work out how long regular contributions take to reach a savings target."""
    store, budget_id = _get_deps(ctx)
    currency = store.read_budget(budget_id).settings.currency
    projection = project_savings_goal(
        target=params.target,
        contribution=params.contribution,
        frequency=params.frequency,
        starting_balance=params.starting_balance,
        annual_rate_pct=params.annual_rate_pct,
        income=params.income,
        income_frequency=params.income_frequency,
    )
    return format_goal_projection(projection, currency)


@mcp.tool(name="budget_convert_frequency", annotations=_hints("Convert Pay Frequency", read_only=True))
@handle_tool_errors
async def budget_convert_frequency(params: ConvertFrequencyInput, ctx: Context) -> str:
    """Express an amount weekly, fortnightly, monthly and yearly."""
    store, budget_id = _get_deps(ctx)
    currency = store.read_budget(budget_id).settings.currency
    breakdown = frequency_breakdown(params.amount, params.frequency)
    return (
        f"{format_currency(params.amount, currency)} {params.frequency.value.lower()} is:\n\n"
        + format_frequency_breakdown(breakdown, currency)
    )


@mcp.tool(name="budget_export", annotations=_hints("Export Budget", read_only=True))
@handle_tool_errors
async def budget_export(ctx: Context) -> str:
    """Export the budget as JSON that `budget_import` can load later."""
    store, budget_id = _get_deps(ctx)
    payload = export_budget(store.read_budget(budget_id))
    return "```json\n" + json.dumps(payload, indent=2) + "\n```"


# --- Write Tools ---


@mcp.tool(name="budget_set_income", annotations=_hints("Set Income", read_only=False))
@handle_tool_errors
async def budget_set_income(params: SetIncomeInput, ctx: Context) -> str:
    """Set income per period, and optionally the pay frequency and currency."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    state.settings.income_amount = params.amount
    if params.frequency is not None:
        state.settings.income_frequency = params.frequency
    if params.currency:
        state.settings.currency = params.currency.upper()
    state = store.update_budget(budget_id, state)
    return (
        f"Income set to {format_currency(state.settings.income_amount, state.settings.currency)} "
        f"({state.settings.income_frequency.value.lower()})."
    )


@mcp.tool(name="budget_add_bucket", annotations=_hints("Add Bucket", read_only=False, idempotent=False))
@handle_tool_errors
async def budget_add_bucket(params: AddBucketInput, ctx: Context) -> str:
    """Add a new expense, savings or debt bucket."""
    store, budget_id = _get_deps(ctx)
    bucket_type = params.bucket_type or _SECTION_DEFAULT_TYPES[params.section]
    bucket = Bucket(
        name=params.name,
        include=True,
        type=bucket_type,
        bank_account=params.bank_account or "",
        color=params.color or "#00cdd6",
        notes=params.notes or "",
        debt=DebtDetails() if bucket_type == BucketType.DEBT else None,
    )
    store.add_bucket(budget_id, params.section, bucket)
    return (
        f"Added **{params.name}** to {params.section} ({bucket_type.value}). "
        f"You now have {store.bucket_count()} bucket(s)."
    )


@mcp.tool(name="budget_remove_bucket", annotations=_hints("Remove Bucket", read_only=False, destructive=True))
@handle_tool_errors
async def budget_remove_bucket(bucket_name: str, ctx: Context) -> str:
    """Delete a bucket and all of its items."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name)
    section = find_bucket_section(state, bucket.id)
    store.delete_bucket(budget_id, bucket.id)
    return f"Removed **{bucket.name}** from {section}. You now have {store.bucket_count()} bucket(s)."


@mcp.tool(name="budget_include_bucket", annotations=_hints("Include or Exclude Bucket", read_only=False))
@handle_tool_errors
async def budget_include_bucket(bucket_name: str, include: bool, ctx: Context) -> str:
    """Include a bucket in the totals, or exclude it without deleting it."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name)
    bucket.include = include
    store.update_budget(budget_id, state)
    return f"**{bucket.name}** is now {'included in' if include else 'excluded from'} the totals."


@mcp.tool(name="budget_add_item", annotations=_hints("Add Item", read_only=False, idempotent=False))
@handle_tool_errors
async def budget_add_item(params: AddItemInput, ctx: Context) -> str:
    """Add a line item (e.g. 'Rent') to a bucket."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, params.bucket_name)
    bucket.items.append(BudgetItem(name=params.name, amount=params.amount, include=params.include))
    state = store.update_budget(budget_id, state)
    return (
        f"Added **{params.name}** ({format_currency(params.amount, state.settings.currency)}) "
        f"to **{bucket.name}**."
    )


@mcp.tool(name="budget_remove_item", annotations=_hints("Remove Item", read_only=False, destructive=True))
@handle_tool_errors
async def budget_remove_item(bucket_name: str, item_name: str, ctx: Context) -> str:
    """Remove a line item from a bucket."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, bucket_name)
    item = resolve_item(bucket, item_name)
    bucket.items = [i for i in bucket.items if i.id != item.id]
    store.update_budget(budget_id, state)
    return f"Removed **{item.name}** from **{bucket.name}**."


@mcp.tool(name="budget_set_savings_goal", annotations=_hints("Set Savings Goal", read_only=False))
@handle_tool_errors
async def budget_set_savings_goal(params: SetSavingsGoalInput, ctx: Context) -> str:
    """Give a savings bucket a goal; its per-period contribution replaces its items in totals."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, params.bucket_name, BucketType.SAVING)
    bucket.goal = SavingsGoal(
        amount_cents=dollars_to_cents(params.goal_amount),
        saved_so_far_cents=dollars_to_cents(params.saved_so_far),
        contribution_per_period_cents=dollars_to_cents(params.contribution_per_period),
        target_date=params.target_date,
    )
    state = store.update_budget(budget_id, state)
    return (
        f"**{bucket.name}** now contributes "
        f"{format_currency(params.contribution_per_period, state.settings.currency)} per "
        f"{state.settings.income_frequency.value.lower()} period."
    )


@mcp.tool(name="budget_set_debt_details", annotations=_hints("Set Debt Details", read_only=False))
@handle_tool_errors
async def budget_set_debt_details(params: SetDebtDetailsInput, ctx: Context) -> str:
    """Set a debt bucket's APR and minimum payment."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, params.bucket_name, BucketType.DEBT)
    bucket.debt = DebtDetails(
        apr_pct=params.apr_pct,
        min_payment_cents=dollars_to_cents(params.min_payment),
    )
    store.update_budget(budget_id, state)
    projection = project_debt_payoff(bucket, state.settings)
    return format_payoff_projection(projection, state.settings.currency)


@mcp.tool(name="budget_record_spending", annotations=_hints("Record Spending", read_only=False))
@handle_tool_errors
async def budget_record_spending(params: RecordSpendingInput, ctx: Context) -> str:
    """Record how much has been spent (or contributed) from a bucket this period."""
    store, budget_id = _get_deps(ctx)
    state = store.read_budget(budget_id)
    bucket = resolve_bucket(state, params.bucket_name)
    bucket.spent_this_period_cents = dollars_to_cents(params.amount)
    store.update_budget(budget_id, state)
    status = bucket_status(bucket, state.settings)
    return format_bucket_status(status, state.settings.currency, state.settings.income_frequency.value)


@mcp.tool(name="budget_import", annotations=_hints("Import Budget", read_only=False, destructive=True))
@handle_tool_errors
async def budget_import(payload: str, ctx: Context) -> str:
    """Replace the budget with a JSON export. Sections missing from the export are kept."""
    store, budget_id = _get_deps(ctx)
    state = import_budget(payload, current=store.read_budget(budget_id))
    state = store.update_budget(budget_id, state)
    return "Budget imported.\n\n" + format_balance(calculate_budget_balance(state), state)


@mcp.tool(name="budget_import_legacy", annotations=_hints("Import Legacy Budget", read_only=False, idempotent=False))
@handle_tool_errors
async def budget_import_legacy(payload: str, ctx: Context) -> str:
    """Import a budget saved by the old local-only app as a new budget and switch to it."""
    store, _ = _get_deps(ctx)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise BudgetDataError(f"Invalid file format: {e.msg}") from e
    created = store.create_budget(import_legacy_budget(data))
    ctx.request_context.lifespan_context["budget_id"] = created.id
    return (
        f"Imported **{created.name}** (ID: `{created.id}`) and made it the active budget.\n\n"
        + format_balance(calculate_budget_balance(created), created)
    )


@mcp.tool(name="budget_load_demo", annotations=_hints("Load Demo Budget", read_only=False, destructive=True))
@handle_tool_errors
async def budget_load_demo(ctx: Context) -> str:
    """Replace the budget with demo data."""
    store, budget_id = _get_deps(ctx)
    state = store.update_budget(budget_id, demo_budget())
    return "Demo data loaded.\n\n" + format_balance(calculate_budget_balance(state), state)


@mcp.tool(name="budget_reset", annotations=_hints("Reset Budget", read_only=False, destructive=True))
@handle_tool_errors
async def budget_reset(ctx: Context) -> str:
    """Clear all buckets and income settings. This cannot be undone."""
    store, budget_id = _get_deps(ctx)
    current = store.read_budget(budget_id)
    store.update_budget(budget_id, empty_budget(current.name))
    return f"**{current.name}** has been reset."


# --- Entry point ---


def main():
    logging.basicConfig(
        level=os.environ.get("BUDGET_BUCKETS_LOG_LEVEL", "WARNING").upper(),
        stream=sys.stderr,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
