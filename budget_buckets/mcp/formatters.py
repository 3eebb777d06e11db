"""Markdown formatters for MCP tool responses.

Pure functions that take domain objects and return human-readable Markdown strings.
"""

from __future__ import annotations

from budget_buckets.core.aggregator import sum_included_items
from budget_buckets.models.results import (
    AllocationSummary,
    Balance,
    BucketStatus,
    FrequencyBreakdown,
    GoalProjection,
    PayoffProjection,
    SavingsPlan,
)
from budget_buckets.models.schemas import BudgetState, coerce_number

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "AUD": "A$",
    "NZD": "NZ$",
    "CAD": "CA$",
    "GBP": "£",
    "EUR": "€",
    "JPY": "¥",
    "INR": "₹",
}


def format_currency(amount: float | None, currency: str = "AUD") -> str:
    """Render an amount like ``A$1,234.56``; unknown codes render as ``XYZ 1,234.56``."""
    value = coerce_number(amount, minimum=None)
    sign = "-" if value < 0 else ""
    code = (currency or "").upper()
    symbol = _CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {abs(value):,.2f}".strip()
    return f"{sign}{symbol}{abs(value):,.2f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def format_balance(balance: Balance, state: BudgetState) -> str:
    cur = state.settings.currency
    freq = state.settings.income_frequency.value
    status = "OK" if balance.surplus >= 0 else "!!"
    lines = [
        f"## {state.name}: {freq} Totals\n",
        f"- **Income:** {format_currency(balance.income, cur)}",
        f"- **Expenses:** {format_currency(balance.expenses, cur)}",
        f"- **Savings:** {format_currency(balance.savings, cur)}",
        f"- **Debt:** {format_currency(balance.debt, cur)}",
        f"- [{status}] **Remaining:** {format_currency(balance.surplus, cur)}",
    ]
    if balance.balanced:
        lines.append("\nEvery dollar is allocated. The budget is balanced.")
    elif balance.surplus > 0:
        lines.append(f"\n{format_currency(balance.surplus, cur)} is not yet allocated.")
    else:
        lines.append(f"\nOverspent by {format_currency(-balance.surplus, cur)}.")
    return "\n".join(lines)


def format_buckets(state: BudgetState, statuses: dict[str, BucketStatus] | None = None) -> str:
    cur = state.settings.currency
    lines = [f"## {state.name}: Buckets\n"]
    any_buckets = False
    for title, section in (("Expenses", state.expenses), ("Savings", state.savings), ("Debt", state.debt)):
        if not section:
            continue
        any_buckets = True
        lines.append(f"### {title}")
        for bucket in sorted(section, key=lambda b: b.order_index):
            marker = "" if bucket.include else " _(excluded)_"
            total = format_currency(sum_included_items(bucket), cur)
            line = f"- **{bucket.name or 'Unnamed'}** ({bucket.type.value}): {total}{marker}"
            status = statuses.get(bucket.id) if statuses else None
            if status:
                line += f" | {status.pct_of_income}% of income | {status.level.upper()}"
            lines.append(line)
            for item in bucket.items:
                excluded = "" if item.include else " _(excluded)_"
                lines.append(f"  - {item.name or 'Unnamed'}: {format_currency(item.amount, cur)}{excluded}")
        lines.append("")
    if not any_buckets:
        return "No buckets yet. Add one with `budget_add_bucket`."
    return "\n".join(lines).rstrip()


def format_allocation(summary: AllocationSummary) -> str:
    cur = summary.currency
    lines = [
        "## Monthly Allocation\n",
        f"- **Income:** {format_currency(summary.monthly_income, cur)}/month "
        f"({format_currency(summary.fortnightly_income, cur)}/fortnight)",
        f"- **Expenses:** {format_currency(summary.expenses_monthly, cur)} ({summary.expenses_pct}%)",
        f"- **Savings:** {format_currency(summary.savings_monthly, cur)} ({summary.savings_pct}%)",
        f"- **Debt:** {format_currency(summary.debt_monthly, cur)} ({summary.debt_pct}%)",
        f"- **Remaining:** {format_currency(summary.remaining_monthly, cur)} ({summary.remaining_pct}%)",
        "",
        f"**Savings rate:** {format_percent(summary.savings_rate_pct)}",
        f"**Left after savings ({summary.frequency.lower()}):** "
        f"{format_currency(summary.leftover_after_savings, cur)}",
    ]
    return "\n".join(lines)


def format_bucket_status(status: BucketStatus, currency: str, frequency: str) -> str:
    period = frequency.lower()
    flag = {"ok": "OK", "warning": "Warning", "over": "Over"}[status.level]
    spent_label = "Contributed so far" if status.bucket_type == "saving" else "Spent"
    remaining_label = f"Still to save this {period}" if status.bucket_type == "saving" else "Remaining"
    return "\n".join([
        f"## [{flag}] {status.name}\n",
        f"- **Planned:** {format_currency(status.planned, currency)} ({status.pct_of_income}% of income)",
        f"- **{spent_label} this {period}:** {format_currency(status.spent, currency)} ({status.progress_pct:.0f}%)",
        f"- **{remaining_label}:** {format_currency(status.remaining, currency)}",
    ])


def format_savings_plan(plan: SavingsPlan, currency: str) -> str:
    lines = [
        f"## {plan.bucket_name}: Savings Plan\n",
        f"- **Target:** {format_currency(plan.target_amount, currency)}",
        f"- **Saved so far:** {format_currency(plan.current_amount, currency)}",
    ]
    if plan.target_date is None:
        lines.append("- **Target date:** not set")
        lines.append("\nSet a target date to see how much to put aside each period.")
        return "\n".join(lines)

    lines.append(f"- **Target date:** {plan.target_date} ({plan.months_remaining} months away)")
    lines.append(f"- **Needed per month:** {format_currency(plan.monthly_needed, currency)}")
    lines.append(
        f"- **Needed per {plan.frequency.lower()} period:** "
        f"{format_currency(plan.per_period_needed, currency)}"
    )
    return "\n".join(lines)


def format_payoff_projection(projection: PayoffProjection, currency: str) -> str:
    lines = [
        f"## {projection.bucket_name}: Payoff\n",
        f"- **Balance:** {format_currency(projection.balance, currency)}",
        f"- **APR:** {projection.apr_pct:g}%",
        f"- **Payment:** {format_currency(projection.payment_monthly, currency)}/month",
    ]
    if projection.months is None:
        lines.append("\n[!!] Unreachable (increase payment).")
    else:
        when = projection.payoff_month.strftime("%b %Y") if projection.payoff_month else ""
        lines.append(f"\n[OK] Paid off in **{projection.months} months** ({when}).")
    return "\n".join(lines)


def format_goal_projection(projection: GoalProjection, currency: str) -> str:
    lines = [
        "## Savings Goal\n",
        f"- **Target:** {format_currency(projection.target, currency)}",
        f"- **Starting balance:** {format_currency(projection.starting_balance, currency)}",
        f"- **Contribution:** {format_currency(projection.monthly_contribution, currency)}/month",
        f"- **Annual return:** {projection.annual_rate_pct:g}%",
    ]
    if projection.months is None:
        lines.append("\n[!!] Unreachable with current inputs. Increase the contribution or reduce the target.")
    else:
        when = projection.reach_month.strftime("%B %Y") if projection.reach_month else ""
        lines.append(f"\n[OK] Target reached in **{projection.months} months** ({when}).")
    if projection.savings_rate_pct is not None:
        lines.append(f"**Savings rate:** {format_percent(projection.savings_rate_pct)}")
    return "\n".join(lines)


def format_frequency_breakdown(breakdown: FrequencyBreakdown, currency: str) -> str:
    return "\n".join([
        "| Weekly | Fortnightly | Monthly | Yearly |",
        "|---|---|---|---|",
        f"| {format_currency(breakdown.weekly, currency)} "
        f"| {format_currency(breakdown.fortnightly, currency)} "
        f"| {format_currency(breakdown.monthly, currency)} "
        f"| {format_currency(breakdown.yearly, currency)} |",
    ])
