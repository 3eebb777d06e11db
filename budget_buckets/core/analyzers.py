"""Pure analysis functions for budget data.

All functions take already-loaded domain objects and return result
dataclasses. No I/O — keeps business logic testable without mocking.
"""

import math
from datetime import date

from budget_buckets.core.aggregator import calculate_budget_balance, sum_included_items
from budget_buckets.models.results import (
    AllocationSummary,
    BucketStatus,
    FrequencyBreakdown,
    GoalProjection,
    PayoffProjection,
    SavingsPlan,
)
from budget_buckets.models.schemas import (
    Bucket,
    BudgetSettings,
    BudgetState,
    Frequency,
    cents_to_dollars,
)

WEEKS_PER_YEAR = 52
MONTHS_PER_YEAR = 12


# --- Frequency Conversion ---


def parse_frequency(value: Frequency | str | None) -> Frequency | None:
    """Accept a :class:`Frequency` or its name in any case."""
    if isinstance(value, Frequency):
        return value
    if isinstance(value, str):
        for freq in Frequency:
            if freq.value.lower() == value.strip().lower():
                return freq
    return None


def convert_frequency(
    amount: float,
    from_freq: Frequency | str,
    to_freq: Frequency | str,
) -> float:
    """Convert an amount between pay frequencies via a weekly base.

    Unknown frequencies convert to ``0.0``.
    """
    source = parse_frequency(from_freq)
    dest = parse_frequency(to_freq)
    if source is None or dest is None:
        return 0.0
    if source == dest:
        return amount

    if source == Frequency.WEEKLY:
        weekly = amount
    elif source == Frequency.FORTNIGHTLY:
        weekly = amount / 2
    elif source == Frequency.MONTHLY:
        weekly = amount * MONTHS_PER_YEAR / WEEKS_PER_YEAR
    else:
        weekly = amount / WEEKS_PER_YEAR

    if dest == Frequency.WEEKLY:
        return weekly
    if dest == Frequency.FORTNIGHTLY:
        return weekly * 2
    if dest == Frequency.MONTHLY:
        return weekly * WEEKS_PER_YEAR / MONTHS_PER_YEAR
    return weekly * WEEKS_PER_YEAR


def monthly_to_base(value: float, base_freq: Frequency | str) -> float:
    """Express a monthly figure per *base_freq* period (identity if unknown)."""
    freq = parse_frequency(base_freq)
    if freq == Frequency.WEEKLY:
        return value * MONTHS_PER_YEAR / WEEKS_PER_YEAR
    if freq == Frequency.FORTNIGHTLY:
        return value * MONTHS_PER_YEAR / 26
    if freq == Frequency.YEARLY:
        return value * MONTHS_PER_YEAR
    return value


def to_monthly(amount: float, freq: Frequency | str) -> float:
    """Monthly equivalent of a contribution; non-positive amounts give 0."""
    if not math.isfinite(amount) or amount <= 0:
        return 0.0
    parsed = parse_frequency(freq)
    if parsed is None:
        return amount
    return convert_frequency(amount, parsed, Frequency.MONTHLY)


def frequency_breakdown(amount: float, freq: Frequency | str) -> FrequencyBreakdown:
    return FrequencyBreakdown(
        weekly=round(convert_frequency(amount, freq, Frequency.WEEKLY), 2),
        fortnightly=round(convert_frequency(amount, freq, Frequency.FORTNIGHTLY), 2),
        monthly=round(convert_frequency(amount, freq, Frequency.MONTHLY), 2),
        yearly=round(convert_frequency(amount, freq, Frequency.YEARLY), 2),
    )


# --- Allocation Summary ---


def _pct_of(value: float, total: float) -> int:
    return round(value / total * 100) if total > 0 else 0


def summarize_allocation(state: BudgetState) -> AllocationSummary:
    """Split monthly income between expenses, savings, debt and what's left."""
    balance = calculate_budget_balance(state)
    freq = state.settings.income_frequency

    monthly_income = convert_frequency(balance.income, freq, Frequency.MONTHLY)
    expenses_m = convert_frequency(balance.expenses, freq, Frequency.MONTHLY)
    savings_m = convert_frequency(balance.savings, freq, Frequency.MONTHLY)
    debt_m = convert_frequency(balance.debt, freq, Frequency.MONTHLY)
    remaining_m = max(0.0, monthly_income - expenses_m - savings_m - debt_m)

    savings_rate = (balance.savings / balance.income) * 100 if balance.income > 0 else 0.0

    return AllocationSummary(
        frequency=freq.value,
        currency=state.settings.currency,
        income=round(balance.income, 2),
        monthly_income=round(monthly_income, 2),
        fortnightly_income=round(convert_frequency(balance.income, freq, Frequency.FORTNIGHTLY), 2),
        expenses_monthly=round(expenses_m, 2),
        savings_monthly=round(savings_m, 2),
        debt_monthly=round(debt_m, 2),
        remaining_monthly=round(remaining_m, 2),
        leftover_after_savings=round(balance.income - balance.expenses - balance.savings, 2),
        savings_rate_pct=round(savings_rate, 1),
        expenses_pct=_pct_of(expenses_m, monthly_income),
        savings_pct=_pct_of(savings_m, monthly_income),
        debt_pct=_pct_of(debt_m, monthly_income),
        remaining_pct=_pct_of(remaining_m, monthly_income),
    )


# --- Bucket Status ---


def bucket_status(bucket: Bucket, settings: BudgetSettings) -> BucketStatus:
    """Compare what was spent from a bucket against what it plans per period.

    The level is ``ok`` below the bucket's overspend threshold, ``warning``
    up to the full planned amount and ``over`` beyond it.
    """
    planned = sum_included_items(bucket)
    spent = bucket.spent_this_period
    ratio = spent / planned if planned > 0 else 0.0

    threshold = bucket.overspend_threshold_pct / 100
    if ratio < threshold:
        level = "ok"
    elif ratio <= 1.0:
        level = "warning"
    else:
        level = "over"

    # Both sides share the income frequency, so no conversion is needed.
    pct_of_income = _pct_of(planned, settings.income_amount)

    return BucketStatus(
        bucket_id=bucket.id,
        name=bucket.name,
        bucket_type=bucket.type.value,
        planned=round(planned, 2),
        spent=round(spent, 2),
        pct_of_income=pct_of_income,
        ratio=round(ratio, 4),
        level=level,
        progress_pct=round(min(100.0, ratio * 100), 1),
        remaining=round(planned - spent, 2),
    )


# --- Sinking Funds ---


def _parse_date(value: str | date | None) -> date | None:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def add_months(start: date, months: int) -> date:
    """Shift *start* by whole months, clamping the day to the month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    if month == 12:
        last_day = 31
    else:
        last_day = (date(year, month + 1, 1) - date(year, month, 1)).days
    return date(year, month, min(start.day, last_day))


def months_until(target_date: str | date | None, reference_date: date | None = None) -> int | None:
    """Whole calendar months from *reference_date* to *target_date*, never negative.

    Returns ``None`` when there is no (readable) target date.
    """
    target = _parse_date(target_date)
    if target is None:
        return None
    today = reference_date or date.today()
    months = (target.year - today.year) * 12 + (target.month - today.month)
    if months > 0 and target.day < today.day:
        months -= 1
    return max(0, months)


def monthly_needed(
    target_cents: float,
    current_cents: float,
    target_date: str | date | None,
    reference_date: date | None = None,
) -> float:
    """Cents per month still needed to reach a target by its date."""
    months = months_until(target_date, reference_date)
    if not months:
        return 0.0
    return max(0.0, (target_cents - current_cents) / months)


def savings_plan(
    bucket: Bucket,
    settings: BudgetSettings,
    reference_date: date | None = None,
) -> SavingsPlan:
    """Work out the per-period contribution a savings bucket needs.

    A bucket's ``goal`` is used when present (progress = saved so far);
    otherwise its older ``target`` is used with the planned items as progress.
    """
    if bucket.goal is not None:
        target_cents = bucket.goal.amount_cents
        current_cents = bucket.goal.saved_so_far_cents
        target_date = bucket.goal.target_date
    else:
        target = bucket.target
        target_cents = target.amount_cents if target else 0
        current_cents = sum_included_items(bucket) * 100
        target_date = target.target_date if target else None

    needed_monthly = monthly_needed(target_cents, current_cents, target_date, reference_date)
    needed_per_period = monthly_to_base(needed_monthly, settings.income_frequency)

    return SavingsPlan(
        bucket_name=bucket.name,
        target_amount=round(cents_to_dollars(target_cents), 2),
        current_amount=round(cents_to_dollars(current_cents), 2),
        target_date=target_date,
        months_remaining=months_until(target_date, reference_date),
        monthly_needed=round(cents_to_dollars(needed_monthly), 2),
        per_period_needed=round(cents_to_dollars(needed_per_period), 2),
        frequency=settings.income_frequency.value,
    )


# --- Debt Payoff ---


def months_to_payoff(balance: float, apr_pct: float, payment_monthly: float) -> int | None:
    """Months to clear *balance* at a fixed monthly payment.

    Interest compounds monthly at the rate equivalent to *apr_pct* per year.
    Returns ``None`` when the payment never outpaces the interest.
    """
    rate = (1 + apr_pct / 100) ** (1 / 12) - 1 if apr_pct > 0 else 0.0
    if payment_monthly <= rate * balance:
        return None
    if rate == 0:
        return math.ceil(balance / payment_monthly)
    return math.ceil(
        math.log(payment_monthly / (payment_monthly - rate * balance)) / math.log(1 + rate)
    )


def project_debt_payoff(
    bucket: Bucket,
    settings: BudgetSettings,
    reference_date: date | None = None,
) -> PayoffProjection:
    """Project when a debt bucket is paid off at its minimum payment.

    The bucket's planned items are taken as the outstanding balance.
    """
    today = reference_date or date.today()
    balance = sum_included_items(bucket)
    details = bucket.debt
    apr_pct = details.apr_pct if details else 0.0
    min_payment = details.min_payment if details else 0.0
    payment_monthly = convert_frequency(min_payment, settings.income_frequency, Frequency.MONTHLY)

    months = months_to_payoff(balance, apr_pct, payment_monthly)
    return PayoffProjection(
        bucket_name=bucket.name,
        balance=round(balance, 2),
        apr_pct=apr_pct,
        payment_monthly=round(payment_monthly, 2),
        months=months,
        payoff_month=add_months(today, months) if months is not None else None,
    )


# --- Savings Calculator ---


def months_to_goal(
    starting_balance: float,
    contribution_monthly: float,
    annual_rate_pct: float,
    target: float,
) -> int | None:
    """Months of contributions (with monthly compounding) to reach *target*.

    Returns ``0`` if the target is already met and ``None`` if it can never be.
    """
    p0 = starting_balance if math.isfinite(starting_balance) else 0.0
    c = contribution_monthly if math.isfinite(contribution_monthly) else 0.0
    goal = target if math.isfinite(target) else 0.0
    if goal <= p0:
        return 0

    rate = (1 + annual_rate_pct / 100) ** (1 / 12) - 1
    if rate <= 0:
        if c <= 0:
            return None
        return math.ceil((goal - p0) / c)

    numerator = c + rate * p0
    denominator = c + rate * p0 - rate * goal
    if denominator <= 0:
        return None
    months = math.log(numerator / denominator) / math.log(1 + rate)
    return math.ceil(max(0.0, months))


def project_savings_goal(
    target: float,
    contribution: float,
    frequency: Frequency | str,
    starting_balance: float = 0.0,
    annual_rate_pct: float = 0.0,
    income: float | None = None,
    income_frequency: Frequency | str = Frequency.FORTNIGHTLY,
    reference_date: date | None = None,
) -> GoalProjection:
    """Standalone savings calculator: when is *target* reached?"""
    today = reference_date or date.today()
    contribution_monthly = to_monthly(contribution, frequency)
    months = months_to_goal(starting_balance, contribution_monthly, annual_rate_pct, target)

    income_monthly = to_monthly(income, income_frequency) if income else 0.0
    savings_rate = (
        round(contribution_monthly / income_monthly * 100, 1) if income_monthly > 0 else None
    )

    return GoalProjection(
        target=round(target, 2),
        starting_balance=round(starting_balance, 2),
        monthly_contribution=round(contribution_monthly, 2),
        annual_rate_pct=annual_rate_pct,
        months=months,
        reach_month=add_months(today, months) if months is not None else None,
        savings_rate_pct=savings_rate,
    )
