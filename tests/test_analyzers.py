"""Tests for budget_buckets/core/analyzers.py."""

from datetime import date

import pytest

from tests.conftest import make_bucket, make_goal, make_item, make_state
from budget_buckets.core.analyzers import (
    add_months,
    bucket_status,
    convert_frequency,
    frequency_breakdown,
    monthly_needed,
    monthly_to_base,
    months_to_goal,
    months_to_payoff,
    months_until,
    parse_frequency,
    project_debt_payoff,
    project_savings_goal,
    savings_plan,
    summarize_allocation,
    to_monthly,
)
from budget_buckets.models.schemas import BudgetSettings, DebtDetails, Frequency, SavingsTarget


# --- Frequency Conversion ---


class TestParseFrequency:
    def test_accepts_enum_and_any_case(self):
        assert parse_frequency(Frequency.WEEKLY) == Frequency.WEEKLY
        assert parse_frequency("monthly") == Frequency.MONTHLY
        assert parse_frequency(" YEARLY ") == Frequency.YEARLY

    def test_unknown_is_none(self):
        assert parse_frequency("Daily") is None
        assert parse_frequency(None) is None


class TestConvertFrequency:
    def test_same_frequency_is_identity(self):
        assert convert_frequency(123.45, "Monthly", "Monthly") == 123.45

    def test_weekly_to_fortnightly(self):
        assert convert_frequency(100, Frequency.WEEKLY, Frequency.FORTNIGHTLY) == 200

    def test_fortnightly_to_monthly(self):
        assert convert_frequency(1000, "Fortnightly", "Monthly") == pytest.approx(2166.6667, rel=1e-6)

    def test_monthly_to_yearly(self):
        assert convert_frequency(100, "Monthly", "Yearly") == pytest.approx(1200)

    def test_yearly_to_weekly(self):
        assert convert_frequency(5200, "Yearly", "Weekly") == 100

    def test_unknown_frequency_is_zero(self):
        assert convert_frequency(100, "Daily", "Monthly") == 0
        assert convert_frequency(100, "Monthly", "Hourly") == 0


class TestMonthlyHelpers:
    def test_monthly_to_base(self):
        assert monthly_to_base(52, Frequency.WEEKLY) == 12
        assert monthly_to_base(26, Frequency.FORTNIGHTLY) == 12
        assert monthly_to_base(10, Frequency.YEARLY) == 120
        assert monthly_to_base(10, Frequency.MONTHLY) == 10
        assert monthly_to_base(10, "Daily") == 10

    def test_to_monthly(self):
        assert to_monthly(12, Frequency.YEARLY) == pytest.approx(1)
        assert to_monthly(0, Frequency.WEEKLY) == 0
        assert to_monthly(-5, Frequency.WEEKLY) == 0
        assert to_monthly(float("nan"), Frequency.WEEKLY) == 0
        assert to_monthly(40, "Daily") == 40

    def test_frequency_breakdown(self):
        result = frequency_breakdown(1040, Frequency.YEARLY)
        assert result.weekly == 20
        assert result.fortnightly == 40
        assert result.monthly == pytest.approx(86.67)
        assert result.yearly == 1040


# --- Allocation Summary ---


class TestSummarizeAllocation:
    def test_splits_monthly_income(self):
        state = make_state(
            income=1000,
            frequency="Monthly",
            expenses=[make_bucket("Housing", items=[make_item("Rent", 500)])],
            savings=[make_bucket("Fund", type_="saving", items=[make_item("Save", 200)])],
            debt=[make_bucket("Card", type_="debt", items=[make_item("Pay", 100)])],
        )
        result = summarize_allocation(state)
        assert result.monthly_income == 1000
        assert result.expenses_monthly == 500
        assert result.savings_monthly == 200
        assert result.debt_monthly == 100
        assert result.remaining_monthly == 200
        assert result.expenses_pct == 50
        assert result.savings_pct == 20
        assert result.debt_pct == 10
        assert result.remaining_pct == 20
        assert result.savings_rate_pct == 20.0
        assert result.leftover_after_savings == 300

    def test_converts_fortnightly_income(self):
        state = make_state(income=1000, frequency="Fortnightly")
        result = summarize_allocation(state)
        assert result.monthly_income == pytest.approx(2166.67)
        assert result.fortnightly_income == 1000
        assert result.remaining_pct == 100

    def test_remaining_never_negative(self):
        state = make_state(income=100, frequency="Monthly", expenses=[make_bucket(items=[make_item("Rent", 500)])])
        result = summarize_allocation(state)
        assert result.remaining_monthly == 0
        assert result.leftover_after_savings == -400

    def test_zero_income(self):
        result = summarize_allocation(make_state(income=0))
        assert result.expenses_pct == 0
        assert result.savings_rate_pct == 0


# --- Bucket Status ---


class TestBucketStatus:
    settings = BudgetSettings(income_amount=2000)

    def test_ok_below_threshold(self):
        bucket = make_bucket(items=[make_item("Rent", 1000)], spent_cents=50000)
        result = bucket_status(bucket, self.settings)
        assert result.level == "ok"
        assert result.ratio == 0.5
        assert result.pct_of_income == 50
        assert result.remaining == 500

    def test_warning_at_threshold(self):
        bucket = make_bucket(items=[make_item("Rent", 1000)], spent_cents=80000)
        assert bucket_status(bucket, self.settings).level == "warning"

    def test_warning_at_exactly_planned(self):
        bucket = make_bucket(items=[make_item("Rent", 1000)], spent_cents=100000)
        assert bucket_status(bucket, self.settings).level == "warning"

    def test_over_when_overspent(self):
        bucket = make_bucket(items=[make_item("Rent", 1000)], spent_cents=120000)
        result = bucket_status(bucket, self.settings)
        assert result.level == "over"
        assert result.progress_pct == 100
        assert result.remaining == -200

    def test_custom_threshold(self):
        bucket = make_bucket(items=[make_item("Rent", 1000)], spent_cents=60000, threshold_pct=50)
        assert bucket_status(bucket, self.settings).level == "warning"

    def test_no_plan_is_ok(self):
        bucket = make_bucket(items=[], spent_cents=1000)
        result = bucket_status(bucket, self.settings)
        assert result.ratio == 0
        assert result.level == "ok"

    def test_saving_goal_is_the_plan(self):
        bucket = make_bucket("Fund", type_="saving", goal=make_goal(contribution_cents=20000), spent_cents=10000)
        result = bucket_status(bucket, self.settings)
        assert result.planned == 200
        assert result.progress_pct == 50
        assert result.bucket_type == "saving"


# --- Sinking Funds ---


class TestMonths:
    def test_add_months_clamps_day(self):
        assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2025, 11, 15), 2) == date(2026, 1, 15)
        assert add_months(date(2025, 5, 31), 7) == date(2025, 12, 31)

    def test_months_until(self):
        today = date(2025, 3, 15)
        assert months_until("2025-09-15", today) == 6
        assert months_until("2025-09-14", today) == 5
        assert months_until(date(2026, 3, 20), today) == 12

    def test_months_until_past_date_is_zero(self):
        assert months_until("2024-01-01", date(2025, 3, 15)) == 0

    def test_months_until_no_date(self):
        assert months_until(None) is None
        assert months_until("not a date") is None

    def test_monthly_needed(self):
        assert monthly_needed(120000, 0, "2026-03-15", date(2025, 3, 15)) == 10000
        assert monthly_needed(120000, 150000, "2026-03-15", date(2025, 3, 15)) == 0
        assert monthly_needed(120000, 0, None) == 0
        assert monthly_needed(120000, 0, "2025-03-01", date(2025, 3, 15)) == 0


class TestSavingsPlan:
    def test_uses_goal_when_present(self):
        bucket = make_bucket(
            "Holiday",
            type_="saving",
            goal=make_goal(amount_cents=300000, saved_cents=60000, target_date="2026-01-01"),
        )
        settings = BudgetSettings(income_frequency=Frequency.MONTHLY)
        result = savings_plan(bucket, settings, reference_date=date(2025, 1, 1))
        assert result.target_amount == 3000
        assert result.current_amount == 600
        assert result.months_remaining == 12
        assert result.monthly_needed == 200
        assert result.per_period_needed == 200

    def test_target_with_items_as_progress(self):
        bucket = make_bucket(
            "Emergency Fund",
            type_="saving",
            items=[make_item("Saved", 1000)],
            target=SavingsTarget(amount_cents=700000, target_date="2025-07-01"),
        )
        settings = BudgetSettings(income_frequency=Frequency.WEEKLY)
        result = savings_plan(bucket, settings, reference_date=date(2025, 1, 1))
        assert result.current_amount == 1000
        assert result.monthly_needed == 1000
        assert result.per_period_needed == pytest.approx(230.77)

    def test_no_target(self):
        bucket = make_bucket("Fund", type_="saving")
        result = savings_plan(bucket, BudgetSettings())
        assert result.target_date is None
        assert result.months_remaining is None
        assert result.monthly_needed == 0


# --- Debt Payoff ---


class TestDebtPayoff:
    def test_zero_interest(self):
        assert months_to_payoff(1000, 0, 100) == 10
        assert months_to_payoff(1050, 0, 100) == 11

    def test_with_interest_takes_longer(self):
        assert months_to_payoff(1000, 12, 100) > 10

    def test_payment_below_interest_is_unreachable(self):
        assert months_to_payoff(10000, 24, 10) is None
        assert months_to_payoff(100, 0, 0) is None

    def test_project_debt_payoff(self):
        bucket = make_bucket(
            "Card",
            type_="debt",
            items=[make_item("Balance", 1200)],
            debt=DebtDetails(apr_pct=0, min_payment_cents=10000),
        )
        settings = BudgetSettings(income_frequency=Frequency.MONTHLY)
        result = project_debt_payoff(bucket, settings, reference_date=date(2025, 1, 15))
        assert result.months == 12
        assert result.payment_monthly == 100
        assert result.payoff_month == date(2026, 1, 15)

    def test_project_without_details_is_unreachable(self):
        bucket = make_bucket("Card", type_="debt", items=[make_item("Balance", 500)])
        result = project_debt_payoff(bucket, BudgetSettings())
        assert result.months is None
        assert result.payoff_month is None


# --- Savings Calculator ---


class TestSavingsCalculator:
    def test_already_reached(self):
        assert months_to_goal(1000, 100, 5, 500) == 0

    def test_no_interest(self):
        assert months_to_goal(0, 100, 0, 1000) == 10
        assert months_to_goal(0, 0, 0, 1000) is None

    def test_interest_shortens_time(self):
        assert months_to_goal(0, 100, 10, 10000) < 100

    def test_project_savings_goal(self):
        result = project_savings_goal(
            target=1200,
            contribution=100,
            frequency=Frequency.MONTHLY,
            income=1000,
            income_frequency=Frequency.MONTHLY,
            reference_date=date(2025, 6, 1),
        )
        assert result.months == 12
        assert result.reach_month == date(2026, 6, 1)
        assert result.savings_rate_pct == 10.0

    def test_no_income_means_no_savings_rate(self):
        result = project_savings_goal(target=1000, contribution=50, frequency="Weekly")
        assert result.savings_rate_pct is None
        assert result.monthly_contribution == pytest.approx(216.67)
