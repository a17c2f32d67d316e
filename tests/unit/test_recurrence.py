"""Unit tests for recurrence resolution"""

import pytest
from datetime import date, datetime, timedelta

from billing_engine.domain.exceptions import UnsupportedBillingCycleError
from billing_engine.domain.models import BillingCycle
from billing_engine.domain.recurrence import (
    first_index_on_or_after,
    next_billing_date,
    occurrence,
    resolve_anchor,
)
from conftest import ms

RECURRING = [c for c in BillingCycle if c is not BillingCycle.ONE_TIME]

ANCHORS = [
    date(2010, 6, 15),
    date(2020, 1, 31),
    date(2020, 2, 29),
    date(2023, 12, 31),
    date(2024, 6, 20),
    date(2025, 3, 1),
]

REFERENCES = [
    date(2024, 2, 29),
    date(2024, 6, 20),
    date(2024, 12, 31),
    date(2025, 1, 1),
]


def test_next_billing_date_monthly_scenario():
    """Anchored 2023-01-15, reference 2024-06-20 -> 2024-07-15"""
    result = next_billing_date(datetime(2024, 6, 20, 15, 30), BillingCycle.MONTHLY, date(2023, 1, 15))
    assert result == date(2024, 7, 15)


def test_next_billing_date_today_is_billing_day():
    """A charge due today counts as next, regardless of time of day"""
    result = next_billing_date(datetime(2024, 6, 15, 23, 59), BillingCycle.MONTHLY, date(2023, 1, 15))
    assert result == date(2024, 6, 15)


def test_one_time_returns_anchor_unchanged():
    anchor = datetime(2024, 3, 5, 10, 0)
    assert next_billing_date(date(2025, 1, 1), BillingCycle.ONE_TIME, anchor) is anchor


@pytest.mark.parametrize("cycle", RECURRING)
def test_next_billing_date_never_before_reference(cycle):
    for anchor in ANCHORS:
        for reference in REFERENCES:
            result = next_billing_date(reference, cycle, anchor)
            assert result >= reference, (cycle, anchor, reference)


@pytest.mark.parametrize("cycle", RECURRING)
def test_next_billing_date_is_fixed_point(cycle):
    """Feeding a billing date back in as the reference returns it again"""
    for anchor in ANCHORS:
        for reference in REFERENCES:
            first = next_billing_date(reference, cycle, anchor)
            assert next_billing_date(first, cycle, anchor) == first


@pytest.mark.parametrize("cycle", RECURRING)
def test_next_billing_date_is_the_earliest_occurrence(cycle):
    """The jump-ahead never skips a charge date"""
    anchor = date(2019, 1, 31)
    reference = date(2024, 6, 20)
    result = next_billing_date(reference, cycle, anchor)

    index = 0
    while occurrence(anchor, cycle, index) < reference:
        index += 1
    assert result == occurrence(anchor, cycle, index)


def test_monthly_month_end_clamps_without_drift():
    """Jan 31 bills Feb 29 then springs back to Mar 31"""
    anchor = date(2024, 1, 31)
    assert next_billing_date(date(2024, 2, 10), BillingCycle.MONTHLY, anchor) == date(2024, 2, 29)
    assert next_billing_date(date(2024, 3, 1), BillingCycle.MONTHLY, anchor) == date(2024, 3, 31)


def test_yearly_leap_day_anchor():
    anchor = date(2020, 2, 29)
    assert next_billing_date(date(2021, 1, 1), BillingCycle.YEARLY, anchor) == date(2021, 2, 28)
    assert next_billing_date(date(2024, 1, 1), BillingCycle.YEARLY, anchor) == date(2024, 2, 29)


def test_weekly_anchor_decades_ago():
    """Monday anchor from 2000 still lands on the next Monday"""
    result = next_billing_date(date(2024, 6, 20), BillingCycle.WEEKLY, date(2000, 1, 3))
    assert result == date(2024, 6, 24)


def test_bi_weekly_and_quarterly():
    assert next_billing_date(date(2024, 1, 20), BillingCycle.BI_WEEKLY, date(2024, 1, 1)) == date(2024, 1, 29)
    assert next_billing_date(date(2024, 3, 1), BillingCycle.QUARTERLY, date(2023, 11, 30)) == date(2024, 5, 30)
    assert next_billing_date(date(2024, 6, 20), BillingCycle.SEMIANNUAL, date(2023, 1, 15)) == date(2024, 7, 15)


def test_future_anchor_is_next_billing_date():
    assert next_billing_date(date(2024, 6, 20), BillingCycle.MONTHLY, date(2024, 9, 1)) == date(2024, 9, 1)


def test_cycle_accepts_string_values():
    assert next_billing_date(date(2024, 6, 20), "Monthly", date(2023, 1, 15)) == date(2024, 7, 15)


def test_unknown_cycle_is_a_contract_breach():
    with pytest.raises(UnsupportedBillingCycleError):
        next_billing_date(date(2024, 6, 20), "Fortnightly", date(2023, 1, 15))


def test_first_index_on_or_after_anchor_not_before_target():
    assert first_index_on_or_after(date(2024, 1, 1), BillingCycle.WEEKLY, date(2024, 1, 1)) == 0
    assert first_index_on_or_after(date(2024, 1, 1), BillingCycle.WEEKLY, date(2024, 1, 2)) == 1
    assert first_index_on_or_after(date(2024, 1, 1), BillingCycle.WEEKLY, date(2024, 1, 1) + timedelta(days=70)) == 10


def test_resolve_anchor_prefers_start_date(make_subscription):
    """An explicit start date wins over the billing day"""
    sub = make_subscription(start_date=ms(2024, 2, 3), billing_day=20)
    assert resolve_anchor(sub, date(2024, 6, 20)) == date(2024, 2, 3)


def test_resolve_anchor_applies_billing_day_to_created_at(make_subscription):
    sub = make_subscription(created_at=ms(2024, 2, 3), billing_day=20)
    assert resolve_anchor(sub, date(2024, 6, 20)) == date(2024, 2, 20)


def test_resolve_anchor_billing_day_rolls_over(make_subscription):
    sub = make_subscription(created_at=ms(2023, 2, 3), billing_day=31)
    assert resolve_anchor(sub, date(2024, 6, 20)) == date(2023, 3, 3)


def test_resolve_anchor_ignores_billing_day_for_weekly(make_subscription):
    sub = make_subscription(created_at=ms(2024, 2, 3), billing_day=20, billing_cycle=BillingCycle.WEEKLY)
    assert resolve_anchor(sub, date(2024, 6, 20)) == date(2024, 2, 3)


def test_resolve_anchor_falls_back_to_reference(make_subscription):
    sub = make_subscription(created_at=None, billing_day=5)
    assert resolve_anchor(sub, datetime(2024, 6, 20, 9, 0)) == date(2024, 6, 5)
