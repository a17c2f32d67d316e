"""Unit tests for payment history generation"""

import math
import pytest
from datetime import date, datetime, timedelta

from billing_engine.domain.history import (
    calculate_subscription_duration,
    calculate_total_spent,
    count_payments_made,
    generate_payment_history,
    get_last_payment_date,
)
from billing_engine.domain.models import BillingCycle
from conftest import ms


def test_generate_payment_history_scenario(make_subscription):
    """Monthly from 2023-01-15: three most recent past charges and one upcoming"""
    sub = make_subscription(start_date=ms(2023, 1, 15), amount=9.99, currency="USD")
    entries = generate_payment_history(sub, datetime(2024, 6, 20, 10, 0), future_count=1, max_past_count=3)

    assert [e.date for e in entries] == [
        date(2024, 4, 15),
        date(2024, 5, 15),
        date(2024, 6, 15),
        date(2024, 7, 15),
    ]
    assert [e.is_past for e in entries] == [True, True, True, False]
    assert all(e.amount == 9.99 and e.currency == "USD" for e in entries)


@pytest.mark.parametrize("cycle", list(BillingCycle))
def test_history_is_ordered_and_flags_match(make_subscription, cycle):
    now = date(2024, 6, 20)
    sub = make_subscription(start_date=ms(2022, 8, 31), billing_cycle=cycle)
    entries = generate_payment_history(sub, now, future_count=5, max_past_count=10)

    dates = [e.date for e in entries]
    assert dates == sorted(dates)
    assert all(e.is_past == (e.date <= now) for e in entries)


def test_one_time_emits_single_entry(make_subscription):
    past = make_subscription(start_date=ms(2024, 3, 1), billing_cycle=BillingCycle.ONE_TIME)
    future = make_subscription(start_date=ms(2024, 9, 1), billing_cycle=BillingCycle.ONE_TIME)

    past_entries = generate_payment_history(past, date(2024, 6, 20))
    future_entries = generate_payment_history(future, date(2024, 6, 20))

    assert [(e.date, e.is_past) for e in past_entries] == [(date(2024, 3, 1), True)]
    assert [(e.date, e.is_past) for e in future_entries] == [(date(2024, 9, 1), False)]


def test_end_date_stops_past_entries(make_subscription):
    """End date is exclusive: a charge falling on it is not emitted"""
    sub = make_subscription(start_date=ms(2024, 1, 10), end_date=ms(2024, 4, 10))
    entries = generate_payment_history(sub, date(2024, 6, 1), future_count=6, max_past_count=10)

    assert [e.date for e in entries] == [date(2024, 1, 10), date(2024, 2, 10), date(2024, 3, 10)]
    assert all(e.is_past for e in entries)


def test_end_date_limits_future_entries(make_subscription):
    sub = make_subscription(start_date=ms(2024, 1, 10), end_date=ms(2024, 8, 10))
    entries = generate_payment_history(sub, date(2024, 6, 1), future_count=6, max_past_count=0)

    assert [e.date for e in entries] == [date(2024, 6, 10), date(2024, 7, 10)]


def test_future_anchor_has_only_upcoming_entries(make_subscription):
    sub = make_subscription(start_date=ms(2024, 9, 1))
    entries = generate_payment_history(sub, date(2024, 6, 1), future_count=2, max_past_count=10)

    assert [(e.date, e.is_past) for e in entries] == [(date(2024, 9, 1), False), (date(2024, 10, 1), False)]


def test_history_is_bounded_for_old_weekly_anchor(make_subscription):
    """Decades of weekly charges are capped at the most recent ones"""
    now = date(2024, 6, 20)
    sub = make_subscription(start_date=ms(2000, 1, 3), billing_cycle=BillingCycle.WEEKLY)
    entries = generate_payment_history(sub, now, future_count=0, max_past_count=500)

    assert len(entries) == 500
    assert entries[-1].date == date(2024, 6, 17)
    assert entries[0].date == date(2024, 6, 17) - timedelta(weeks=499)


def test_zero_past_count_returns_only_future(make_subscription):
    sub = make_subscription(start_date=ms(2023, 1, 15))
    entries = generate_payment_history(sub, date(2024, 6, 20), future_count=2, max_past_count=0)

    assert [e.date for e in entries] == [date(2024, 7, 15), date(2024, 8, 15)]


def test_history_sanitizes_non_finite_amount(make_subscription):
    sub = make_subscription(start_date=ms(2024, 1, 15), amount=math.nan)
    entries = generate_payment_history(sub, date(2024, 3, 20), future_count=1, max_past_count=2)

    assert [e.amount for e in entries] == [0.0, 0.0, 0.0]


def test_history_is_deterministic(make_subscription):
    sub = make_subscription(start_date=ms(2021, 5, 31), billing_cycle=BillingCycle.QUARTERLY)
    first = generate_payment_history(sub, date(2024, 6, 20), future_count=4, max_past_count=8)
    second = generate_payment_history(sub, date(2024, 6, 20), future_count=4, max_past_count=8)
    assert first == second


def test_count_and_last_payment_with_month_end_anchor(make_subscription):
    """Jan 31 -> Feb 29 -> Mar 31 -> Apr 30"""
    sub = make_subscription(start_date=ms(2024, 1, 31), amount=10)
    now = date(2024, 4, 30)

    assert count_payments_made(sub, now) == 4
    assert get_last_payment_date(sub, now) == date(2024, 4, 30)
    assert calculate_total_spent(sub, now) == 40


def test_no_payments_before_start(make_subscription):
    sub = make_subscription(start_date=ms(2024, 9, 1))
    assert count_payments_made(sub, date(2024, 6, 1)) == 0
    assert get_last_payment_date(sub, date(2024, 6, 1)) is None
    assert calculate_total_spent(sub, date(2024, 6, 1)) == 0


def test_one_time_counts_once(make_subscription):
    sub = make_subscription(start_date=ms(2024, 3, 1), billing_cycle=BillingCycle.ONE_TIME, amount=99)
    assert count_payments_made(sub, date(2024, 6, 1)) == 1
    assert get_last_payment_date(sub, date(2024, 6, 1)) == date(2024, 3, 1)
    assert calculate_total_spent(sub, date(2024, 6, 1)) == 99


def test_count_respects_end_date(make_subscription):
    sub = make_subscription(start_date=ms(2024, 1, 10), end_date=ms(2024, 4, 10))
    assert count_payments_made(sub, date(2024, 6, 1)) == 3
    assert get_last_payment_date(sub, date(2024, 6, 1)) == date(2024, 3, 10)


def test_subscription_duration(make_subscription):
    sub = make_subscription(start_date=ms(2023, 1, 15))
    duration = calculate_subscription_duration(sub, date(2024, 3, 20))

    assert (duration.years, duration.months, duration.days) == (1, 2, 5)
    assert duration.formatted == "1 year, 2 months, 5 days"


def test_subscription_duration_borrows_days_from_previous_month(make_subscription):
    sub = make_subscription(start_date=ms(2024, 1, 20))
    duration = calculate_subscription_duration(sub, date(2024, 3, 5))

    # Feb 2024 has 29 days: 5 - 20 + 29 = 14
    assert (duration.years, duration.months, duration.days) == (0, 1, 14)
    assert duration.formatted == "1 month, 14 days"


def test_subscription_duration_edges(make_subscription):
    same_day = make_subscription(start_date=ms(2024, 6, 20))
    future = make_subscription(start_date=ms(2024, 9, 1))

    assert calculate_subscription_duration(same_day, date(2024, 6, 20)).formatted == "0 days"
    assert calculate_subscription_duration(future, date(2024, 6, 20)).formatted == "Not started"
