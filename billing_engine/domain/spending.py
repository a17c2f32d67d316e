"""Spending aggregation - charge events bucketed by month and category"""

import logging
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from billing_engine.config import settings
from billing_engine.domain.currency import RateLookup, RateTable, convert_currency, detect_mixed_currencies
from billing_engine.domain.history import generate_payment_history
from billing_engine.domain.models import (
    CategorySpending,
    CustomCategory,
    DateRange,
    PaymentHistoryEntry,
    SpendingDataPoint,
    Subscription,
    SubscriptionStatus,
    resolve_category,
)
from billing_engine.utils.date_utils import (
    Instant,
    add_months,
    diff_days,
    end_of_day,
    first_day_on_or_after,
    iter_months,
    start_of_day,
    to_local_date,
)

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
MONTH_FULL_NAMES = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


class DateRangePreset(str, Enum):
    """Named reporting windows"""

    SIX_MONTHS = "6months"
    YEAR_TO_DATE = "ytd"
    YEAR = "year"
    ALL_TIME = "alltime"


def get_date_range(preset: str, now: Instant, lookback_years: Optional[int] = None) -> DateRange:
    """
    Compute the window for a named preset.

    - 6months: first day of the month five months back through end of today
    - ytd: Jan 1 of the current year through end of today
    - year: the whole current calendar year
    - alltime: Jan 1, lookback_years back (bounded, default from settings)

    Unknown preset names behave like 6months.
    """
    today = to_local_date(now)
    end = end_of_day(today)

    try:
        preset = DateRangePreset(preset)
    except ValueError:
        preset = DateRangePreset.SIX_MONTHS

    if preset is DateRangePreset.YEAR_TO_DATE:
        return DateRange(start_date=start_of_day(date(today.year, 1, 1)), end_date=end, label="Year to Date")

    if preset is DateRangePreset.YEAR:
        return DateRange(
            start_date=start_of_day(date(today.year, 1, 1)),
            end_date=end_of_day(date(today.year, 12, 31)),
            label=str(today.year),
        )

    if preset is DateRangePreset.ALL_TIME:
        years = settings.alltime_lookback_years if lookback_years is None else lookback_years
        return DateRange(start_date=start_of_day(date(today.year - years, 1, 1)), end_date=end, label="All Time")

    start = add_months(today.replace(day=1), -5)
    return DateRange(start_date=start_of_day(start), end_date=end, label="Last 6 Months")


def filter_subscriptions(subscriptions: Iterable[Subscription], include_paused: bool) -> List[Subscription]:
    """Archived are always excluded, paused unless asked for"""
    kept = []
    for sub in subscriptions:
        status = sub.effective_status
        if status is SubscriptionStatus.ARCHIVED:
            continue
        if status is SubscriptionStatus.PAUSED and not include_paused:
            continue
        kept.append(sub)
    return kept


def _history_cap(start: date, end: date) -> int:
    """Past-entry cap large enough to cover the range for the shortest (weekly) cycle"""
    return max(settings.aggregation_history_cap, diff_days(start, end) // 7 + 2)


def _payments_in_range(subscription: Subscription, start: date, end: date) -> List[PaymentHistoryEntry]:
    payments = generate_payment_history(
        subscription,
        now=end,
        future_count=0,
        max_past_count=_history_cap(start, end),
    )
    return [p for p in payments if p.is_past and start <= p.date <= end]


def _prepare(
    subscriptions: Iterable[Subscription],
    include_paused: bool,
    primary_currency: Optional[str],
) -> Tuple[List[Subscription], str]:
    filtered = filter_subscriptions(subscriptions, include_paused)
    target = primary_currency or detect_mixed_currencies(filtered).primary_currency
    return filtered, target


def calculate_spending_by_month(
    subscriptions: Iterable[Subscription],
    start: Instant,
    end: Instant,
    include_paused: bool = False,
    primary_currency: Optional[str] = None,
    rates: Optional[RateLookup] = None,
) -> List[SpendingDataPoint]:
    """
    Spending per calendar month between start and end (inclusive).

    Every month in the range gets a bucket, zero when nothing was charged.
    Amounts in other currencies are converted into the target currency
    (primary_currency, or the first currency seen) before summing.
    A charge counts when its local midnight falls within [start, end], so a
    start with a time of day excludes that day.
    """
    rates = rates or RateTable.static()
    start_day = to_local_date(start)
    first_day = first_day_on_or_after(start)
    end_day = to_local_date(end)
    filtered, target = _prepare(subscriptions, include_paused, primary_currency)

    buckets: Dict[Tuple[int, int], SpendingDataPoint] = {}
    for year, month in iter_months(start_day, end_day):
        buckets[(year, month)] = SpendingDataPoint(
            month=MONTH_NAMES[month - 1],
            year=year,
            amount=0.0,
            full_label=f"{MONTH_FULL_NAMES[month - 1]} {year}",
        )

    for sub in filtered:
        for payment in _payments_in_range(sub, first_day, end_day):
            bucket = buckets.get((payment.date.year, payment.date.month))
            if bucket is None:
                continue
            bucket.amount += convert_currency(payment.amount, payment.currency, target, rates)

    logging.debug(
        "Monthly spending calculated",
        extra={"subscriptions": len(filtered), "months": len(buckets), "currency": target},
    )
    return sorted(buckets.values(), key=lambda p: (p.year, MONTH_NAMES.index(p.month)))


def calculate_spending_by_category(
    subscriptions: Iterable[Subscription],
    start: Instant,
    end: Instant,
    include_paused: bool = False,
    custom_categories: Optional[Sequence[CustomCategory]] = None,
    primary_currency: Optional[str] = None,
    rates: Optional[RateLookup] = None,
) -> List[CategorySpending]:
    """
    Spending per category between start and end, highest first.

    Supplied custom categories are always present (zero when unused).
    Percentages are shares of the grand total, all 0 when it is 0.
    """
    rates = rates or RateTable.static()
    first_day = first_day_on_or_after(start)
    end_day = to_local_date(end)
    filtered, target = _prepare(subscriptions, include_paused, primary_currency)

    custom_names = [c.name for c in custom_categories] if custom_categories is not None else None
    colors = {c.name: c.color for c in custom_categories or []}

    totals: Dict[str, float] = {}
    for sub in filtered:
        category = resolve_category(sub.category, custom_names)
        sub_total = 0.0
        for payment in _payments_in_range(sub, first_day, end_day):
            sub_total += convert_currency(payment.amount, payment.currency, target, rates)
        totals[category] = totals.get(category, 0.0) + sub_total

    for name in custom_names or []:
        totals.setdefault(name, 0.0)

    grand_total = sum(totals.values())
    result = [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=(amount / grand_total) * 100 if grand_total > 0 else 0.0,
            custom_color=colors.get(category),
        )
        for category, amount in totals.items()
    ]
    return sorted(result, key=lambda c: c.amount, reverse=True)


def calculate_total_spending(
    subscriptions: Iterable[Subscription],
    start: Instant,
    end: Instant,
    include_paused: bool = False,
    primary_currency: Optional[str] = None,
    rates: Optional[RateLookup] = None,
) -> float:
    """Total spending for a date range; always the sum of the monthly buckets"""
    monthly = calculate_spending_by_month(
        subscriptions,
        start,
        end,
        include_paused=include_paused,
        primary_currency=primary_currency,
        rates=rates,
    )
    return sum(point.amount for point in monthly)
