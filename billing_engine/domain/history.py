"""Payment history generation - past and upcoming charges of a subscription"""

from datetime import date, timedelta
from typing import List, Optional

from billing_engine.config import settings
from billing_engine.domain.models import (
    BillingCycle,
    PaymentHistoryEntry,
    Subscription,
    SubscriptionDuration,
)
from billing_engine.domain.monetary import sanitize_amount
from billing_engine.domain.recurrence import (
    coerce_cycle,
    first_index_on_or_after,
    occurrence,
    resolve_anchor,
)
from billing_engine.utils.date_utils import Instant, days_in_month, is_epoch_millis, to_local_date


def _stop_index(subscription: Subscription, anchor: date, cycle: BillingCycle) -> Optional[int]:
    """First occurrence index excluded by the end date, None when open-ended"""
    if not is_epoch_millis(subscription.end_date):
        return None
    return first_index_on_or_after(anchor, cycle, to_local_date(subscription.end_date))


def _last_past_index(subscription: Subscription, anchor: date, cycle: BillingCycle, today: date) -> int:
    """Index of the latest charge on or before today (-1 when none)"""
    last = first_index_on_or_after(anchor, cycle, today + timedelta(days=1)) - 1
    stop = _stop_index(subscription, anchor, cycle)
    if stop is not None:
        last = min(last, stop - 1)
    return last


def generate_payment_history(
    subscription: Subscription,
    now: Instant,
    future_count: Optional[int] = None,
    max_past_count: Optional[int] = None,
) -> List[PaymentHistoryEntry]:
    """
    Generate past and upcoming payment entries for a subscription.

    Requirements:
    - One-Time: exactly one entry, past if the anchor is on/before today
    - Recurring: the most recent max_past_count charges on/before today,
      followed by the next future_count charges
    - Nothing on/after the end date
    - Ascending by date; is_past == (date <= today)

    Entries carry the subscription's current amount and currency; price
    changes are not tracked.

    Args:
        subscription: Subscription record
        now: Reference instant ("today")
        future_count: Upcoming charges to include (default from settings)
        max_past_count: Cap on past charges (default from settings)

    Example:
        Monthly from 2023-01-15, now 2024-06-20, future_count=1, max_past_count=3
        → 2024-04-15, 2024-05-15, 2024-06-15 (past), 2024-07-15 (upcoming)
    """
    if future_count is None:
        future_count = settings.default_future_count
    if max_past_count is None:
        max_past_count = settings.default_max_past_count
    future_count = max(future_count, 0)
    max_past_count = max(max_past_count, 0)

    cycle = coerce_cycle(subscription.billing_cycle)
    anchor = resolve_anchor(subscription, now)
    today = to_local_date(now)
    amount = sanitize_amount(subscription.amount)

    def entry(day: date) -> PaymentHistoryEntry:
        return PaymentHistoryEntry(
            date=day,
            amount=amount,
            currency=subscription.currency,
            is_past=day <= today,
        )

    if cycle is BillingCycle.ONE_TIME:
        return [entry(anchor)]

    first_future = first_index_on_or_after(anchor, cycle, today + timedelta(days=1))
    stop = _stop_index(subscription, anchor, cycle)

    last_past = first_future - 1
    future_end = first_future + future_count
    if stop is not None:
        last_past = min(last_past, stop - 1)
        future_end = min(future_end, stop)

    past_start = max(0, last_past - max_past_count + 1)
    indices = list(range(past_start, last_past + 1)) if max_past_count else []
    indices.extend(range(first_future, future_end))

    return [entry(occurrence(anchor, cycle, i)) for i in indices]


def count_payments_made(subscription: Subscription, now: Instant) -> int:
    """Number of charges on or before today since the anchor"""
    cycle = coerce_cycle(subscription.billing_cycle)
    anchor = resolve_anchor(subscription, now)
    today = to_local_date(now)

    if anchor > today:
        return 0
    if cycle is BillingCycle.ONE_TIME:
        return 1
    return max(_last_past_index(subscription, anchor, cycle, today) + 1, 0)


def get_last_payment_date(subscription: Subscription, now: Instant) -> Optional[date]:
    """Most recent charge date, or None if nothing has been charged yet"""
    cycle = coerce_cycle(subscription.billing_cycle)
    anchor = resolve_anchor(subscription, now)
    today = to_local_date(now)

    if anchor > today:
        return None
    if cycle is BillingCycle.ONE_TIME:
        return anchor

    last = _last_past_index(subscription, anchor, cycle, today)
    return occurrence(anchor, cycle, last) if last >= 0 else None


def calculate_total_spent(subscription: Subscription, now: Instant) -> float:
    """Total charged since the anchor at the current price"""
    return count_payments_made(subscription, now) * sanitize_amount(subscription.amount)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit if count == 1 else unit + 's'}"


def calculate_subscription_duration(subscription: Subscription, now: Instant) -> SubscriptionDuration:
    """How long the subscription has been running, as years/months/days"""
    anchor = resolve_anchor(subscription, now)
    today = to_local_date(now)

    if anchor > today:
        return SubscriptionDuration(years=0, months=0, days=0, formatted="Not started")

    years = today.year - anchor.year
    months = today.month - anchor.month
    days = today.day - anchor.day

    if days < 0:
        months -= 1
        previous = today.replace(day=1) - timedelta(days=1)
        days += days_in_month(previous.year, previous.month)

    if months < 0:
        years -= 1
        months += 12

    parts = []
    if years > 0:
        parts.append(_plural(years, "year"))
    if months > 0:
        parts.append(_plural(months, "month"))
    if days > 0 or not parts:
        parts.append(_plural(days, "day"))

    return SubscriptionDuration(years=years, months=months, days=days, formatted=", ".join(parts))
