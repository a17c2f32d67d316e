"""Recurrence resolution - when does a subscription charge next"""

from datetime import date, datetime, timedelta
from typing import Union

from billing_engine.domain.exceptions import UnsupportedBillingCycleError
from billing_engine.domain.models import BillingCycle, Subscription
from billing_engine.utils.date_utils import (
    Instant,
    add_months,
    is_epoch_millis,
    months_between,
    to_local_date,
    with_day_of_month,
)

# Period length per recurring cycle
DAY_PERIODS = {
    BillingCycle.WEEKLY: 7,
    BillingCycle.BI_WEEKLY: 14,
}
MONTH_PERIODS = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.SEMIANNUAL: 6,
    BillingCycle.YEARLY: 12,
}

_unhandled = set(BillingCycle) - set(DAY_PERIODS) - set(MONTH_PERIODS) - {BillingCycle.ONE_TIME}
if _unhandled:
    raise UnsupportedBillingCycleError(f"No period defined for: {sorted(c.value for c in _unhandled)}")


def coerce_cycle(cycle: Union[BillingCycle, str]) -> BillingCycle:
    """Accept enum members or their string values; anything else is a contract breach"""
    try:
        return BillingCycle(cycle)
    except ValueError as e:
        raise UnsupportedBillingCycleError(f"Unknown billing cycle: {cycle!r}") from e


def occurrence(anchor: date, cycle: BillingCycle, index: int) -> date:
    """
    The index-th charge date counted from the anchor (index 0 is the anchor).

    Month-aligned dates are always derived from the anchor itself, so a day
    clamped in a short month (Jan 31 -> Feb 28) springs back afterwards
    (Mar 31) instead of drifting.
    """
    cycle = coerce_cycle(cycle)
    if cycle in DAY_PERIODS:
        return anchor + timedelta(days=DAY_PERIODS[cycle] * index)
    if cycle in MONTH_PERIODS:
        return add_months(anchor, MONTH_PERIODS[cycle] * index)
    return anchor


def _approximate_periods(anchor: date, target: date, cycle: BillingCycle) -> int:
    """Whole periods elapsed between anchor and target, possibly one too many"""
    if cycle in DAY_PERIODS:
        return (target - anchor).days // DAY_PERIODS[cycle]
    return months_between(anchor, target) // MONTH_PERIODS[cycle]


def first_index_on_or_after(anchor: date, cycle: BillingCycle, target: date) -> int:
    """
    Smallest occurrence index whose date is >= target.

    Jumps ahead by the elapsed period count minus one, which always lands
    behind the target, then steps one period at a time.
    """
    cycle = coerce_cycle(cycle)
    if not cycle.is_recurring or anchor >= target:
        return 0

    index = max(_approximate_periods(anchor, target, cycle) - 1, 0)
    while occurrence(anchor, cycle, index) < target:
        index += 1
    return index


def next_billing_date(
    reference: Instant,
    cycle: Union[BillingCycle, str],
    anchor: Union[date, datetime],
) -> Union[date, datetime]:
    """
    Next charge on or after the reference day.

    One-Time cycles never recur and return the anchor unchanged. A charge
    falling on the reference day itself counts as the next one.
    """
    cycle = coerce_cycle(cycle)
    if cycle is BillingCycle.ONE_TIME:
        return anchor

    today = to_local_date(reference)
    start = to_local_date(anchor)
    return occurrence(start, cycle, first_index_on_or_after(start, cycle, today))


def resolve_anchor(subscription: Subscription, reference: Instant) -> date:
    """
    Date recurrence is computed from.

    An explicit start date is authoritative. Otherwise the creation timestamp
    is used, with its day of month moved to the billing day for month-aligned
    cycles (rolling over when the month is too short). The reference instant
    is the last resort for records carrying neither timestamp.
    """
    if is_epoch_millis(subscription.start_date):
        return to_local_date(subscription.start_date)

    if is_epoch_millis(subscription.created_at):
        anchor = to_local_date(subscription.created_at)
    else:
        anchor = to_local_date(reference)

    cycle = coerce_cycle(subscription.billing_cycle)
    if cycle.is_month_aligned and subscription.billing_day:
        anchor = with_day_of_month(anchor, subscription.billing_day)
    return anchor
