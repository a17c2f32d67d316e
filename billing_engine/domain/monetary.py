"""Monthly run-rate normalization across billing cycles"""

import math
from decimal import Decimal

from billing_engine.domain.exceptions import UnsupportedBillingCycleError
from billing_engine.domain.models import BillingCycle
from billing_engine.domain.recurrence import coerce_cycle

# 52 weeks / 12 months ~ 4.33 weeks, 26 fortnights / 12 ~ 2.16
MULTIPLIERS = {
    BillingCycle.WEEKLY: 4.33,
    BillingCycle.BI_WEEKLY: 2.16,
    BillingCycle.MONTHLY: 1,
    BillingCycle.ONE_TIME: 0,
}
DIVISORS = {
    BillingCycle.QUARTERLY: 3,
    BillingCycle.SEMIANNUAL: 6,
    BillingCycle.YEARLY: 12,
}

if set(MULTIPLIERS) | set(DIVISORS) != set(BillingCycle):
    raise UnsupportedBillingCycleError("Monthly conversion does not cover every billing cycle")


def sanitize_amount(value) -> float:
    """Non-numeric, non-finite or negative amounts become 0"""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return 0.0
    amount = float(value)
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def monthly_equivalent(amount: float, cycle: BillingCycle) -> float:
    """
    Convert a per-cycle charge into a comparable monthly figure.

    One-Time charges contribute nothing to an ongoing run-rate. The result is
    an approximation meant for cross-cycle comparison, not calendar-exact
    billing totals.
    """
    safe_amount = sanitize_amount(amount)
    cycle = coerce_cycle(cycle)
    if cycle in DIVISORS:
        return safe_amount / DIVISORS[cycle]
    return safe_amount * MULTIPLIERS[cycle]
