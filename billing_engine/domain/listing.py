"""Subscription list projection - next charge and run-rate per subscription"""

from billing_engine.domain.models import Subscription, SubscriptionListItem, SubscriptionStatus
from billing_engine.domain.monetary import monthly_equivalent
from billing_engine.domain.recurrence import next_billing_date, resolve_anchor
from billing_engine.utils.date_utils import Instant, diff_days, to_local_date


def to_list_item(subscription: Subscription, now: Instant) -> SubscriptionListItem:
    """
    Project a subscription into a list row.

    Paused and archived subscriptions keep their next billing date but
    contribute nothing to the monthly run-rate. Reminder scheduling reuses
    next_billing_date from here rather than deriving it again.
    """
    anchor = resolve_anchor(subscription, now)
    next_date = to_local_date(next_billing_date(now, subscription.billing_cycle, anchor))
    status = subscription.effective_status

    if status in (SubscriptionStatus.PAUSED, SubscriptionStatus.ARCHIVED):
        run_rate = 0.0
    else:
        run_rate = monthly_equivalent(subscription.amount, subscription.billing_cycle)

    return SubscriptionListItem(
        id=subscription.id,
        service_name=subscription.service_name,
        category=subscription.category,
        amount=subscription.amount,
        currency=subscription.currency,
        billing_cycle=subscription.billing_cycle,
        billing_day=subscription.billing_day,
        notes=subscription.notes,
        monthly_equivalent=run_rate,
        next_billing_date=next_date,
        next_billing_in_days=diff_days(now, next_date),
        status=status,
    )
