"""POST /v1/billing/* - next charge, payment history and list rows"""

from fastapi import APIRouter

from billing_engine.api.v1.schemas import (
    ListItemSchema,
    ListItemsRequest,
    ListItemsResponse,
    NextBillingRequest,
    NextBillingResponse,
    PaymentEntrySchema,
    PaymentHistoryRequest,
    PaymentHistoryResponse,
)
from billing_engine.domain.history import (
    calculate_subscription_duration,
    calculate_total_spent,
    count_payments_made,
    generate_payment_history,
    get_last_payment_date,
)
from billing_engine.domain.listing import to_list_item
from billing_engine.infrastructure.observability.metrics import history_entries_histogram

router = APIRouter()


@router.post("/billing/next", response_model=NextBillingResponse)
def get_next_billing(request_body: NextBillingRequest):
    """
    Resolve the next charge date for one subscription.

    Notification scheduling uses this to decide when a reminder fires.
    """
    subscription = request_body.subscription.to_domain()
    item = to_list_item(subscription, request_body.now)

    return NextBillingResponse(
        next_billing_date=item.next_billing_date,
        next_billing_in_days=item.next_billing_in_days,
        billing_cycle_label=subscription.billing_cycle.label,
    )


@router.post("/billing/history", response_model=PaymentHistoryResponse)
def get_payment_history(request_body: PaymentHistoryRequest):
    """
    Past and upcoming charges for one subscription.

    Returns:
        Ascending entries plus payments made, total spent and duration
    """
    subscription = request_body.subscription.to_domain()
    now = request_body.now

    entries = generate_payment_history(
        subscription,
        now,
        future_count=request_body.future_count,
        max_past_count=request_body.max_past_count,
    )
    history_entries_histogram.observe(len(entries))

    return PaymentHistoryResponse(
        subscription_id=subscription.id,
        entries=[
            PaymentEntrySchema(date=e.date, amount=e.amount, currency=e.currency, is_past=e.is_past)
            for e in entries
        ],
        payments_made=count_payments_made(subscription, now),
        total_spent=calculate_total_spent(subscription, now),
        last_payment_date=get_last_payment_date(subscription, now),
        duration=calculate_subscription_duration(subscription, now).formatted,
    )


@router.post("/billing/items", response_model=ListItemsResponse)
def get_list_items(request_body: ListItemsRequest):
    """List rows with monthly run-rate and days until the next charge"""
    items = [to_list_item(s.to_domain(), request_body.now) for s in request_body.subscriptions]
    return ListItemsResponse(
        items=[
            ListItemSchema(
                id=item.id,
                service_name=item.service_name,
                category=item.category,
                amount=item.amount,
                currency=item.currency,
                billing_cycle=item.billing_cycle,
                billing_day=item.billing_day,
                notes=item.notes,
                monthly_equivalent=item.monthly_equivalent,
                next_billing_date=item.next_billing_date,
                next_billing_in_days=item.next_billing_in_days,
                status=item.status,
            )
            for item in items
        ]
    )
