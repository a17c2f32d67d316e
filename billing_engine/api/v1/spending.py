"""Spending endpoints - date ranges, monthly and category aggregation"""

import time
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request

from billing_engine.api.dependencies import get_exchange_rate_client, get_request_id
from billing_engine.api.v1.schemas import (
    CategorySpendingResponse,
    CategorySpendingSchema,
    CurrencyDetectRequest,
    CurrencyDetectResponse,
    DateRangeResponse,
    DefaultPriceResponse,
    MonthlySpendingResponse,
    SpendingPointSchema,
    SpendingRequest,
)
from billing_engine.domain.currency import RateTable, default_price_in_currency, detect_mixed_currencies
from billing_engine.domain.models import Subscription
from billing_engine.domain.spending import (
    calculate_spending_by_category,
    calculate_spending_by_month,
    filter_subscriptions,
    get_date_range,
)
from billing_engine.infrastructure.clients.exchange_rates import ExchangeRateClient
from billing_engine.infrastructure.observability.logging import log_spending_summary
from billing_engine.infrastructure.observability.metrics import record_spending_calculation

router = APIRouter()


@router.get("/spending/range/{preset}", response_model=DateRangeResponse)
def get_spending_range(preset: str, now: Optional[datetime] = None):
    """Window for a named preset (6months, ytd, year, alltime); unknown names act as 6months"""
    date_range = get_date_range(preset, now or datetime.now())
    return DateRangeResponse(
        start_date=date_range.start_date,
        end_date=date_range.end_date,
        label=date_range.label,
    )


def _needs_conversion(subscriptions: List[Subscription], primary_currency: Optional[str]) -> bool:
    """Whether any amount would have to change currency"""
    codes = set(detect_mixed_currencies(subscriptions).currencies)
    if primary_currency:
        codes.add(primary_currency.upper())
    return len(codes) > 1


async def _resolve_rates(
    subscriptions: List[Subscription],
    primary_currency: Optional[str],
    rate_client: ExchangeRateClient,
) -> Optional[RateTable]:
    """Fully resolved rate table, or None for single-currency requests"""
    if not _needs_conversion(subscriptions, primary_currency):
        return None
    return await rate_client.get_rates()


@router.post("/spending/monthly", response_model=MonthlySpendingResponse)
async def get_monthly_spending(
    request_body: SpendingRequest,
    request: Request,
    rate_client: ExchangeRateClient = Depends(get_exchange_rate_client),
):
    """
    Spending per calendar month over the requested window.

    Flow:
    1. Resolve exchange rates if the set spans currencies (failures are
       mapped to 503/422 by the app-level handlers)
    2. Bucket past charges per month (zero months included)
    3. Return buckets with their total
    """
    start_time = time.time()
    request_id = get_request_id(request)
    subscriptions = [s.to_domain() for s in request_body.subscriptions]
    active = filter_subscriptions(subscriptions, request_body.include_paused)
    currency_info = detect_mixed_currencies(active)
    currency = request_body.primary_currency or currency_info.primary_currency

    rates = await _resolve_rates(active, request_body.primary_currency, rate_client)
    points = calculate_spending_by_month(
        subscriptions,
        request_body.start_date,
        request_body.end_date,
        include_paused=request_body.include_paused,
        primary_currency=currency,
        rates=rates,
    )

    total = sum(point.amount for point in points)
    record_spending_calculation("monthly")
    log_spending_summary(
        request_id, "monthly", len(subscriptions), currency, total, (time.time() - start_time) * 1000
    )

    return MonthlySpendingResponse(
        currency=currency.upper(),
        has_mixed_currencies=currency_info.has_mixed_currencies,
        points=[
            SpendingPointSchema(month=p.month, year=p.year, amount=p.amount, full_label=p.full_label)
            for p in points
        ],
        total=total,
    )


@router.post("/spending/categories", response_model=CategorySpendingResponse)
async def get_category_spending(
    request_body: SpendingRequest,
    request: Request,
    rate_client: ExchangeRateClient = Depends(get_exchange_rate_client),
):
    """Spending per category over the requested window, highest first"""
    start_time = time.time()
    request_id = get_request_id(request)
    subscriptions = [s.to_domain() for s in request_body.subscriptions]
    active = filter_subscriptions(subscriptions, request_body.include_paused)
    currency_info = detect_mixed_currencies(active)
    currency = request_body.primary_currency or currency_info.primary_currency
    custom_categories = (
        [c.to_domain() for c in request_body.custom_categories]
        if request_body.custom_categories is not None
        else None
    )

    rates = await _resolve_rates(active, request_body.primary_currency, rate_client)
    categories = calculate_spending_by_category(
        subscriptions,
        request_body.start_date,
        request_body.end_date,
        include_paused=request_body.include_paused,
        custom_categories=custom_categories,
        primary_currency=currency,
        rates=rates,
    )

    total = sum(c.amount for c in categories)
    record_spending_calculation("category")
    log_spending_summary(
        request_id, "category", len(subscriptions), currency, total, (time.time() - start_time) * 1000
    )

    return CategorySpendingResponse(
        currency=currency.upper(),
        has_mixed_currencies=currency_info.has_mixed_currencies,
        categories=[
            CategorySpendingSchema(
                category=c.category,
                amount=c.amount,
                percentage=c.percentage,
                custom_color=c.custom_color,
            )
            for c in categories
        ],
    )


@router.post("/currencies/detect", response_model=CurrencyDetectResponse)
def detect_currencies(request_body: CurrencyDetectRequest):
    """Distinct currencies of the active set, in first-seen order"""
    info = detect_mixed_currencies(s.to_domain() for s in request_body.subscriptions)
    return CurrencyDetectResponse(
        has_mixed_currencies=info.has_mixed_currencies,
        currencies=info.currencies,
        primary_currency=info.primary_currency,
    )


@router.get("/currencies/{code}/default-price", response_model=DefaultPriceResponse)
def get_default_price(code: str, price_usd: float = Query(..., ge=0)):
    """Catalog USD price shown in the user's currency (whole units for JPY-like currencies)"""
    static_rates = RateTable.static()
    currency = code.upper()
    return DefaultPriceResponse(
        currency=currency,
        price_usd=price_usd,
        price=default_price_in_currency(price_usd, currency, static_rates),
        converted=currency in static_rates,
    )
