"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

from billing_engine.domain.models import (
    BillingCycle,
    CustomCategory,
    Subscription,
    SubscriptionStatus,
)


class SubscriptionSchema(BaseModel):
    """Subscription record as stored by the client"""

    id: str = Field(..., min_length=1, description="Subscription identifier")
    category: str = "Other"
    amount: float = Field(..., description="Charge per billing cycle")
    currency: str = "USD"
    billing_cycle: BillingCycle
    billing_day: int = Field(1, description="Day of month for month-aligned cycles")
    created_at: Optional[int] = Field(None, description="Creation time, epoch millis")
    start_date: Optional[int] = Field(None, description="Explicit anchor, epoch millis")
    end_date: Optional[int] = Field(None, description="Exclusive end, epoch millis")
    status: Optional[SubscriptionStatus] = None
    is_archived: bool = False
    service_name: str = ""
    notes: Optional[str] = None

    def to_domain(self) -> Subscription:
        return Subscription(
            id=self.id,
            category=self.category,
            amount=self.amount,
            currency=self.currency,
            billing_cycle=self.billing_cycle,
            billing_day=self.billing_day,
            created_at=self.created_at,
            start_date=self.start_date,
            end_date=self.end_date,
            status=self.status,
            is_archived=self.is_archived,
            service_name=self.service_name,
            notes=self.notes,
        )


class CustomCategorySchema(BaseModel):
    """User-defined category"""

    name: str = Field(..., min_length=1)
    color: Optional[str] = None

    def to_domain(self) -> CustomCategory:
        return CustomCategory(name=self.name, color=self.color)


class NextBillingRequest(BaseModel):
    """Request body for POST /v1/billing/next"""

    subscription: SubscriptionSchema
    now: datetime


class NextBillingResponse(BaseModel):
    """Response for POST /v1/billing/next"""

    next_billing_date: date
    next_billing_in_days: int
    billing_cycle_label: str


class PaymentHistoryRequest(BaseModel):
    """Request body for POST /v1/billing/history"""

    subscription: SubscriptionSchema
    now: datetime
    future_count: int = Field(6, ge=0, le=500)
    max_past_count: int = Field(100, ge=0, le=1000)


class PaymentEntrySchema(BaseModel):
    """Single past or upcoming charge"""

    date: date
    amount: float
    currency: str
    is_past: bool


class PaymentHistoryResponse(BaseModel):
    """Response for POST /v1/billing/history"""

    subscription_id: str
    entries: List[PaymentEntrySchema]
    payments_made: int
    total_spent: float
    last_payment_date: Optional[date] = None
    duration: str


class ListItemsRequest(BaseModel):
    """Request body for POST /v1/billing/items"""

    subscriptions: List[SubscriptionSchema]
    now: datetime


class ListItemSchema(BaseModel):
    """Subscription list row"""

    id: str
    service_name: str
    category: str
    amount: float
    currency: str
    billing_cycle: BillingCycle
    billing_day: int
    notes: Optional[str] = None
    monthly_equivalent: float
    next_billing_date: date
    next_billing_in_days: int
    status: SubscriptionStatus


class ListItemsResponse(BaseModel):
    """Response for POST /v1/billing/items"""

    items: List[ListItemSchema]


class DateRangeResponse(BaseModel):
    """Response for GET /v1/spending/range/{preset}"""

    start_date: datetime
    end_date: datetime
    label: str


class SpendingRequest(BaseModel):
    """Request body for POST /v1/spending/monthly and /v1/spending/categories"""

    subscriptions: List[SubscriptionSchema]
    start_date: datetime
    end_date: datetime
    include_paused: bool = False
    primary_currency: Optional[str] = Field(None, min_length=3, max_length=3)
    custom_categories: Optional[List[CustomCategorySchema]] = None


class SpendingPointSchema(BaseModel):
    """Spending for one month"""

    month: str
    year: int
    amount: float
    full_label: str


class MonthlySpendingResponse(BaseModel):
    """Response for POST /v1/spending/monthly"""

    currency: str
    has_mixed_currencies: bool
    points: List[SpendingPointSchema]
    total: float


class CategorySpendingSchema(BaseModel):
    """Spending for one category"""

    category: str
    amount: float
    percentage: float
    custom_color: Optional[str] = None


class CategorySpendingResponse(BaseModel):
    """Response for POST /v1/spending/categories"""

    currency: str
    has_mixed_currencies: bool
    categories: List[CategorySpendingSchema]


class CurrencyDetectRequest(BaseModel):
    """Request body for POST /v1/currencies/detect"""

    subscriptions: List[SubscriptionSchema]


class CurrencyDetectResponse(BaseModel):
    """Response for POST /v1/currencies/detect"""

    has_mixed_currencies: bool
    currencies: List[str]
    primary_currency: str


class DefaultPriceResponse(BaseModel):
    """Response for GET /v1/currencies/{code}/default-price"""

    currency: str
    price_usd: float
    price: float
    converted: bool = Field(..., description="False when the currency is unknown and the USD price is echoed")
