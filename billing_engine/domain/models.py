"""Domain models - pure Python dataclasses representing subscription billing entities"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional


class BillingCycle(str, Enum):
    """Recurrence cadence of a subscription"""

    WEEKLY = "Weekly"
    BI_WEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    SEMIANNUAL = "Semiannual"
    YEARLY = "Yearly"
    ONE_TIME = "One-Time"

    @property
    def is_recurring(self) -> bool:
        return self is not BillingCycle.ONE_TIME

    @property
    def is_month_aligned(self) -> bool:
        """Cycles whose charges land on a day of the month"""
        return self in (
            BillingCycle.MONTHLY,
            BillingCycle.QUARTERLY,
            BillingCycle.SEMIANNUAL,
            BillingCycle.YEARLY,
        )

    @property
    def label(self) -> str:
        return BILLING_CYCLE_LABELS[self]


BILLING_CYCLE_LABELS = {
    BillingCycle.ONE_TIME: "One-Time",
    BillingCycle.WEEKLY: "Weekly",
    BillingCycle.BI_WEEKLY: "Every 2 weeks",
    BillingCycle.MONTHLY: "Monthly",
    BillingCycle.QUARTERLY: "Every 3 months",
    BillingCycle.SEMIANNUAL: "Every 6 months",
    BillingCycle.YEARLY: "Yearly",
}


class SubscriptionStatus(str, Enum):
    """Lifecycle status of a subscription"""

    ACTIVE = "Active"
    PAUSED = "Paused"
    ARCHIVED = "Archived"


STATUS_VALUES = frozenset(s.value for s in SubscriptionStatus)


class DefaultCategory(str, Enum):
    """Built-in subscription categories"""

    STREAMING = "Streaming"
    MUSIC = "Music"
    SOFTWARE = "Software"
    UTILITIES = "Utilities"
    HEALTH = "Health"
    FOOD = "Food"
    EDUCATION = "Education"
    SHOPPING = "Shopping"
    AI = "AI"
    OTHER = "Other"


DEFAULT_CATEGORY_NAMES = frozenset(c.value for c in DefaultCategory)


@dataclass(frozen=True)
class CustomCategory:
    """User-defined category with an optional display color"""

    name: str
    color: Optional[str] = None


def resolve_category(name: Optional[str], custom_names: Optional[Iterable[str]] = None) -> str:
    """
    Map a raw category string onto a known category.

    Default categories always resolve to themselves. With a known custom
    category set, only those names are accepted; without one, any non-blank
    name is treated as a custom category. Everything else renders as Other.
    """
    if not name or not name.strip():
        return DefaultCategory.OTHER.value
    if name in DEFAULT_CATEGORY_NAMES:
        return name
    if custom_names is None:
        return name
    return name if name in set(custom_names) else DefaultCategory.OTHER.value


@dataclass(frozen=True)
class Subscription:
    """Subscription record as supplied by the persistence layer"""

    id: str
    category: str
    amount: float
    currency: str
    billing_cycle: BillingCycle
    billing_day: int = 1
    created_at: Optional[int] = None  # epoch millis
    start_date: Optional[int] = None  # epoch millis, anchors recurrence when present
    end_date: Optional[int] = None  # epoch millis, exclusive
    status: Optional[SubscriptionStatus] = None
    is_archived: bool = False
    service_name: str = ""
    notes: Optional[str] = None
    reminder_days: Optional[int] = None
    reminder_hour: Optional[int] = None

    @property
    def effective_status(self) -> SubscriptionStatus:
        """Status as an enum member; plain strings are accepted, unknown ones defer to is_archived"""
        if self.status in STATUS_VALUES:
            return SubscriptionStatus(self.status)
        return SubscriptionStatus.ARCHIVED if self.is_archived else SubscriptionStatus.ACTIVE


@dataclass
class PaymentHistoryEntry:
    """Single derived charge event"""

    date: date
    amount: float
    currency: str
    is_past: bool


@dataclass
class SpendingDataPoint:
    """Spending total for one calendar month"""

    month: str  # "Jan"
    year: int
    amount: float
    full_label: str  # "January 2025"


@dataclass
class CategorySpending:
    """Spending total for one category"""

    category: str
    amount: float
    percentage: float
    custom_color: Optional[str] = None


@dataclass
class DateRange:
    """Reporting window computed from a named preset"""

    start_date: datetime
    end_date: datetime
    label: str


@dataclass
class CurrencyInfo:
    """Result of scanning a subscription set for currencies"""

    has_mixed_currencies: bool
    currencies: List[str]
    primary_currency: str


@dataclass
class SubscriptionListItem:
    """List-row projection of a subscription"""

    id: str
    service_name: str
    category: str
    amount: float
    currency: str
    billing_cycle: BillingCycle
    billing_day: int
    notes: Optional[str]
    monthly_equivalent: float
    next_billing_date: date
    next_billing_in_days: int
    status: SubscriptionStatus


@dataclass
class SubscriptionDuration:
    """How long a subscription has been running"""

    years: int
    months: int
    days: int
    formatted: str
