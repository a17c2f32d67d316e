"""Currency detection and conversion for mixed-currency subscription sets"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable, Optional

from billing_engine.config import settings
from billing_engine.domain.exceptions import ExchangeRateUnavailableError
from billing_engine.domain.models import CurrencyInfo, Subscription, SubscriptionStatus

# (from_code, to_code) -> multiplier turning an amount in from_code into to_code
RateLookup = Callable[[str, str], float]

# Approximate fallback rates: 1 USD = X of the currency (late 2024)
STATIC_RATES_FROM_USD: Dict[str, float] = {
    "USD": 1,
    # Major world currencies
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 149.5,
    "CNY": 7.24,
    "CHF": 0.88,
    # North America
    "CAD": 1.36,
    "MXN": 17.15,
    # Europe
    "SEK": 10.42,
    "NOK": 10.68,
    "DKK": 6.87,
    "PLN": 3.97,
    "CZK": 22.85,
    "HUF": 356.5,
    "RON": 4.58,
    "BGN": 1.8,
    "HRK": 6.93,
    "RUB": 92.5,
    "UAH": 37.5,
    "TRY": 32.5,
    "ISK": 137.5,
    # Asia Pacific
    "AUD": 1.53,
    "NZD": 1.64,
    "HKD": 7.82,
    "SGD": 1.34,
    "KRW": 1320,
    "TWD": 31.5,
    "INR": 83.2,
    "IDR": 15650,
    "MYR": 4.47,
    "PHP": 55.8,
    "THB": 35.2,
    "VND": 24500,
    "PKR": 278,
    "BDT": 110,
    # Middle East
    "AED": 3.67,
    "SAR": 3.75,
    "ILS": 3.72,
    "QAR": 3.64,
    "KWD": 0.31,
    "BHD": 0.38,
    "OMR": 0.38,
    "JOD": 0.71,
    "EGP": 30.9,
    # Africa
    "ZAR": 18.7,
    "NGN": 1550,
    "KES": 153,
    "GHS": 12.5,
    "MAD": 10.05,
    # South America
    "BRL": 4.97,
    "ARS": 870,
    "CLP": 880,
    "COP": 3950,
    "PEN": 3.72,
    # Caribbean
    "JMD": 155,
    "TTD": 6.78,
    "BBD": 2.02,
}


@dataclass(frozen=True)
class RateTable:
    """
    Immutable USD-based exchange rate snapshot usable as a RateLookup.

    Cross rates go through USD: rate(from -> to) = usd[to] / usd[from].
    Unknown codes raise instead of falling back to 1:1.
    """

    rates_from_usd: Dict[str, float] = field(default_factory=dict)
    as_of: Optional[str] = None

    @classmethod
    def static(cls) -> "RateTable":
        return cls(rates_from_usd=dict(STATIC_RATES_FROM_USD), as_of="static")

    def __contains__(self, code: str) -> bool:
        return code.upper() in self.rates_from_usd

    def rate_from_usd(self, code: str) -> float:
        rate = self.rates_from_usd.get(code.upper())
        if rate is None or rate <= 0:
            raise ExchangeRateUnavailableError(f"No exchange rate for {code.upper()}")
        return rate

    def __call__(self, from_code: str, to_code: str) -> float:
        return self.rate_from_usd(to_code) / self.rate_from_usd(from_code)


def same_currency(a: str, b: str) -> bool:
    return a.upper() == b.upper()


def convert_currency(amount: float, from_code: str, to_code: str, rates: RateLookup) -> float:
    """
    Convert an amount between currencies using the injected rate source.

    Identical codes (case-insensitive) return the amount untouched without
    consulting the rate source. Rate lookup failures propagate.
    """
    if same_currency(from_code, to_code):
        return amount
    return amount * rates(from_code, to_code)


def detect_mixed_currencies(
    subscriptions: Iterable[Subscription],
    default_currency: Optional[str] = None,
) -> CurrencyInfo:
    """
    Collect the distinct currencies of non-archived subscriptions.

    Codes are upper-cased and kept in first-seen order; the first one is the
    primary currency.
    """
    currencies: list[str] = []
    for sub in subscriptions:
        if sub.effective_status is SubscriptionStatus.ARCHIVED or not sub.currency:
            continue
        code = sub.currency.upper()
        if code not in currencies:
            currencies.append(code)

    return CurrencyInfo(
        has_mixed_currencies=len(currencies) > 1,
        currencies=currencies,
        primary_currency=currencies[0] if currencies else (default_currency or settings.default_currency),
    )


def _round_half_up(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def convert_from_usd(amount_usd: float, target_currency: str, rates: Optional[RateTable] = None) -> float:
    """
    Convert a USD price into the target currency for display.

    High-value currencies (rate > 100, e.g. JPY, KRW) round to whole units,
    everything else to cents. An unknown currency returns the USD amount.
    """
    rates = rates or RateTable.static()
    if target_currency not in rates:
        logging.warning(
            "Unknown currency, using USD value",
            extra={"currency": target_currency},
        )
        return amount_usd

    rate = rates.rate_from_usd(target_currency)
    converted = amount_usd * rate
    return _round_half_up(converted, 0 if rate > 100 else 2)


def default_price_in_currency(
    price_usd: Optional[float],
    currency: str,
    rates: Optional[RateTable] = None,
) -> Optional[float]:
    """Default service price in the user's currency, None if the service has no price"""
    if price_usd is None:
        return None
    return convert_from_usd(price_usd, currency, rates)
