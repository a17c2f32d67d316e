"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Callable
from fastapi.testclient import TestClient

from billing_engine.api.dependencies import get_exchange_rate_client
from billing_engine.api.main import create_app
from billing_engine.config import settings
from billing_engine.domain.currency import RateTable
from billing_engine.domain.exceptions import ExchangeRateAPIError
from billing_engine.domain.models import BillingCycle, Subscription


def ms(year: int, month: int, day: int) -> int:
    """Epoch millis at noon UTC on the given day"""
    return int(datetime(year, month, day, 12, tzinfo=timezone.utc).timestamp() * 1000)


class FakeRateClient:
    """Stand-in for ExchangeRateClient that counts fetches"""

    def __init__(self, rates: RateTable | None = None, error: Exception | None = None):
        self.rates = rates
        self.error = error
        self.calls = 0
        self.cached_rates = rates

    async def get_rates(self, force_refresh: bool = False) -> RateTable:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rates


@pytest.fixture(autouse=True)
def utc_calendar(monkeypatch):
    """Pin local midnight to UTC so epoch-millis fixtures map to stable dates"""
    monkeypatch.setattr(settings, "timezone", "UTC")


@pytest.fixture
def make_subscription() -> Callable[..., Subscription]:
    """Factory for subscriptions with sensible defaults"""

    def _make(**overrides) -> Subscription:
        fields = {
            "id": "sub_1",
            "category": "Streaming",
            "amount": 9.99,
            "currency": "USD",
            "billing_cycle": BillingCycle.MONTHLY,
            "billing_day": 15,
            "created_at": ms(2023, 1, 15),
            "service_name": "Netflix",
        }
        fields.update(overrides)
        return Subscription(**fields)

    return _make


@pytest.fixture
def usd_eur_rates() -> RateTable:
    return RateTable(rates_from_usd={"USD": 1.0, "EUR": 0.8}, as_of="2024-06-01")


@pytest.fixture
def rate_client(usd_eur_rates: RateTable) -> FakeRateClient:
    return FakeRateClient(rates=usd_eur_rates)


@pytest.fixture
def client(rate_client: FakeRateClient) -> TestClient:
    """Create FastAPI test client with a fake exchange rate source"""
    app = create_app()
    app.dependency_overrides[get_exchange_rate_client] = lambda: rate_client
    return TestClient(app)


@pytest.fixture
def failing_client() -> TestClient:
    """Test client whose exchange rate source is down"""
    app = create_app()
    failing = FakeRateClient(error=ExchangeRateAPIError("All exchange rate sources failed"))
    app.dependency_overrides[get_exchange_rate_client] = lambda: failing
    return TestClient(app)
