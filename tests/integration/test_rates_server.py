"""
Integration tests for the exchange rate client against the mock rate server.

The mock server is mounted in-process through httpx's ASGI transport, so the
real client code path (request, status check, JSON parsing, caching) runs
without network access. To run it standalone instead:
    uvicorn mocks.rates_server.main:app --port 8081
"""

import httpx
import pytest

from billing_engine.domain.currency import STATIC_RATES_FROM_USD
from billing_engine.infrastructure.clients.exchange_rates import ExchangeRateClient
from mocks.rates_server.main import app as rates_app


@pytest.fixture
def mock_server_client() -> ExchangeRateClient:
    return ExchangeRateClient(
        primary_url="http://rates.local/v1/currencies/usd.json",
        fallback_url="http://rates.local/v1/currencies/usd.json",
        transport=httpx.ASGITransport(app=rates_app),
    )


@pytest.mark.integration
async def test_client_reads_mock_server_rates(mock_server_client: ExchangeRateClient):
    rates = await mock_server_client.get_rates()

    assert set(rates.rates_from_usd) == set(STATIC_RATES_FROM_USD)
    assert rates.rate_from_usd("EUR") == STATIC_RATES_FROM_USD["EUR"]
    assert rates("USD", "USD") == 1
    assert rates.as_of is not None


@pytest.mark.integration
async def test_unknown_primary_path_uses_fallback():
    client = ExchangeRateClient(
        primary_url="http://rates.local/v1/currencies/eur.json",
        fallback_url="http://rates.local/v1/currencies/usd.json",
        transport=httpx.ASGITransport(app=rates_app),
    )

    rates = await client.get_rates()
    assert "JPY" in rates
