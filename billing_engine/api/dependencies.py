"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from billing_engine.infrastructure.clients.exchange_rates import ExchangeRateClient

# Shared so fetched rates stay cached across requests
_exchange_rate_client = ExchangeRateClient()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_exchange_rate_client() -> ExchangeRateClient:
    """Provide the exchange rate client instance"""
    return _exchange_rate_client
