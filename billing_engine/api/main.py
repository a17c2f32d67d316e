"""FastAPI application factory"""

import logging
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from billing_engine.api.dependencies import get_exchange_rate_client, get_request_id
from billing_engine.api.middleware import RequestIDMiddleware, MetricsMiddleware
from billing_engine.api.v1 import billing, spending
from billing_engine.domain.exceptions import (
    DomainException,
    ExchangeRateAPIError,
    ExchangeRateUnavailableError,
)
from billing_engine.infrastructure.clients.exchange_rates import ExchangeRateClient
from billing_engine.infrastructure.observability.logging import setup_logging
from billing_engine.config import settings

# Setup structured logging
setup_logging(settings.log_level)

# Engine errors -> HTTP status; anything else from the domain layer is a bad request
ERROR_STATUS = {
    ExchangeRateAPIError: 503,
    ExchangeRateUnavailableError: 422,
}


def _error_status(exc: DomainException) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status
    return 400


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Translate engine errors into JSON responses carrying the request ID"""
    request_id = get_request_id(request)
    status = _error_status(exc)

    if status >= 500:
        logging.error(f"Upstream dependency failed: {exc}", extra={"request_id": request_id})
        detail = "Exchange rate service unavailable"
    else:
        logging.warning(f"Request rejected: {exc}", extra={"request_id": request_id})
        detail = str(exc)

    return JSONResponse(status_code=status, content={"detail": detail, "request_id": request_id})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Subscription Billing Engine",
        description="Billing recurrence and spending aggregation service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    @app.get("/health")
    def health_check(rate_client: ExchangeRateClient = Depends(get_exchange_rate_client)):
        """Liveness plus the engine's calendar/currency defaults and rate snapshot date"""
        cached = rate_client.cached_rates
        return {
            "status": "ok",
            "service": settings.service_name,
            "timezone": settings.timezone or "local",
            "default_currency": settings.default_currency,
            "rates_as_of": cached.as_of if cached is not None else None,
        }

    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(billing.router, prefix="/v1", tags=["billing"])
    app.include_router(spending.router, prefix="/v1", tags=["spending"])

    return app


app = create_app()
