"""Prometheus metrics for aggregation volume and exchange-rate fetch health"""

from prometheus_client import Counter, Histogram

# Aggregation metrics
spending_calculation_counter = Counter(
    "billing_spending_calculations_total",
    "Spending aggregations computed",
    ["kind"],  # monthly | category
)

history_entries_histogram = Histogram(
    "billing_history_entries",
    "Payment history entries returned per request",
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

# Exchange rate metrics
rate_fetch_latency_histogram = Histogram(
    "exchange_rate_fetch_latency_seconds",
    "Exchange rate source response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

rate_fetch_failures_counter = Counter(
    "exchange_rate_fetch_failures_total",
    "Failed exchange rate fetches",
    ["source"],  # primary | fallback
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_spending_calculation(kind: str) -> None:
    """Count aggregation requests by kind"""
    spending_calculation_counter.labels(kind=kind).inc()
