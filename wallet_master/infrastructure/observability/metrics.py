"""Prometheus metrics for payment outcomes, gateway latency and reconciliation incidents"""

from prometheus_client import Counter, Histogram

# Payment metrics
payment_operation_counter = Counter(
    "wallet_payment_operations_total",
    "Orchestrated payment operations by outcome",
    ["operation", "outcome"],  # outcome: succeeded | <error category>
)

payment_amount_histogram = Histogram(
    "wallet_payment_amount_dollars",
    "Amounts of successful payment operations",
    ["operation"],
    buckets=[1, 10, 50, 100, 250, 500, 1000, 5000],
)

# Gateway metrics
gateway_latency_histogram = Histogram(
    "wallet_gateway_request_seconds",
    "Payment gateway call latency",
    ["gateway", "step"],  # step: create | process | refund
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Reconciliation metrics
reconciliation_incident_counter = Counter(
    "wallet_reconciliation_incidents_total",
    "Payments confirmed by the gateway that the ledger failed to record",
    ["operation"],
)

webhook_latency_histogram = Histogram(
    "wallet_reconciliation_webhook_seconds",
    "Reconciliation webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "wallet_reconciliation_webhook_failures_total",
    "Failed reconciliation webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_payment(operation: str, outcome: str, amount=None) -> None:
    """Record the final outcome of an orchestrated payment"""
    payment_operation_counter.labels(operation=operation, outcome=outcome).inc()
    if outcome == "succeeded" and amount is not None:
        payment_amount_histogram.labels(operation=operation).observe(float(amount))
