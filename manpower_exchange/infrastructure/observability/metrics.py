"""Prometheus metrics for transaction operations, schedule conflicts and webhook performance"""

from prometheus_client import Counter, Histogram

# Transaction metrics
transaction_operations_counter = Counter(
    "manpower_transaction_operations_total",
    "Transaction lifecycle operations",
    ["operation", "outcome"],  # create|replace|update_status|delete x ok|invalid|not_found|conflict
)

transaction_conflicts_counter = Counter(
    "manpower_transaction_conflicts_total",
    "Candidate loans rejected because the employee is already committed",
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "events_webhook_latency_seconds",
    "Lifecycle event webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "events_webhook_failures_total",
    "Failed lifecycle event deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction_operation(operation: str, outcome: str) -> None:
    """Count one lifecycle operation by outcome; conflicts are also counted separately"""
    transaction_operations_counter.labels(operation=operation, outcome=outcome).inc()
    if outcome == "conflict":
        transaction_conflicts_counter.inc()
