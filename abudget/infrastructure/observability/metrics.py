"""Prometheus metrics for period commits, validation failures and transaction assignment"""

from prometheus_client import Counter, Histogram

# Period metrics
period_commit_counter = Counter(
    "abudget_period_commit_total",
    "Budget period commit attempts",
    ["outcome"],  # committed | rejected | failed
)

validation_failure_counter = Counter(
    "abudget_validation_failures_total",
    "Validation failures by error kind",
    ["error"],
)

# Transaction metrics
transaction_assignment_counter = Counter(
    "abudget_transactions_recorded_total",
    "Recorded transactions by period assignment",
    ["assignment"],  # assigned | orphaned
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_validation_failure(error: Exception) -> None:
    validation_failure_counter.labels(error=type(error).__name__).inc()


def record_transaction(assigned: bool) -> None:
    transaction_assignment_counter.labels(assignment="assigned" if assigned else "orphaned").inc()
