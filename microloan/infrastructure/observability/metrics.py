"""Prometheus metrics for loan origination, repayments and statement exports"""

from prometheus_client import Counter, Histogram

# Origination metrics
loans_created_counter = Counter(
    "microloan_loans_created_total",
    "Loans created with their schedule",
)

loan_rejections_counter = Counter(
    "microloan_loan_rejections_total",
    "Loan creations turned down by a business rule",
    ["rule"],
)

loan_conflicts_counter = Counter(
    "microloan_loan_conflicts_total",
    "Writes rejected because a concurrent write won",
)

# Repayment metrics
installment_toggle_counter = Counter(
    "microloan_installment_toggles_total",
    "Installments marked paid or unpaid",
    ["outcome"],  # paid | unpaid
)

overdue_marked_counter = Counter(
    "microloan_installments_marked_overdue_total",
    "Installments persisted as OVERDUE by the sweep",
)

# Documents
statements_rendered_counter = Counter(
    "microloan_statements_rendered_total",
    "Schedule statements exported",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_toggle(paid: bool) -> None:
    """Record an installment paid/unpaid toggle"""
    installment_toggle_counter.labels(outcome="paid" if paid else "unpaid").inc()
