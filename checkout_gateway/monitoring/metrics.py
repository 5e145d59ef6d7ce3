"""
Prometheus metrics for checkout processing.

Tracks:
- Gateway HTTP requests by resource and outcome
- Validated gateway results by resource and reason
- Processing attempts by operation, mode and outcome
- Reconciliation adjustments by action
"""
from prometheus_client import Counter

# Gateway transport metrics
gateway_requests_total = Counter(
    "gateway_requests_total",
    "Total gateway HTTP requests",
    ["resource", "operation", "outcome"],  # operation: create, fetch; outcome: ok, unreachable
)

# Result validation metrics
gateway_results_total = Counter(
    "gateway_results_total",
    "Total gateway response envelopes judged",
    ["resource", "outcome"],  # ok or a reason code
)

# Orchestration metrics
payment_processing_total = Counter(
    "payment_processing_total",
    "Total payment processing attempts",
    ["operation", "mode", "outcome"],
)

reconciliation_adjustments_total = Counter(
    "reconciliation_adjustments_total",
    "Total reconciliation decisions",
    ["action"],  # refund, top_up, none
)
