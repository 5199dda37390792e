"""
Prometheus metrics instrumentation for the Payment Bridge.

This module sets up FastAPI instrumentation to expose metrics in Prometheus format
at the /metrics endpoint, plus the bridge's own payment counters.
"""

from prometheus_fastapi_instrumentator import Instrumentator
from prometheus_client import Counter

charges_total = Counter(
    "bridge_charges_total",
    "Total number of successful charges",
    ["source"],  # bank_account, credit_card, transfer
)

charged_cents_total = Counter(
    "bridge_charged_cents_total",
    "Total amount charged, in cents",
    ["source"],
)

verifications_total = Counter(
    "bridge_verifications_total",
    "Bank account and identity verification outcomes",
    ["kind", "outcome"],
)


def record_charge(source: str, cents: int) -> None:
    charges_total.labels(source=source).inc()
    charged_cents_total.labels(source=source).inc(cents)


def init_metrics(app):
    """
    Initialize Prometheus metrics instrumentation for the FastAPI app.

    Args:
        app: FastAPI application instance

    Returns:
        Instrumentator instance
    """
    inst = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
    )
    inst.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
    return inst
