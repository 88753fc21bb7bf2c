"""Prometheus metrics for verdicts, market rate provenance, and alert delivery"""

from prometheus_client import Counter, Histogram

# Engine metrics
verdict_counter = Counter(
    "refi_verdict_total",
    "Refinance analyses by verdict color",
    ["color"],  # green | yellow | red
)

best_scenario_counter = Counter(
    "refi_best_scenario_total",
    "Winning scenario per analysis",
    ["scenario"],
)

# Market rate metrics
rate_lookup_counter = Counter(
    "refi_rate_lookup_total",
    "Market rate lookups by provenance",
    ["source"],  # live | cached | fallback
)

rate_fetch_failure_counter = Counter(
    "refi_rate_fetch_failures_total",
    "Failed or rejected PMMS fetches",
    ["reason"],  # error | anomaly
)

rate_fetch_latency_histogram = Histogram(
    "refi_rate_fetch_latency_seconds",
    "PMMS page fetch time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 8.0],
)

# Alert email metrics
alert_notification_counter = Counter(
    "refi_alert_notifications_total",
    "Rate alert emails by outcome",
    ["outcome"],  # sent | dry_run | failed
)

email_failure_counter = Counter(
    "refi_email_failures_total",
    "Failed email delivery attempts",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_verdict(color: str, best_scenario_id: str) -> None:
    """Record the verdict color and winning scenario of one analysis"""
    verdict_counter.labels(color=color).inc()
    best_scenario_counter.labels(scenario=best_scenario_id).inc()


def record_rate_lookup(source: str) -> None:
    rate_lookup_counter.labels(source=source).inc()
