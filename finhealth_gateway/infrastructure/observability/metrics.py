"""Prometheus metrics for analysis outcomes, model provider health and HTTP latency"""

from prometheus_client import Counter, Histogram

# Analysis metrics
analysis_counter = Counter(
    "finhealth_analysis_total",
    "Total financial health analyses produced",
    ["source"],  # ai | offline
)

analysis_fallback_counter = Counter(
    "finhealth_analysis_fallback_total",
    "Analyses that fell back to offline computation",
    ["reason"],  # no_transactions | providers_exhausted | unparseable | incomplete
)

health_score_histogram = Histogram(
    "finhealth_health_score",
    "Distribution of issued health scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

# Model provider metrics
provider_attempt_counter = Counter(
    "llm_provider_attempts_total",
    "Model calls by provider and outcome",
    ["provider", "outcome"],  # success | HttpError | ModelTimeout | NetworkError | ContentBlocked | ...
)

llm_latency_histogram = Histogram(
    "llm_request_latency_seconds",
    "Model provider response time",
    ["provider"],
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

rate_limit_rejections_counter = Counter(
    "llm_rate_limit_rejections_total",
    "Model calls rejected by the local rate limiter",
    ["provider"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_analysis(source: str, health_score: int) -> None:
    """Record analysis outcome for monitoring AI availability and score distribution"""
    analysis_counter.labels(source=source).inc()
    health_score_histogram.observe(health_score)


def record_provider_attempt(provider: str, outcome: str) -> None:
    provider_attempt_counter.labels(provider=provider, outcome=outcome).inc()
