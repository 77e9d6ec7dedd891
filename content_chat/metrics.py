"""
Prometheus metrics for the content chat service.

Tracks HTTP traffic, search variants and fallbacks, LLM calls and
content ingestion outcomes.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "content_chat_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "content_chat_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Search metrics
search_queries_total = Counter(
    "content_chat_search_queries_total",
    "Total content searches",
    ["variant", "status"],
)

search_results_per_query = Histogram(
    "content_chat_search_results_per_query",
    "Number of results returned per search",
    ["variant"],
    buckets=(0, 1, 3, 5, 10, 25, 50, 100),
)

search_fallbacks_total = Counter(
    "content_chat_search_fallbacks_total",
    "Intelligent searches degraded to plain search",
)

# LLM metrics
llm_requests_total = Counter(
    "content_chat_llm_requests_total",
    "Total LLM completion requests",
    ["provider", "mode", "status"],
)

# Ingestion metrics
ingested_entries_total = Counter(
    "content_chat_ingested_entries_total",
    "Content entries processed by bulk ingestion",
    ["outcome"],
)


def track_search(variant: str, status: str, result_count: int = 0) -> None:
    """Record one search call."""
    search_queries_total.labels(variant=variant, status=status).inc()
    if status == "success":
        search_results_per_query.labels(variant=variant).observe(result_count)


def track_request(method: str, endpoint: str, status: int, duration: float) -> None:
    """Record one HTTP request."""
    http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
        duration
    )


def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint response."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
