"""Prometheus metrics collection for the API.

This module defines request, extraction, cache, and probe metrics and a
small helper class for recording them.
"""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("extractor_api", "Universal Extractor API application information")

# HTTP request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

# Extraction metrics
extractions_total = Counter(
    "extractions_total",
    "Total metadata extractions by outcome",
    ["status"],
)

extraction_duration_seconds = Histogram(
    "extraction_duration_seconds",
    "Full pipeline duration for cache misses in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

# Cache metrics
cache_lookups_total = Counter(
    "cache_lookups_total",
    "Lookup cache reads by result",
    ["result"],
)

# Size probe metrics
size_probes_total = Counter(
    "size_probes_total",
    "Size probes by outcome (head, range, unresolved, skipped)",
    ["outcome"],
)

# Rate limiting metrics
rate_limit_exceeded_total = Counter(
    "rate_limit_exceeded_total",
    "Total rate limit exceeded events",
)


class MetricsCollector:
    """Static helpers for recording metrics throughout the application."""

    @staticmethod
    def record_request(
        method: str,
        endpoint: str,
        status: int,
        duration: float,
    ) -> None:
        """Record HTTP request metrics.

        Args:
            method: HTTP method (GET, POST, etc.).
            endpoint: Normalized endpoint path.
            status: HTTP response status code.
            duration: Request duration in seconds.
        """
        http_requests_total.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()
        http_request_duration_seconds.labels(
            method=method,
            endpoint=endpoint,
        ).observe(duration)

    @staticmethod
    def record_extraction(status: str, duration: float) -> None:
        """Record a pipeline run ('success' or 'failed')."""
        extractions_total.labels(status=status).inc()
        extraction_duration_seconds.observe(duration)

    @staticmethod
    def record_cache_lookup(result: str) -> None:
        """Record a cache read ('hit', 'miss' or 'error')."""
        cache_lookups_total.labels(result=result).inc()

    @staticmethod
    def record_probe(outcome: str, count: int = 1) -> None:
        size_probes_total.labels(outcome=outcome).inc(count)

    @staticmethod
    def record_rate_limit_exceeded() -> None:
        rate_limit_exceeded_total.inc()


def initialize_metrics(version: str) -> None:
    """Initialize application metrics with version information.

    Args:
        version: Application version string.
    """
    app_info.info({"version": version})
