"""Prometheus metrics shared by the API and the chat pipeline."""

from prometheus_client import CollectorRegistry, Counter

# Registry for isolated metric collection
CUSTOM_REGISTRY = CollectorRegistry()

# Core operational metrics for monitoring
REQUESTS = Counter("requests_total", "Total requests by path", ["path"], registry=CUSTOM_REGISTRY)
ERRORS = Counter("errors_total", "Total failed requests by path", ["path"], registry=CUSTOM_REGISTRY)
PROCESSING_TIME = Counter("processing_time_seconds", "Total processing time by path", ["path"], registry=CUSTOM_REGISTRY)

TURNS = Counter("chat_turns_total", "Completed turns by reply outcome", ["outcome"], registry=CUSTOM_REGISTRY)
TRANSLATION_FAILURES = Counter(
    "translation_failures_total", "Failed translation attempts by backend", ["backend"], registry=CUSTOM_REGISTRY
)
