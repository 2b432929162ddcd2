"""Prometheus metrics for practice sessions."""
from prometheus_client import Counter, Histogram, start_http_server

# Session metrics
sessions_built = Counter(
    "mihi_sessions_built_total",
    "Total number of practice sessions built",
)

session_size = Histogram(
    "mihi_session_size_items",
    "Number of items included in a built session",
    buckets=[0, 1, 5, 10, 15, 25, 50],
)

pokes_consumed = Counter(
    "mihi_pokes_consumed_total",
    "Total number of poked items included in a session",
)

# Attempt metrics
attempts_recorded = Counter(
    "mihi_attempts_recorded_total",
    "Total number of recorded attempts",
    ["outcome"],
)

# Database metrics
store_errors = Counter(
    "mihi_store_errors_total",
    "Total number of item store errors",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
