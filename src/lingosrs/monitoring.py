"""Monitoring configuration for the review scheduler."""
from prometheus_client import Counter, Histogram, start_http_server

# Review metrics
reviews_initialized = Counter(
    "lingosrs_reviews_initialized_total",
    "Total number of review records created",
)

reviews_recorded = Counter(
    "lingosrs_reviews_recorded_total",
    "Total number of ratings applied to review records",
    ["outcome"],
)

due_words_selected = Histogram(
    "lingosrs_due_words_selected",
    "Number of due words returned per selection",
    buckets=[0, 1, 5, 10, 25, 50, 100, 250],
)

# Session metrics
review_sessions = Counter(
    "lingosrs_review_sessions_total",
    "Total number of review sessions by final state",
    ["state"],
)

session_duration = Histogram(
    "lingosrs_session_duration_seconds",
    "Duration of completed review sessions in seconds",
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

# Error metrics
persistence_errors = Counter(
    "lingosrs_persistence_errors_total",
    "Total number of review updates that could not be persisted",
    ["operation"],
)

# Database metrics
db_operations = Counter(
    "lingosrs_db_operations_total",
    "Total number of database operations",
    ["operation_type"],
)

db_errors = Counter(
    "lingosrs_db_errors_total",
    "Total number of database errors",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
