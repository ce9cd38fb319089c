# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
Imported by services and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "oncall_phone_requests_total",
    "Total HTTP requests to the on-call phone lookup service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "oncall_phone_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "oncall_phone_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
LOOKUPS_TOTAL = Counter(
    "oncall_phone_lookups_total",
    "On-call phone lookups by outcome",
    ["team", "outcome"],
)
CACHE_EVENTS = Counter(
    "oncall_phone_cache_events_total",
    "Snapshot cache hits, misses and invalidations",
    ["cache", "event"],
)
UPSTREAM_ERRORS = Counter(
    "oncall_phone_upstream_errors_total",
    "Roster service failures by pipeline stage",
    ["stage"],
)
DIRECTORY_FETCH_FAILURES = Counter(
    "oncall_phone_directory_fetch_failures_total",
    "Directory refreshes that failed open to an empty snapshot",
    ["backend"],
)
DIRECTORY_RECORDS = Gauge(
    "oncall_phone_directory_records",
    "Number of records in the current directory snapshot",
)
