from prometheus_client import Counter, Histogram, make_asgi_app

# Route templates keep label cardinality low: /download/{bucket}/{key:path}
REQUESTS = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "route", "status"],
)

LATENCY = Histogram(
    "http_request_duration_seconds",
    "Request latency in seconds",
    ["method", "route"],
)

STORAGE_OPERATIONS = Counter(
    "storage_operations_total",
    "Object storage calls by operation and outcome",
    ["operation", "outcome"],
)

metrics_app = make_asgi_app()
