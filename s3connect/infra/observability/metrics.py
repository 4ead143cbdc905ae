from prometheus_client import Counter, Histogram

# operation 取固定的请求名（put_object、upload_part 等），不带 bucket/key，避免高基数
STORAGE_REQUESTS = Counter(
    "storage_requests_total",
    "Total object storage requests",
    ["operation", "outcome"],
)

STORAGE_LATENCY = Histogram(
    "storage_request_duration_seconds",
    "Object storage request latency in seconds",
    ["operation"],
)


def observe_request(operation: str, outcome: str, elapsed: float) -> None:
    STORAGE_REQUESTS.labels(operation=operation, outcome=outcome).inc()
    STORAGE_LATENCY.labels(operation=operation).observe(elapsed)
