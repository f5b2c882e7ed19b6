from time import perf_counter

from prometheus_client import Counter, Histogram

# ---- METRICS (names are Prometheus-safe; units are in names) ----

EXTRACT_REQUESTS = Counter(
    "task_extract_requests_total",
    "Total extraction API requests by outcome",
    labelnames=("endpoint", "outcome"),
)

TASKS_PER_TRANSCRIPT = Histogram(
    "tasks_per_transcript",
    "Number of tasks produced from one transcript",
    buckets=(1, 2, 3, 5, 8, 13, 21),
)

REQUEST_LATENCY_MS = Histogram(
    "request_latency_ms",
    "End-to-end latency of extraction endpoints in milliseconds",
    # transcripts are short; recognizer dominates
    buckets=(5, 10, 25, 50, 100, 200, 400, 800, 1600),
)

ERRORS_TOTAL = Counter(
    "errors_total",
    "Count of errors by type",
    labelnames=("type",),
)

SPANS_RESORTED = Counter(
    "recognizer_spans_resorted_total",
    "Recognizer results that came back out of order and were re-sorted",
)

# ---- HELPERS ----

def timer_start() -> float:
    return perf_counter()

def timer_observe_ms(start: float) -> float:
    elapsed_ms = (perf_counter() - start) * 1000.0
    REQUEST_LATENCY_MS.observe(elapsed_ms)
    return elapsed_ms

def record_outcome(endpoint: str, outcome: str) -> None:
    EXTRACT_REQUESTS.labels(endpoint=endpoint, outcome=outcome).inc()

def record_task_count(count: int) -> None:
    TASKS_PER_TRANSCRIPT.observe(count)

def record_resort() -> None:
    SPANS_RESORTED.inc()

def record_error(err_type: str) -> None:
    ERRORS_TOTAL.labels(type=err_type).inc()
