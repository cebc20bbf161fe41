"""Prometheus metrics for monitoring the Who is Hiring sync."""

import logging
import time
from typing import Optional

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

STORIES_CREATED = Counter(
    "whoishiring_stories_created_total",
    "Total number of hiring stories created",
)

JOBS_CREATED = Counter(
    "whoishiring_jobs_created_total",
    "Total number of hiring jobs created",
    ["status"],
)

JOB_FAILURES = Counter(
    "whoishiring_job_failures_total",
    "Number of jobs that could not be fetched or stored",
    ["stage"],
)

FETCH_OPERATIONS = Counter(
    "whoishiring_fetch_operations_total",
    "Number of Hacker News API fetch operations performed",
    ["operation_type"],
)

API_ERRORS = Counter(
    "whoishiring_api_errors_total",
    "Number of Hacker News API errors encountered",
    ["error_type"],
)

SYNC_RUNS = Counter(
    "whoishiring_sync_runs_total",
    "Number of sync runs by outcome",
    ["outcome"],
)

LAST_SYNC_AGE = Gauge(
    "whoishiring_last_sync_age_seconds",
    "Seconds since the last successful sync run",
)

KNOWN_JOBS = Gauge(
    "whoishiring_known_jobs",
    "Number of jobs stored for the current story",
)

REQUEST_DURATION = Histogram(
    "whoishiring_request_duration_seconds",
    "Duration of Hacker News API requests in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the sync service."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_story_created(self) -> None:
        STORIES_CREATED.inc()

    def record_job_created(self, status: str) -> None:
        """
        Record a stored job.

        Args:
            status: Job status name (ok, dead, deleted)
        """
        JOBS_CREATED.labels(status=status).inc()

    def record_job_failure(self, stage: str) -> None:
        """
        Record a job that was skipped because of an error.

        Args:
            stage: Where it failed ('fetch' or 'persist')
        """
        JOB_FAILURES.labels(stage=stage).inc()

    def record_fetch_operation(self, operation_type: str) -> None:
        """
        Record a fetch operation.

        Args:
            operation_type: Type of fetch operation ('user', 'story', 'job')
        """
        FETCH_OPERATIONS.labels(operation_type=operation_type).inc()

    def record_api_error(self, error_type: str) -> None:
        """
        Record an API error.

        Args:
            error_type: Type of API error (e.g. '5xx', '404', 'timeout', 'decode')
        """
        API_ERRORS.labels(error_type=error_type).inc()

    def record_sync_run(self, outcome: str) -> None:
        SYNC_RUNS.labels(outcome=outcome).inc()

    def set_last_sync_age(self, age_seconds: float) -> None:
        LAST_SYNC_AGE.set(age_seconds)

    def set_known_jobs(self, count: int) -> None:
        KNOWN_JOBS.set(count)

    def time_request(self) -> "RequestTimer":
        """
        Create a context manager for timing API requests.

        Returns:
            RequestTimer context manager
        """
        return RequestTimer()


class RequestTimer:
    """Context manager for timing API requests."""

    def __init__(self):
        self.start_time: Optional[float] = None

    def __enter__(self) -> "RequestTimer":
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.start_time is not None:
            duration = time.time() - self.start_time
            REQUEST_DURATION.observe(duration)
