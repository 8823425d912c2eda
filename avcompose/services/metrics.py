"""
Prometheus metrics for the worker.

All metrics are registered on a `CollectorRegistry` owned by the `Metrics`
instance rather than on the library's global default registry, so each
process (and each test) holds its own explicit handle. prometheus_client
metrics are internally locked and safe to update from concurrent jobs.
"""
from typing import List, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from ..config.common import METRICS_NAMESPACE


def exponential_buckets(start: float, factor: float, count: int) -> List[float]:
    """Returns `count` histogram bucket bounds: start, start*factor, start*factor**2, ..."""
    if start <= 0 or factor <= 1 or count < 1:
        raise ValueError("exponential_buckets needs start > 0, factor > 1 and count >= 1")
    return [start * factor ** i for i in range(count)]


class Metrics:
    """
    Holds every counter, histogram and gauge the processor reports to.

    Args:
        registry: The registry to register on. A fresh one is created if omitted.
        namespace: Prefix of every metric name.
    """

    def __init__(
        self,
        registry: Optional[CollectorRegistry] = None,
        namespace: str = METRICS_NAMESPACE,
    ):
        self.registry = registry if registry is not None else CollectorRegistry()
        opts = {"namespace": namespace, "registry": self.registry}

        # Job counters
        self.jobs_total = Counter(
            "jobs", "Total number of jobs processed", ["status"], **opts
        )
        self.jobs_successful = Counter(
            "jobs_successful", "Total number of successful jobs", **opts
        )
        self.jobs_failed = Counter(
            "jobs_failed",
            "Total number of failed jobs by error type",
            ["error_type", "operation"],
            **opts,
        )

        # Durations
        self.job_duration = Histogram(
            "job_duration_seconds",
            "Time taken to process a job",
            buckets=exponential_buckets(0.5, 2, 10),
            **opts,
        )
        self.encode_duration = Histogram(
            "encode_duration_seconds",
            "Time taken for ffmpeg encoding",
            buckets=exponential_buckets(0.1, 2, 10),
            **opts,
        )
        self.download_duration = Histogram(
            "download_duration_seconds",
            "Time taken to download files from the object store",
            buckets=exponential_buckets(0.05, 2, 10),
            **opts,
        )
        self.upload_duration = Histogram(
            "upload_duration_seconds",
            "Time taken to upload files to the object store",
            buckets=exponential_buckets(0.05, 2, 10),
            **opts,
        )

        # File sizes: 1 KB up to ~16 MB for inputs, ~512 MB for outputs.
        self.image_size_bytes = Histogram(
            "image_size_bytes",
            "Size of input still images",
            buckets=exponential_buckets(1024, 2, 15),
            **opts,
        )
        self.audio_size_bytes = Histogram(
            "audio_size_bytes",
            "Size of input audio files",
            buckets=exponential_buckets(1024, 2, 15),
            **opts,
        )
        self.video_size_bytes = Histogram(
            "video_size_bytes",
            "Size of output video files",
            buckets=exponential_buckets(1024, 2, 20),
            **opts,
        )

        self.active_jobs = Gauge(
            "active_jobs", "Number of jobs currently being processed", **opts
        )
        self.video_resolutions = Counter(
            "video_resolutions",
            "Count of videos created by resolution",
            ["resolution"],
            **opts,
        )

    def record_success(self, resolution: str, duration: float) -> None:
        self.jobs_total.labels(status="success").inc()
        self.jobs_successful.inc()
        self.video_resolutions.labels(resolution=resolution).inc()
        self.job_duration.observe(duration)

    def record_failure(self, error_type: str, operation: str, duration: float) -> None:
        self.jobs_total.labels(status="failed").inc()
        self.jobs_failed.labels(error_type=error_type, operation=operation).inc()
        self.job_duration.observe(duration)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Exposes this registry over HTTP in a daemon thread."""
        start_http_server(port, addr=addr, registry=self.registry)
