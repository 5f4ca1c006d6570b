"""
Prometheus metrics for the registration job.

The job is short-lived, so metrics are collected into a per-run registry and,
when a Pushgateway is configured, pushed once at the end of the run instead of
being scraped.
"""

import logging
import time

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    push_to_gateway,
)

logger = logging.getLogger(__name__)

STEP_RESULT_SUCCESS = "success"
STEP_RESULT_ERROR = "error"


class RunMetrics:
    """Metrics collected over a single registration run."""

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        self.step_total = Counter(
            "register_mgmt_cluster_step_total",
            "Total number of registration steps executed",
            ["step", "result"],
            registry=self.registry,
        )
        self.step_duration = Histogram(
            "register_mgmt_cluster_step_duration_seconds",
            "Time spent in each registration step",
            ["step"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
            registry=self.registry,
        )
        self.last_success_timestamp = Gauge(
            "register_mgmt_cluster_last_success_timestamp_seconds",
            "Unix timestamp of the last successful registration",
            [],
            registry=self.registry,
        )

    def record_step(self, step: str, success: bool, duration: float) -> None:
        """Record the outcome and duration of one step."""
        result = STEP_RESULT_SUCCESS if success else STEP_RESULT_ERROR
        self.step_total.labels(step=step, result=result).inc()
        self.step_duration.labels(step=step).observe(duration)

    def record_success(self) -> None:
        """Mark the run as successfully completed."""
        self.last_success_timestamp.set(time.time())

    def push(self, gateway: str, job: str) -> bool:
        """
        Push the collected metrics to a Prometheus Pushgateway.

        Args:
            gateway: Pushgateway address (host:port or URL)
            job: Job label for the pushed group

        Returns:
            True if the push succeeded, False otherwise. A failed push does not
            change the outcome of the registration.
        """
        try:
            push_to_gateway(gateway, job=job, registry=self.registry)
        except OSError as e:
            logger.warning(f"Failed to push metrics to {gateway}: {e}")
            return False
        logger.debug(f"Pushed run metrics to {gateway} as job {job}")
        return True
