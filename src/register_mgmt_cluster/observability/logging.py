"""
Logging setup for the registration job.

Every line written by one run carries the same run ID, so the output of a Job
pod can be grouped in a log aggregator. Output is either one JSON object per
line (the in-cluster default) or plain text for local runs.
"""

import json
import logging
import uuid
from datetime import UTC, datetime

# ``extra`` keys copied into JSON output
EXTRA_FIELDS = (
    "step",
    "resource_type",
    "resource_name",
    "namespace",
    "operation",
    "duration",
    "error_type",
    "http_status",
    "attempt",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
TEXT_FORMAT_WITH_RUN_ID = "%(asctime)s %(levelname)s [%(run_id)s] %(name)s: %(message)s"


def new_run_id() -> str:
    """Short random identifier for one run of the job."""
    return uuid.uuid4().hex[:12]


class RunIDFilter(logging.Filter):
    """Stamps every record with the ID of the current run."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


class JSONLineFormatter(logging.Formatter):
    """Renders a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        run_id = getattr(record, "run_id", None)
        if run_id:
            payload["run_id"] = run_id
        payload.update(
            {field: getattr(record, field) for field in EXTRA_FIELDS if hasattr(record, field)}
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(
    level: str = "INFO", json_output: bool = True, run_id: str | None = None
) -> None:
    """
    Replace the root handlers with a single stream handler.

    Args:
        level: Logging level name, case-insensitive
        json_output: Emit JSON lines instead of plain text
        run_id: ID stamped on every record; omitted from output when None
    """
    handler = logging.StreamHandler()
    if run_id:
        handler.addFilter(RunIDFilter(run_id))

    if json_output:
        handler.setFormatter(JSONLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(TEXT_FORMAT_WITH_RUN_ID if run_id else TEXT_FORMAT)
        )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("kubernetes", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class RegistrationLogger:
    """Step and run lifecycle messages with consistent ``extra`` fields."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_run_start(self, cluster_namespace: str, cluster_name: str) -> None:
        self.logger.info(
            f"Registering management cluster as SveltosCluster "
            f"{cluster_namespace}/{cluster_name}",
            extra={
                "resource_type": "SveltosCluster",
                "resource_name": cluster_name,
                "namespace": cluster_namespace,
                "operation": "run_start",
            },
        )

    def log_step_start(self, step: str) -> None:
        self.logger.debug(
            f"Starting step {step}", extra={"step": step, "operation": "step_start"}
        )

    def log_step_success(self, step: str, duration: float) -> None:
        self.logger.debug(
            f"Step {step} completed in {duration:.3f}s",
            extra={"step": step, "operation": "step_success", "duration": duration},
        )

    def log_step_error(self, step: str, error: Exception, duration: float) -> None:
        self.logger.error(
            f"Step {step} failed: {error}",
            extra={
                "step": step,
                "operation": "step_error",
                "error_type": type(error).__name__,
                "duration": duration,
            },
        )

    def log_run_summary(
        self, cluster_namespace: str, cluster_name: str, success: bool, duration: float
    ) -> None:
        """Log the outcome of a full run, at ERROR level when it failed."""
        level = logging.INFO if success else logging.ERROR
        outcome = "registered" if success else "failed to register"
        self.logger.log(
            level,
            f"Management cluster {outcome} as SveltosCluster "
            f"{cluster_namespace}/{cluster_name}",
            extra={
                "resource_type": "SveltosCluster",
                "resource_name": cluster_name,
                "namespace": cluster_namespace,
                "operation": "run_success" if success else "run_error",
                "duration": duration,
            },
        )
