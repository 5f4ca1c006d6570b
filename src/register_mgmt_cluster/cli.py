"""
Command-line entry point of the registration job.

Usage:
    register-mgmt-cluster --labels=env=mgmt,tier=platform --service-account-token=false
    # Or:
    python -m register_mgmt_cluster --namespace mgmt --name mgmt

Environment Variables:
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    JSON_LOGS: Set to 'false' for human readable logs
    LOG_RUN_ID: Set to 'false' to omit the run ID from log lines
    CA_BUNDLE_PATH: CA bundle embedded in the generated kubeconfig
    PUSHGATEWAY_URL: Push run metrics to this Prometheus Pushgateway
"""

import argparse
import logging
import signal
import sys
import threading
from types import FrameType

from pydantic import ValidationError

from register_mgmt_cluster import __version__
from register_mgmt_cluster.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_CLUSTER_NAMESPACE,
    EXIT_FAILURE,
    EXIT_SUCCESS,
)
from register_mgmt_cluster.errors import RegistrationCancelledError, RegistrationError
from register_mgmt_cluster.models.registration import RegistrationConfig
from register_mgmt_cluster.observability.logging import configure_logging, new_run_id
from register_mgmt_cluster.observability.metrics import RunMetrics
from register_mgmt_cluster.services.registrar import ManagementClusterRegistrar
from register_mgmt_cluster.settings import Settings
from register_mgmt_cluster.settings import settings as job_settings
from register_mgmt_cluster.utils.kubernetes import (
    KubernetesAPIs,
    get_kubernetes_client,
    read_ca_bundle,
)
from register_mgmt_cluster.utils.labels import parse_labels

logger = logging.getLogger(__name__)

TRUE_VALUES = frozenset({"1", "t", "true", "y", "yes", "on"})
FALSE_VALUES = frozenset({"0", "f", "false", "n", "no", "off"})


def str_to_bool(value: str) -> bool:
    """Parse a boolean flag value such as ``true`` or ``false``."""
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def normalize_flag_names(argv: list[str]) -> list[str]:
    """Accept ``--flag_name`` as an alias of ``--flag-name``."""
    normalized = []
    for arg in argv:
        if arg.startswith("--"):
            name, sep, value = arg.partition("=")
            arg = name.replace("_", "-") + sep + value
        normalized.append(arg)
    return normalized


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="register-mgmt-cluster",
        description="Register the management cluster as a SveltosCluster.",
    )
    parser.add_argument(
        "--labels",
        default="",
        help=(
            "Labels for the SveltosCluster resource, in the format "
            "<key1=value1,key2=value2>. Existing labels are kept; supplied "
            "keys overwrite them."
        ),
    )
    parser.add_argument(
        "--namespace",
        default=DEFAULT_CLUSTER_NAMESPACE,
        help="Namespace of the SveltosCluster representing the management cluster",
    )
    parser.add_argument(
        "--name",
        default=DEFAULT_CLUSTER_NAME,
        help="Name of the SveltosCluster representing the management cluster",
    )
    parser.add_argument(
        "--service-account-token",
        nargs="?",
        const=True,
        default=False,
        type=str_to_bool,
        help=(
            "Create a Secret of type kubernetes.io/service-account-token instead "
            "of requesting a token through the TokenRequest API"
        ),
    )
    parser.add_argument(
        "--kubeconfig",
        default=None,
        help="Kubeconfig to use when not running in-cluster",
    )
    parser.add_argument(
        "--context",
        default=None,
        help="Kubeconfig context to use when not running in-cluster",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)",
    )
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def build_config(args: argparse.Namespace, settings: Settings) -> RegistrationConfig:
    """
    Assemble the immutable run configuration.

    Raises:
        FormatError: If ``--labels`` is malformed
    """
    return RegistrationConfig(
        cluster_namespace=args.namespace,
        cluster_name=args.name,
        labels=parse_labels(args.labels),
        service_account_token=args.service_account_token,
        token_expiration_seconds=settings.token_expiration_seconds,
        token_poll_attempts=settings.token_poll_attempts,
        token_poll_interval_seconds=settings.token_poll_interval_seconds,
    )


def install_signal_handlers(cancel_event: threading.Event) -> None:
    """Abort the run on SIGTERM/SIGINT."""

    def _handler(signum: int, frame: FrameType | None) -> None:
        name = signal.Signals(signum).name
        logger.warning(f"Received {name}, aborting registration")
        cancel_event.set()
        raise RegistrationCancelledError(f"Registration cancelled by {name}")

    signal.signal(signal.SIGTERM, _handler)
    signal.signal(signal.SIGINT, _handler)


def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute one registration run and return the process exit code."""
    cancel_event = threading.Event()
    metrics = RunMetrics()

    try:
        config = build_config(args, settings)
        install_signal_handlers(cancel_event)

        k8s_client = get_kubernetes_client(
            kubeconfig=args.kubeconfig,
            context=args.context or settings.kube_context or None,
        )
        apis = KubernetesAPIs(k8s_client, request_timeout=settings.request_timeout_seconds)
        ca_data = read_ca_bundle(settings.ca_bundle_path, fallback_path=apis.ca_cert_file)

        ManagementClusterRegistrar(
            config, apis, ca_data, cancel_event=cancel_event, metrics=metrics
        ).run()
    except RegistrationError as e:
        logger.error(f"Registration failed: {e}", extra={"error_type": type(e).__name__})
        return EXIT_FAILURE
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_FAILURE
    except Exception as e:
        logger.error(f"Unexpected error during registration: {e}", exc_info=True)
        return EXIT_FAILURE
    finally:
        if settings.pushgateway_url:
            metrics.push(settings.pushgateway_url, settings.pushgateway_job)

    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Parse flags, configure logging and run the registration."""
    raw_args = sys.argv[1:] if argv is None else argv
    args = build_parser().parse_args(normalize_flag_names(raw_args))

    configure_logging(
        level=args.log_level or job_settings.log_level,
        json_output=job_settings.json_logs,
        run_id=new_run_id() if job_settings.log_run_id else None,
    )

    try:
        return run(args, job_settings)
    except RegistrationCancelledError as e:
        # Signal delivered outside the guarded section of run()
        logger.error(f"Registration failed: {e}", extra={"error_type": type(e).__name__})
        return EXIT_FAILURE
