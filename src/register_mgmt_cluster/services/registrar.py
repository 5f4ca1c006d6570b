"""
Orchestration of a management cluster registration run.

The registrar executes a fixed, linear sequence of idempotent steps. The first
failing step aborts the run; objects created by earlier steps are left in
place and the job can simply be re-run.
"""

import threading
import time
from collections.abc import Callable
from typing import Any, TypeVar

from ..models.registration import RegistrationConfig
from ..observability.logging import RegistrationLogger
from ..observability.metrics import RunMetrics
from ..utils.kubeconfig import render_kubeconfig
from ..utils.kubernetes import (
    KubernetesAPIs,
    ensure_cluster_role,
    ensure_cluster_role_binding,
    ensure_namespace,
    ensure_service_account,
)
from .cluster_registration import upsert_kubeconfig_secret, upsert_sveltos_cluster
from .token_provider import TokenProvider, select_token_provider

T = TypeVar("T")

STEP_ENSURE_IDENTITY_NAMESPACE = "ensure-identity-namespace"
STEP_ENSURE_SERVICE_ACCOUNT = "ensure-service-account"
STEP_ENSURE_CLUSTER_ROLE = "ensure-cluster-role"
STEP_ENSURE_CLUSTER_ROLE_BINDING = "ensure-cluster-role-binding"
STEP_ACQUIRE_TOKEN = "acquire-token"
STEP_RENDER_KUBECONFIG = "render-kubeconfig"
STEP_ENSURE_CLUSTER_NAMESPACE = "ensure-cluster-namespace"
STEP_UPSERT_SVELTOS_CLUSTER = "upsert-sveltos-cluster"
STEP_UPSERT_KUBECONFIG_SECRET = "upsert-kubeconfig-secret"

STEPS = (
    STEP_ENSURE_IDENTITY_NAMESPACE,
    STEP_ENSURE_SERVICE_ACCOUNT,
    STEP_ENSURE_CLUSTER_ROLE,
    STEP_ENSURE_CLUSTER_ROLE_BINDING,
    STEP_ACQUIRE_TOKEN,
    STEP_RENDER_KUBECONFIG,
    STEP_ENSURE_CLUSTER_NAMESPACE,
    STEP_UPSERT_SVELTOS_CLUSTER,
    STEP_UPSERT_KUBECONFIG_SECRET,
)


class ManagementClusterRegistrar:
    """
    Registers the management cluster with Sveltos.

    Sequence:
    1. Namespace, ServiceAccount, ClusterRole and ClusterRoleBinding for the
       Sveltos identity
    2. Bearer token for the identity (strategy picked from the config)
    3. Kubeconfig for the token
    4. Registration namespace, SveltosCluster and kubeconfig Secret
    """

    def __init__(
        self,
        config: RegistrationConfig,
        apis: KubernetesAPIs,
        ca_data: bytes,
        cancel_event: threading.Event | None = None,
        metrics: RunMetrics | None = None,
        token_provider: TokenProvider | None = None,
    ):
        """
        Initialize the registrar.

        Args:
            config: Immutable run configuration
            apis: Kubernetes API holder
            ca_data: CA bundle embedded in the kubeconfig
            cancel_event: Event set when the process is asked to terminate
            metrics: Run metrics collector, created if not provided
            token_provider: Token strategy, selected from ``config`` if not provided
        """
        self.config = config
        self.apis = apis
        self.ca_data = ca_data
        self.cancel_event = cancel_event
        self.metrics = metrics or RunMetrics()
        self.token_provider = token_provider or select_token_provider(
            config, apis, cancel_event
        )
        self.logger = RegistrationLogger(self.__class__.__name__)

    def run(self) -> None:
        """
        Execute the full registration sequence.

        Raises:
            RegistrationError: From the first step that fails
        """
        cfg = self.config
        self.logger.log_run_start(cfg.cluster_namespace, cfg.cluster_name)
        started = time.monotonic()

        try:
            self._step(
                STEP_ENSURE_IDENTITY_NAMESPACE,
                lambda: ensure_namespace(self.apis, cfg.identity_namespace),
            )
            self._step(
                STEP_ENSURE_SERVICE_ACCOUNT,
                lambda: ensure_service_account(
                    self.apis, cfg.identity_namespace, cfg.identity_name
                ),
            )
            self._step(
                STEP_ENSURE_CLUSTER_ROLE,
                lambda: ensure_cluster_role(self.apis, cfg.cluster_role_name),
            )
            self._step(
                STEP_ENSURE_CLUSTER_ROLE_BINDING,
                lambda: ensure_cluster_role_binding(
                    self.apis,
                    cfg.cluster_role_binding_name,
                    cfg.cluster_role_name,
                    cfg.identity_namespace,
                    cfg.identity_name,
                ),
            )
            token = self._step(
                STEP_ACQUIRE_TOKEN,
                lambda: self.token_provider.get_token(
                    cfg.identity_namespace, cfg.identity_name
                ),
            )
            kubeconfig = self._step(
                STEP_RENDER_KUBECONFIG,
                lambda: render_kubeconfig(
                    server=self.apis.server,
                    ca_data=self.ca_data,
                    namespace=cfg.identity_namespace,
                    user=cfg.identity_name,
                    token=token,
                ),
            )
            self._step(
                STEP_ENSURE_CLUSTER_NAMESPACE,
                lambda: ensure_namespace(self.apis, cfg.cluster_namespace),
            )
            self._step(
                STEP_UPSERT_SVELTOS_CLUSTER,
                lambda: upsert_sveltos_cluster(
                    self.apis,
                    cfg.cluster_namespace,
                    cfg.cluster_name,
                    cfg.labels,
                    cfg.renewal_interval_seconds,
                ),
            )
            self._step(
                STEP_UPSERT_KUBECONFIG_SECRET,
                lambda: upsert_kubeconfig_secret(
                    self.apis,
                    cfg.cluster_namespace,
                    cfg.kubeconfig_secret_name,
                    kubeconfig,
                ),
            )
        except Exception:
            self.logger.log_run_summary(
                cfg.cluster_namespace,
                cfg.cluster_name,
                success=False,
                duration=time.monotonic() - started,
            )
            raise

        self.metrics.record_success()
        self.logger.log_run_summary(
            cfg.cluster_namespace,
            cfg.cluster_name,
            success=True,
            duration=time.monotonic() - started,
        )

    def _step(self, step: str, action: Callable[[], T]) -> T:
        """Run one step with timing, logging and metrics."""
        self.logger.log_step_start(step)
        started = time.monotonic()
        try:
            result: Any = action()
        except Exception as e:
            duration = time.monotonic() - started
            self.metrics.record_step(step, success=False, duration=duration)
            self.logger.log_step_error(step, e, duration)
            raise
        duration = time.monotonic() - started
        self.metrics.record_step(step, success=True, duration=duration)
        self.logger.log_step_success(step, duration)
        return result
