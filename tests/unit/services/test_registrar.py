"""Unit tests for the registration run orchestration."""

import base64
from unittest.mock import MagicMock

import pytest
import yaml
from prometheus_client import CollectorRegistry

from register_mgmt_cluster.errors import KubernetesAPIError, TokenTimeoutError
from register_mgmt_cluster.models.registration import RegistrationConfig
from register_mgmt_cluster.observability.metrics import RunMetrics
from register_mgmt_cluster.services.registrar import (
    STEP_ACQUIRE_TOKEN,
    STEP_UPSERT_KUBECONFIG_SECRET,
    STEPS,
    ManagementClusterRegistrar,
)
from register_mgmt_cluster.services.token_provider import (
    SecretTokenProvider,
    TokenRequestProvider,
)
from tests.fixtures.fake_cluster import API_SERVER, FakeCluster, make_fake_apis


def _kubeconfig(cluster: FakeCluster, namespace="mgmt", name="mgmt") -> dict:
    secret = cluster.get("Secret", namespace, f"{name}-sveltos-kubeconfig")
    return yaml.safe_load(base64.b64decode(secret.data["kubeconfig"]))


def _step_count(metrics: RunMetrics, step: str, result: str) -> float | None:
    return metrics.registry.get_sample_value(
        "register_mgmt_cluster_step_total", {"step": step, "result": result}
    )


@pytest.fixture
def metrics():
    return RunMetrics(registry=CollectorRegistry())


class TestManagementClusterRegistrar:
    """End-to-end runs against the in-memory cluster."""

    def test_fresh_cluster_token_request(self, fake_cluster, fake_apis, ca_data):
        config = RegistrationConfig(labels={"env": "prod"})

        ManagementClusterRegistrar(config, fake_apis, ca_data).run()

        assert fake_cluster.get("Namespace", None, "projectsveltos") is not None
        assert fake_cluster.get("Namespace", None, "mgmt") is not None
        assert fake_cluster.get("ServiceAccount", "projectsveltos", "projectsveltos")
        assert fake_cluster.get("ClusterRole", None, "projectsveltos")
        assert fake_cluster.get("ClusterRoleBinding", None, "projectsveltos")

        cluster_obj = fake_cluster.get("sveltosclusters", "mgmt", "mgmt")
        assert cluster_obj["metadata"]["labels"] == {"env": "prod"}
        assert cluster_obj["spec"] == {
            "tokenRequestRenewalOption": {"renewTokenRequestInterval": "1h0m0s"}
        }

        kubeconfig = _kubeconfig(fake_cluster)
        assert kubeconfig["users"][0]["user"]["token"] == "requested-token-1"
        assert kubeconfig["clusters"][0]["cluster"]["server"] == API_SERVER
        assert kubeconfig["contexts"][0]["context"]["namespace"] == "projectsveltos"
        assert fake_cluster.issued_tokens == 1

    def test_fresh_cluster_service_account_token(self, ca_data):
        """The token Secret is created and polled until populated."""
        cluster = FakeCluster(token_populated_after_reads=2)
        apis = make_fake_apis(cluster)
        config = RegistrationConfig(
            service_account_token=True, token_poll_interval_seconds=0
        )

        ManagementClusterRegistrar(config, apis, ca_data).run()

        token_secret = cluster.get("Secret", "projectsveltos", "projectsveltos")
        assert token_secret.type == "kubernetes.io/service-account-token"
        assert cluster.secret_reads[("projectsveltos", "projectsveltos")] == 3
        assert cluster.issued_tokens == 0
        assert _kubeconfig(cluster)["users"][0]["user"]["token"] == "secret-token"

    @pytest.mark.parametrize("service_account_token", [False, True])
    def test_rerun_is_idempotent(self, service_account_token, ca_data):
        """A second run leaves exactly one object of each kind."""
        cluster = FakeCluster()
        apis = make_fake_apis(cluster)
        config = RegistrationConfig(
            labels={"env": "prod"},
            service_account_token=service_account_token,
            token_poll_interval_seconds=0,
        )

        ManagementClusterRegistrar(config, apis, ca_data).run()
        ManagementClusterRegistrar(config, apis, ca_data).run()

        assert cluster.count("Namespace") == 2
        assert cluster.count("ServiceAccount") == 1
        assert cluster.count("ClusterRole") == 1
        assert cluster.count("ClusterRoleBinding") == 1
        assert cluster.count("sveltosclusters") == 1
        assert cluster.count("Secret") == (2 if service_account_token else 1)
        assert cluster.get("sveltosclusters", "mgmt", "mgmt")["metadata"][
            "labels"
        ] == {"env": "prod"}

    def test_rerun_refreshes_token(self, fake_cluster, fake_apis, ca_data):
        config = RegistrationConfig()

        ManagementClusterRegistrar(config, fake_apis, ca_data).run()
        ManagementClusterRegistrar(config, fake_apis, ca_data).run()

        assert _kubeconfig(fake_cluster)["users"][0]["user"]["token"] == (
            "requested-token-2"
        )

    def test_rerun_merges_new_labels(self, fake_cluster, fake_apis, ca_data):
        ManagementClusterRegistrar(
            RegistrationConfig(labels={"a": "1"}), fake_apis, ca_data
        ).run()
        ManagementClusterRegistrar(
            RegistrationConfig(labels={"b": "2"}), fake_apis, ca_data
        ).run()

        labels = fake_cluster.get("sveltosclusters", "mgmt", "mgmt")["metadata"][
            "labels"
        ]
        assert labels == {"a": "1", "b": "2"}

    def test_custom_registration_name(self, fake_cluster, fake_apis, ca_data):
        config = RegistrationConfig(cluster_namespace="sveltos-mgmt", cluster_name="hub")

        ManagementClusterRegistrar(config, fake_apis, ca_data).run()

        assert fake_cluster.get("sveltosclusters", "sveltos-mgmt", "hub")
        assert fake_cluster.get("Secret", "sveltos-mgmt", "hub-sveltos-kubeconfig")
        assert fake_cluster.get("Namespace", None, "sveltos-mgmt")

    def test_steps_run_in_order(self, fake_cluster, fake_apis, ca_data):
        ManagementClusterRegistrar(RegistrationConfig(), fake_apis, ca_data).run()

        writes = [
            (kind, name)
            for verb, kind, _, name in fake_cluster.calls
            if verb in ("create", "replace")
        ]
        assert writes == [
            ("Namespace", "projectsveltos"),
            ("ServiceAccount", "projectsveltos"),
            ("ClusterRole", "projectsveltos"),
            ("ClusterRoleBinding", "projectsveltos"),
            ("Namespace", "mgmt"),
            ("sveltosclusters", "mgmt"),
            ("Secret", "mgmt-sveltos-kubeconfig"),
        ]

    def test_token_failure_aborts_remaining_steps(
        self, fake_cluster, fake_apis, ca_data, metrics
    ):
        provider = MagicMock()
        provider.get_token.side_effect = KubernetesAPIError(
            "Failed to create TokenRequest", status=403
        )
        registrar = ManagementClusterRegistrar(
            RegistrationConfig(),
            fake_apis,
            ca_data,
            metrics=metrics,
            token_provider=provider,
        )

        with pytest.raises(KubernetesAPIError):
            registrar.run()

        # Identity objects from earlier steps are left in place
        assert fake_cluster.count("ClusterRoleBinding") == 1
        assert fake_cluster.get("Namespace", None, "mgmt") is None
        assert fake_cluster.count("sveltosclusters") == 0
        assert fake_cluster.count("Secret") == 0
        assert _step_count(metrics, STEP_ACQUIRE_TOKEN, "error") == 1.0
        assert _step_count(metrics, STEP_UPSERT_KUBECONFIG_SECRET, "success") is None

    def test_token_timeout_surfaces(self, ca_data):
        cluster = FakeCluster(token_populated_after_reads=10)
        apis = make_fake_apis(cluster)
        config = RegistrationConfig(
            service_account_token=True, token_poll_interval_seconds=0
        )

        with pytest.raises(TokenTimeoutError):
            ManagementClusterRegistrar(config, apis, ca_data).run()

        assert cluster.secret_reads[("projectsveltos", "projectsveltos")] == 5
        assert cluster.count("sveltosclusters") == 0

    def test_successful_run_records_metrics(self, fake_apis, ca_data, metrics):
        ManagementClusterRegistrar(
            RegistrationConfig(), fake_apis, ca_data, metrics=metrics
        ).run()

        for step in STEPS:
            assert _step_count(metrics, step, "success") == 1.0
        assert (
            metrics.registry.get_sample_value(
                "register_mgmt_cluster_last_success_timestamp_seconds"
            )
            > 0
        )

    def test_failed_run_leaves_success_timestamp_unset(
        self, fake_apis, ca_data, metrics
    ):
        provider = MagicMock()
        provider.get_token.side_effect = TokenTimeoutError("timed out", attempts=5)

        with pytest.raises(TokenTimeoutError):
            ManagementClusterRegistrar(
                RegistrationConfig(),
                fake_apis,
                ca_data,
                metrics=metrics,
                token_provider=provider,
            ).run()

        assert (
            metrics.registry.get_sample_value(
                "register_mgmt_cluster_last_success_timestamp_seconds"
            )
            == 0.0
        )

    @pytest.mark.parametrize(
        "service_account_token,expected",
        [(False, TokenRequestProvider), (True, SecretTokenProvider)],
    )
    def test_selects_token_strategy_from_config(
        self, fake_apis, ca_data, service_account_token, expected
    ):
        registrar = ManagementClusterRegistrar(
            RegistrationConfig(service_account_token=service_account_token),
            fake_apis,
            ca_data,
        )

        assert isinstance(registrar.token_provider, expected)
