"""
In-memory fake of the Kubernetes API surface used by the registration job.

Objects are keyed by (kind, namespace, name). Create calls fail with 409 when
the key exists, reads fail with 404 when it does not, and replaces of custom
objects are checked against ``metadata.resourceVersion``.
"""

import base64
import copy
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

from kubernetes import client
from kubernetes.client.rest import ApiException

from register_mgmt_cluster.constants import (
    SERVICE_ACCOUNT_TOKEN_SECRET_TYPE,
    TOKEN_KEY,
)
from register_mgmt_cluster.utils.kubernetes import KubernetesAPIs

API_SERVER = "https://10.96.0.1:443"


class FakeCluster:
    """Shared object store behind the fake API groups."""

    def __init__(self, token_populated_after_reads: int = 0):
        """
        Args:
            token_populated_after_reads: Number of reads of a token Secret that
                return it without ``data.token`` before it is populated
        """
        self.objects: dict[tuple[str, str | None, str], Any] = {}
        self.token_populated_after_reads = token_populated_after_reads
        self.secret_reads: dict[tuple[str, str], int] = {}
        self.issued_tokens = 0
        self.calls: list[tuple[str, str, str | None, str]] = []

    def add(self, kind: str, namespace: str | None, name: str, obj: Any) -> None:
        self.objects[(kind, namespace, name)] = copy.deepcopy(obj)

    def get(self, kind: str, namespace: str | None, name: str) -> Any:
        return self.objects.get((kind, namespace, name))

    def count(self, kind: str) -> int:
        return sum(1 for key in self.objects if key[0] == kind)

    def _create(self, kind: str, namespace: str | None, name: str, body: Any) -> Any:
        self.calls.append(("create", kind, namespace, name))
        key = (kind, namespace, name)
        if key in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        self.objects[key] = copy.deepcopy(body)
        return copy.deepcopy(body)

    def _read(self, kind: str, namespace: str | None, name: str) -> Any:
        self.calls.append(("read", kind, namespace, name))
        key = (kind, namespace, name)
        if key not in self.objects:
            raise ApiException(status=404, reason="NotFound")
        return copy.deepcopy(self.objects[key])

    def _replace(self, kind: str, namespace: str | None, name: str, body: Any) -> Any:
        self.calls.append(("replace", kind, namespace, name))
        key = (kind, namespace, name)
        if key not in self.objects:
            raise ApiException(status=404, reason="NotFound")
        self.objects[key] = copy.deepcopy(body)
        return copy.deepcopy(body)


class FakeCoreV1Api:
    def __init__(self, cluster: FakeCluster):
        self.cluster = cluster

    def create_namespace(self, body, **kwargs):
        return self.cluster._create("Namespace", None, body.metadata.name, body)

    def create_namespaced_service_account(self, namespace, body, **kwargs):
        return self.cluster._create(
            "ServiceAccount", namespace, body.metadata.name, body
        )

    def create_namespaced_secret(self, namespace, body, **kwargs):
        return self.cluster._create("Secret", namespace, body.metadata.name, body)

    def read_namespaced_secret(self, name, namespace, **kwargs):
        secret = self.cluster._read("Secret", namespace, name)
        if secret.type == SERVICE_ACCOUNT_TOKEN_SECRET_TYPE:
            reads = self.cluster.secret_reads.get((namespace, name), 0) + 1
            self.cluster.secret_reads[(namespace, name)] = reads
            if reads > self.cluster.token_populated_after_reads:
                secret.data = {TOKEN_KEY: base64.b64encode(b"secret-token").decode()}
        return secret

    def replace_namespaced_secret(self, name, namespace, body, **kwargs):
        return self.cluster._replace("Secret", namespace, name, body)

    def create_namespaced_service_account_token(self, name, namespace, body, **kwargs):
        self.cluster._read("ServiceAccount", namespace, name)
        self.cluster.issued_tokens += 1
        return client.AuthenticationV1TokenRequest(
            spec=body.spec,
            status=client.V1TokenRequestStatus(
                token=f"requested-token-{self.cluster.issued_tokens}",
                expiration_timestamp="2026-01-01T00:00:00Z",
            ),
        )


class FakeRbacAuthorizationV1Api:
    def __init__(self, cluster: FakeCluster):
        self.cluster = cluster

    def create_cluster_role(self, body, **kwargs):
        return self.cluster._create("ClusterRole", None, body.metadata.name, body)

    def create_cluster_role_binding(self, body, **kwargs):
        return self.cluster._create(
            "ClusterRoleBinding", None, body.metadata.name, body
        )


class FakeCustomObjectsApi:
    def __init__(self, cluster: FakeCluster):
        self.cluster = cluster

    def get_namespaced_custom_object(
        self, group, version, namespace, plural, name, **kwargs
    ):
        return self.cluster._read(plural, namespace, name)

    def create_namespaced_custom_object(
        self, group, version, namespace, plural, body, **kwargs
    ):
        body = copy.deepcopy(body)
        body["metadata"]["resourceVersion"] = "1"
        return self.cluster._create(plural, namespace, body["metadata"]["name"], body)

    def replace_namespaced_custom_object(
        self, group, version, namespace, plural, name, body, **kwargs
    ):
        current = self.cluster.get(plural, namespace, name)
        if current is not None:
            expected = current["metadata"].get("resourceVersion")
            if body["metadata"].get("resourceVersion") != expected:
                raise ApiException(status=409, reason="Conflict")
            body = copy.deepcopy(body)
            body["metadata"]["resourceVersion"] = str(int(expected) + 1)
        return self.cluster._replace(plural, namespace, name, body)


def make_fake_apis(cluster: FakeCluster) -> KubernetesAPIs:
    """Build a KubernetesAPIs holder backed by ``cluster``."""
    k8s_client = MagicMock()
    k8s_client.configuration = SimpleNamespace(host=API_SERVER, ssl_ca_cert=None)

    apis = KubernetesAPIs(k8s_client=k8s_client)
    apis._core_v1 = FakeCoreV1Api(cluster)
    apis._rbac_v1 = FakeRbacAuthorizationV1Api(cluster)
    apis._custom_objects = FakeCustomObjectsApi(cluster)
    return apis
