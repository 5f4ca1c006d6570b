"""
Kubernetes utilities for the registration job.

This module provides helper functions for interacting with the Kubernetes API.

Key functionality:
- Kubernetes client management and configuration
- Create-if-absent primitives for the identity and its RBAC
- Translation of API failures into KubernetesAPIError
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from register_mgmt_cluster.constants import (
    ERROR_CA_BUNDLE_UNREADABLE,
    MANAGED_BY_LABEL_KEY,
    MANAGED_BY_LABEL_VALUE,
    RBAC_API_GROUP,
    SERVICE_ACCOUNT_NAME_ANNOTATION,
    SERVICE_ACCOUNT_TOKEN_SECRET_TYPE,
)
from register_mgmt_cluster.errors import ConfigurationError, KubernetesAPIError

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409

# Error responses from the API server and transport failures reaching it
API_CALL_ERRORS = (ApiException, HTTPError)

# Every verb on every resource and every non-resource URL
CLUSTER_ROLE_RULES = [
    {"apiGroups": ["*"], "resources": ["*"], "verbs": ["*"]},
    {"nonResourceURLs": ["*"], "verbs": ["*"]},
]


def get_kubernetes_client(
    kubeconfig: str | None = None, context: str | None = None
) -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Tries in-cluster configuration first (when running in a pod) and falls
    back to a kubeconfig file for local runs.

    Args:
        kubeconfig: Optional kubeconfig path (defaults to $KUBECONFIG or ~/.kube/config)
        context: Optional kubeconfig context

    Returns:
        Configured Kubernetes API client

    Raises:
        ConfigurationError: If neither configuration can be loaded
    """
    if not kubeconfig:
        try:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster Kubernetes configuration")
            return client.ApiClient()
        except config.ConfigException:
            logger.debug("Not running in-cluster, falling back to kubeconfig")

    try:
        config.load_kube_config(config_file=kubeconfig or None, context=context or None)
        logger.debug("Loaded kubeconfig from local environment")
    except (config.ConfigException, OSError) as e:
        logger.error(f"Failed to load Kubernetes configuration: {e}")
        raise ConfigurationError(
            f"Failed to load Kubernetes configuration: {e}",
            user_action="Run in-cluster or point --kubeconfig at a valid file",
        ) from e

    return client.ApiClient()


def read_ca_bundle(path: str, fallback_path: str | None = None) -> bytes:
    """
    Read the CA bundle embedded in the generated kubeconfig.

    Args:
        path: CA bundle path, normally the in-cluster service account mount
        fallback_path: CA file of the loaded client configuration, used when
            ``path`` does not exist (local runs against a kubeconfig)

    Returns:
        Raw CA bundle bytes

    Raises:
        ConfigurationError: If no readable, non-empty bundle is found
    """
    candidate = Path(path)
    if not candidate.exists() and fallback_path:
        logger.debug(f"CA bundle {path} not found, using {fallback_path}")
        candidate = Path(fallback_path)

    try:
        content = candidate.read_bytes()
    except OSError as e:
        logger.error(ERROR_CA_BUNDLE_UNREADABLE.format(candidate, e))
        raise ConfigurationError(
            ERROR_CA_BUNDLE_UNREADABLE.format(candidate, e),
            user_action="Mount the service account CA or set CA_BUNDLE_PATH",
        ) from e

    if not content:
        raise ConfigurationError(f"CA bundle {candidate} is empty")
    return content


class KubernetesAPIs:
    """Lazily constructed API groups sharing one ApiClient."""

    def __init__(
        self,
        k8s_client: client.ApiClient | None = None,
        request_timeout: float | None = None,
    ):
        """
        Initialize API holder.

        Args:
            k8s_client: Optional Kubernetes API client
            request_timeout: Timeout applied to every request, in seconds
        """
        self.k8s_client = k8s_client
        self.request_timeout = request_timeout
        self._core_v1: client.CoreV1Api | None = None
        self._rbac_v1: client.RbacAuthorizationV1Api | None = None
        self._custom_objects: client.CustomObjectsApi | None = None

    @property
    def api_client(self) -> client.ApiClient:
        """Get or create the shared ApiClient."""
        if self.k8s_client is None:
            self.k8s_client = get_kubernetes_client()
        return self.k8s_client

    @property
    def core_v1(self) -> client.CoreV1Api:
        """Get CoreV1Api client."""
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(self.api_client)
        return self._core_v1

    @property
    def rbac_v1(self) -> client.RbacAuthorizationV1Api:
        """Get RbacAuthorizationV1Api client."""
        if self._rbac_v1 is None:
            self._rbac_v1 = client.RbacAuthorizationV1Api(self.api_client)
        return self._rbac_v1

    @property
    def custom_objects(self) -> client.CustomObjectsApi:
        """Get CustomObjectsApi client."""
        if self._custom_objects is None:
            self._custom_objects = client.CustomObjectsApi(self.api_client)
        return self._custom_objects

    @property
    def server(self) -> str:
        """API server endpoint the client talks to."""
        return self.api_client.configuration.host

    @property
    def ca_cert_file(self) -> str | None:
        """CA file of the loaded configuration, if any."""
        return self.api_client.configuration.ssl_ca_cert

    def request_kwargs(self) -> dict[str, Any]:
        """Extra keyword arguments passed to every API call."""
        if self.request_timeout is None:
            return {}
        return {"_request_timeout": self.request_timeout}


def _qualified(namespace: str | None, name: str) -> str:
    return f"{namespace}/{name}" if namespace else name


def has_status(e: Exception, status: int) -> bool:
    """True if ``e`` is an API error response with the given HTTP status."""
    return isinstance(e, ApiException) and e.status == status


def error_status(e: Exception) -> int | None:
    return e.status if isinstance(e, ApiException) else None


def error_reason(e: Exception) -> str:
    if isinstance(e, ApiException):
        return e.reason or f"HTTP {e.status}"
    return str(e)


def api_error(
    e: Exception, action: str, kind: str, name: str, namespace: str | None = None
) -> KubernetesAPIError:
    """
    Build a KubernetesAPIError describing a failed call.

    ``e`` is either an error response or a transport failure (connection
    refused, timeout), which carries no HTTP status.
    """
    return KubernetesAPIError(
        f"Failed to {action} {kind} {_qualified(namespace, name)}",
        reason=error_reason(e),
        status=error_status(e),
    )


def create_if_absent(
    create: Callable[[], Any],
    kind: str,
    name: str,
    namespace: str | None = None,
) -> bool:
    """
    Issue a create call, treating AlreadyExists as success.

    No read is performed beforehand; existence is discovered through the
    409 response of the create call.

    Args:
        create: Zero-argument callable performing the create
        kind: Resource kind, for logging
        name: Resource name
        namespace: Resource namespace (None for cluster-scoped resources)

    Returns:
        True if the object was created, False if it already existed

    Raises:
        KubernetesAPIError: For any failure other than AlreadyExists
    """
    target = _qualified(namespace, name)
    logger.info(
        f"Create {kind} {target}",
        extra={
            "resource_type": kind,
            "resource_name": name,
            "namespace": namespace,
            "operation": "create",
        },
    )
    try:
        create()
    except API_CALL_ERRORS as e:
        if has_status(e, HTTP_CONFLICT):
            logger.debug(f"{kind} {target} already exists")
            return False
        logger.error(
            f"Failed to create {kind} {target}: {error_reason(e)}",
            extra={
                "resource_type": kind,
                "resource_name": name,
                "namespace": namespace,
                "operation": "create",
                "http_status": error_status(e),
            },
        )
        raise api_error(e, "create", kind, name, namespace) from e
    return True


def _managed_metadata(
    name: str,
    namespace: str | None = None,
    annotations: dict[str, str] | None = None,
) -> client.V1ObjectMeta:
    return client.V1ObjectMeta(
        name=name,
        namespace=namespace,
        labels={MANAGED_BY_LABEL_KEY: MANAGED_BY_LABEL_VALUE},
        annotations=annotations,
    )


def ensure_namespace(apis: KubernetesAPIs, name: str) -> bool:
    """Create a Namespace unless it already exists."""
    body = client.V1Namespace(metadata=_managed_metadata(name))
    return create_if_absent(
        lambda: apis.core_v1.create_namespace(body=body, **apis.request_kwargs()),
        kind="Namespace",
        name=name,
    )


def ensure_service_account(apis: KubernetesAPIs, namespace: str, name: str) -> bool:
    """Create a ServiceAccount unless it already exists."""
    body = client.V1ServiceAccount(metadata=_managed_metadata(name, namespace))
    return create_if_absent(
        lambda: apis.core_v1.create_namespaced_service_account(
            namespace=namespace, body=body, **apis.request_kwargs()
        ),
        kind="ServiceAccount",
        name=name,
        namespace=namespace,
    )


def ensure_cluster_role(apis: KubernetesAPIs, name: str) -> bool:
    """
    Create a ClusterRole granting every verb on every resource.

    Sveltos deploys arbitrary add-ons into the management cluster, so the
    identity needs unrestricted access, including non-resource URLs.

    The rules are given in their wire form. The generated ``V1PolicyRule``
    keyword for nonResourceURLs differs between client releases.
    """
    body = client.V1ClusterRole(
        metadata=_managed_metadata(name),
        rules=[dict(rule) for rule in CLUSTER_ROLE_RULES],
    )
    return create_if_absent(
        lambda: apis.rbac_v1.create_cluster_role(body=body, **apis.request_kwargs()),
        kind="ClusterRole",
        name=name,
    )


def ensure_cluster_role_binding(
    apis: KubernetesAPIs,
    name: str,
    cluster_role_name: str,
    service_account_namespace: str,
    service_account_name: str,
) -> bool:
    """Bind a ClusterRole to a ServiceAccount unless the binding exists."""
    body = client.V1ClusterRoleBinding(
        metadata=_managed_metadata(name),
        role_ref=client.V1RoleRef(
            api_group=RBAC_API_GROUP, kind="ClusterRole", name=cluster_role_name
        ),
        subjects=[
            client.RbacV1Subject(
                kind="ServiceAccount",
                name=service_account_name,
                namespace=service_account_namespace,
                api_group="",
            )
        ],
    )
    return create_if_absent(
        lambda: apis.rbac_v1.create_cluster_role_binding(
            body=body, **apis.request_kwargs()
        ),
        kind="ClusterRoleBinding",
        name=name,
    )


def ensure_token_secret(
    apis: KubernetesAPIs, namespace: str, service_account_name: str
) -> bool:
    """
    Create a service-account-token Secret for a ServiceAccount.

    The Secret is named after the ServiceAccount. The API server's token
    controller fills in ``data.token`` asynchronously after creation.
    """
    body = client.V1Secret(
        metadata=_managed_metadata(
            service_account_name,
            namespace,
            annotations={SERVICE_ACCOUNT_NAME_ANNOTATION: service_account_name},
        ),
        type=SERVICE_ACCOUNT_TOKEN_SECRET_TYPE,
    )
    return create_if_absent(
        lambda: apis.core_v1.create_namespaced_secret(
            namespace=namespace, body=body, **apis.request_kwargs()
        ),
        kind="Secret",
        name=service_account_name,
        namespace=namespace,
    )
