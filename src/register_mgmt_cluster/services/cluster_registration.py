"""
Create-or-update of the SveltosCluster and its kubeconfig Secret.

Unlike the identity primitives, these objects are read first: an existing
SveltosCluster gets its labels merged and its spec rewritten, and an existing
kubeconfig Secret gets its data replaced with the fresh kubeconfig.
"""

import base64
import logging
from typing import Any

from kubernetes import client

from ..constants import (
    KUBECONFIG_KEY,
    MANAGED_BY_LABEL_KEY,
    MANAGED_BY_LABEL_VALUE,
    SVELTOS_CLUSTER_GROUP,
    SVELTOS_CLUSTER_KIND,
    SVELTOS_CLUSTER_PLURAL,
    SVELTOS_CLUSTER_VERSION,
)
from ..models.sveltos_cluster import SveltosClusterSpec, build_sveltos_cluster
from ..utils.kubernetes import (
    API_CALL_ERRORS,
    HTTP_NOT_FOUND,
    KubernetesAPIs,
    api_error,
    error_reason,
    error_status,
    has_status,
)

logger = logging.getLogger(__name__)


def merge_labels(
    existing: dict[str, str] | None, supplied: dict[str, str] | None
) -> dict[str, str]:
    """
    Merge supplied labels over existing ones.

    Keys only present in ``existing`` survive, supplied keys win on conflict,
    and nothing is ever removed.
    """
    merged = dict(existing or {})
    merged.update(supplied or {})
    return merged


def _log_extra(
    kind: str,
    namespace: str,
    name: str,
    operation: str,
    error: Exception | None = None,
) -> dict[str, Any]:
    extra = {
        "resource_type": kind,
        "resource_name": name,
        "namespace": namespace,
        "operation": operation,
    }
    if error is not None:
        extra["http_status"] = error_status(error)
    return extra


def upsert_sveltos_cluster(
    apis: KubernetesAPIs,
    namespace: str,
    name: str,
    labels: dict[str, str] | None,
    renewal_interval_seconds: int,
) -> dict[str, Any]:
    """
    Create the SveltosCluster, or update it if it already exists.

    On update the supplied labels are merged into the existing ones and the
    spec is replaced by one carrying only the token renewal interval.

    Args:
        apis: Kubernetes API holder
        namespace: SveltosCluster namespace
        name: SveltosCluster name
        labels: Labels to set or merge
        renewal_interval_seconds: Token renewal period written into the spec

    Returns:
        The object returned by the API server

    Raises:
        KubernetesAPIError: If the read (other than NotFound), create or update fails
    """
    spec = SveltosClusterSpec.with_renewal_interval(renewal_interval_seconds)
    coordinates = {
        "group": SVELTOS_CLUSTER_GROUP,
        "version": SVELTOS_CLUSTER_VERSION,
        "namespace": namespace,
        "plural": SVELTOS_CLUSTER_PLURAL,
    }

    try:
        current = apis.custom_objects.get_namespaced_custom_object(
            name=name, **coordinates, **apis.request_kwargs()
        )
    except API_CALL_ERRORS as e:
        if not has_status(e, HTTP_NOT_FOUND):
            logger.error(
                f"Failed to read {SVELTOS_CLUSTER_KIND} {namespace}/{name}: {error_reason(e)}",
                extra=_log_extra(SVELTOS_CLUSTER_KIND, namespace, name, "read", e),
            )
            raise api_error(e, "read", SVELTOS_CLUSTER_KIND, name, namespace) from e
        current = None

    if current is None:
        logger.info(
            f"Creating {SVELTOS_CLUSTER_KIND} {namespace}/{name}",
            extra=_log_extra(SVELTOS_CLUSTER_KIND, namespace, name, "create"),
        )
        body = build_sveltos_cluster(namespace, name, labels, spec)
        try:
            return apis.custom_objects.create_namespaced_custom_object(
                body=body, **coordinates, **apis.request_kwargs()
            )
        except API_CALL_ERRORS as e:
            logger.error(
                f"Failed to create {SVELTOS_CLUSTER_KIND} {namespace}/{name}: {error_reason(e)}",
                extra=_log_extra(SVELTOS_CLUSTER_KIND, namespace, name, "create", e),
            )
            raise api_error(e, "create", SVELTOS_CLUSTER_KIND, name, namespace) from e

    logger.info(
        f"Updating {SVELTOS_CLUSTER_KIND} {namespace}/{name}",
        extra=_log_extra(SVELTOS_CLUSTER_KIND, namespace, name, "update"),
    )
    metadata = current.setdefault("metadata", {})
    metadata["labels"] = merge_labels(metadata.get("labels"), labels)
    current["spec"] = spec.to_body()

    try:
        return apis.custom_objects.replace_namespaced_custom_object(
            name=name, body=current, **coordinates, **apis.request_kwargs()
        )
    except API_CALL_ERRORS as e:
        logger.error(
            f"Failed to update {SVELTOS_CLUSTER_KIND} {namespace}/{name}: {error_reason(e)}",
            extra=_log_extra(SVELTOS_CLUSTER_KIND, namespace, name, "update", e),
        )
        raise api_error(e, "update", SVELTOS_CLUSTER_KIND, name, namespace) from e


def upsert_kubeconfig_secret(
    apis: KubernetesAPIs, namespace: str, name: str, kubeconfig: str
) -> client.V1Secret:
    """
    Create the kubeconfig Secret, or replace its data if it already exists.

    The data of an existing Secret is replaced wholesale, so no key other
    than ``kubeconfig`` survives an update.

    Raises:
        KubernetesAPIError: If the read (other than NotFound), create or update fails
    """
    data = {KUBECONFIG_KEY: base64.b64encode(kubeconfig.encode("utf-8")).decode()}

    try:
        current = apis.core_v1.read_namespaced_secret(
            name=name, namespace=namespace, **apis.request_kwargs()
        )
    except API_CALL_ERRORS as e:
        if not has_status(e, HTTP_NOT_FOUND):
            logger.error(
                f"Failed to read Secret {namespace}/{name}: {error_reason(e)}",
                extra=_log_extra("Secret", namespace, name, "read", e),
            )
            raise api_error(e, "read", "Secret", name, namespace) from e
        current = None

    if current is None:
        logger.info(
            f"Creating Secret {namespace}/{name}",
            extra=_log_extra("Secret", namespace, name, "create"),
        )
        body = client.V1Secret(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels={MANAGED_BY_LABEL_KEY: MANAGED_BY_LABEL_VALUE},
            ),
            data=data,
        )
        try:
            return apis.core_v1.create_namespaced_secret(
                namespace=namespace, body=body, **apis.request_kwargs()
            )
        except API_CALL_ERRORS as e:
            logger.error(
                f"Failed to create Secret {namespace}/{name}: {error_reason(e)}",
                extra=_log_extra("Secret", namespace, name, "create", e),
            )
            raise api_error(e, "create", "Secret", name, namespace) from e

    logger.info(
        f"Updating Secret {namespace}/{name}",
        extra=_log_extra("Secret", namespace, name, "update"),
    )
    current.data = data
    current.string_data = None

    try:
        return apis.core_v1.replace_namespaced_secret(
            name=name, namespace=namespace, body=current, **apis.request_kwargs()
        )
    except API_CALL_ERRORS as e:
        logger.error(
            f"Failed to update Secret {namespace}/{name}: {error_reason(e)}",
            extra=_log_extra("Secret", namespace, name, "update", e),
        )
        raise api_error(e, "update", "Secret", name, namespace) from e
