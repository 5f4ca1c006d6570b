"""
Kubeconfig rendering for the Sveltos identity.

The document points Sveltos back at the management cluster's own API server
using the identity's bearer token.
"""

import base64

import yaml

from register_mgmt_cluster.constants import (
    KUBECONFIG_CLUSTER_NAME,
    KUBECONFIG_CONTEXT_NAME,
)
from register_mgmt_cluster.errors import ConfigurationError


def render_kubeconfig(
    server: str,
    ca_data: bytes,
    namespace: str,
    user: str,
    token: str,
) -> str:
    """
    Render a kubeconfig authenticating ``user`` with ``token``.

    Args:
        server: API server endpoint
        ca_data: PEM CA bundle, embedded base64-encoded
        namespace: Default namespace of the context
        user: Identity name used as the kubeconfig user
        token: Bearer token of the identity

    Returns:
        The kubeconfig as YAML. The same inputs always produce the same text.

    Raises:
        ConfigurationError: If the CA bundle or token is empty
    """
    if not ca_data:
        raise ConfigurationError("Cannot render kubeconfig without CA data")
    if not token:
        raise ConfigurationError("Cannot render kubeconfig without a token")

    document = {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [
            {
                "name": KUBECONFIG_CLUSTER_NAME,
                "cluster": {
                    "server": server,
                    "certificate-authority-data": base64.b64encode(ca_data).decode(),
                },
            }
        ],
        "users": [{"name": user, "user": {"token": token}}],
        "contexts": [
            {
                "name": KUBECONFIG_CONTEXT_NAME,
                "context": {
                    "cluster": KUBECONFIG_CLUSTER_NAME,
                    "namespace": namespace,
                    "user": user,
                },
            }
        ],
        "current-context": KUBECONFIG_CONTEXT_NAME,
    }

    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
