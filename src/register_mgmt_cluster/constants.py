"""
Constants used throughout the management cluster registration job.

This module defines all constant values used by the job including:
- Names of the RBAC objects backing the Sveltos identity
- SveltosCluster API coordinates
- Kubeconfig and Secret naming
- Token and renewal defaults
"""

# Identity provisioned in the management cluster
SVELTOS_IDENTITY_NAMESPACE = "projectsveltos"
SVELTOS_IDENTITY_NAME = "projectsveltos"
SVELTOS_CLUSTER_ROLE_NAME = "projectsveltos"
SVELTOS_CLUSTER_ROLE_BINDING_NAME = "projectsveltos"

# Registration defaults (match the CLI defaults)
DEFAULT_CLUSTER_NAMESPACE = "mgmt"
DEFAULT_CLUSTER_NAME = "mgmt"

# SveltosCluster custom resource
SVELTOS_CLUSTER_GROUP = "lib.projectsveltos.io"
SVELTOS_CLUSTER_VERSION = "v1beta1"
SVELTOS_CLUSTER_PLURAL = "sveltosclusters"
SVELTOS_CLUSTER_KIND = "SveltosCluster"

# Kubeconfig Secret
KUBECONFIG_SECRET_SUFFIX = "-sveltos-kubeconfig"  # noqa: S105 - name suffix
KUBECONFIG_KEY = "kubeconfig"
KUBECONFIG_CLUSTER_NAME = "local"
KUBECONFIG_CONTEXT_NAME = "sveltos-context"

# Service account token Secret
SERVICE_ACCOUNT_TOKEN_SECRET_TYPE = "kubernetes.io/service-account-token"  # noqa: S105
SERVICE_ACCOUNT_NAME_ANNOTATION = "kubernetes.io/service-account.name"
TOKEN_KEY = "token"  # noqa: S105

# Token acquisition defaults
DEFAULT_TOKEN_EXPIRATION_SECONDS = 7200
DEFAULT_TOKEN_POLL_ATTEMPTS = 5
DEFAULT_TOKEN_POLL_INTERVAL_SECONDS = 1.0

# Sveltos refreshes the kubeconfig token on this period. It must not exceed
# the lifetime of tokens issued by previously shipped versions of this job,
# otherwise Sveltos keeps using an expired token between renewals.
RENEWAL_INTERVAL_SECONDS = 3600

# In-cluster CA bundle mounted into every pod
DEFAULT_CA_BUNDLE_PATH = "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"

# Label constants for resource identification
MANAGED_BY_LABEL_KEY = "app.kubernetes.io/managed-by"
MANAGED_BY_LABEL_VALUE = "register-mgmt-cluster"

# RBAC API group used in role references
RBAC_API_GROUP = "rbac.authorization.k8s.io"

# Process exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Error message templates
ERROR_INVALID_LABEL_PAIR = "invalid key-value pair format: {}"
ERROR_CA_BUNDLE_UNREADABLE = "failed to read CA bundle {}: {}"
ERROR_TOKEN_SECRET_TIMEOUT = (
    "token for ServiceAccount {}/{} was not populated in Secret {}/{} "
    "after {} attempts"
)
