"""
register-mgmt-cluster - Registers a management cluster with Sveltos.

This job runs once inside the management cluster and:
- Provisions a ServiceAccount with cluster-wide RBAC
- Exchanges it for a bearer token (TokenRequest or token Secret)
- Writes a SveltosCluster plus a kubeconfig Secret for Sveltos to consume
"""

__version__ = "0.1.0"
