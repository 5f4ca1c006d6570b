"""
Service layer for the registration job.

This module provides the token strategies, the SveltosCluster/Secret upserts,
and the registrar sequencing them.
"""

from .cluster_registration import upsert_kubeconfig_secret, upsert_sveltos_cluster
from .registrar import ManagementClusterRegistrar
from .token_provider import (
    SecretTokenProvider,
    TokenProvider,
    TokenRequestProvider,
    select_token_provider,
)

__all__ = [
    "ManagementClusterRegistrar",
    "TokenProvider",
    "TokenRequestProvider",
    "SecretTokenProvider",
    "select_token_provider",
    "upsert_sveltos_cluster",
    "upsert_kubeconfig_secret",
]
