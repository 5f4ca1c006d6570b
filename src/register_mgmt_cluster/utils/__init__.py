"""
Utils package - Helper modules for the registration job.

Contains helper modules for:
- Kubernetes client setup and create-if-absent primitives
- Label parsing
- Kubeconfig rendering
- Bounded, cancellable polling
"""

from register_mgmt_cluster.utils.kubeconfig import render_kubeconfig
from register_mgmt_cluster.utils.labels import parse_labels

__all__ = [
    "parse_labels",
    "render_kubeconfig",
]
