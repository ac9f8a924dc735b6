"""
Cluster access for sealrotate.

- ClusterClient: Interface the rotation controller uses
- KubernetesClusterClient: Implementation on the kubernetes Python client
"""

from sealrotate.kube.base import ClusterClient
from sealrotate.kube.client import (
    CLIENT_MODE_EXTERNAL,
    CLIENT_MODE_INTERNAL,
    CLIENT_MODES,
    DEFAULT_REQUEST_TIMEOUT,
    KubernetesClusterClient,
    pod_from_api,
    secret_from_api,
)

__all__ = [
    "ClusterClient",
    "KubernetesClusterClient",
    "CLIENT_MODE_INTERNAL",
    "CLIENT_MODE_EXTERNAL",
    "CLIENT_MODES",
    "DEFAULT_REQUEST_TIMEOUT",
    "pod_from_api",
    "secret_from_api",
]
