"""
Cluster collaborator interface for sealrotate.

The rotation controller talks to the cluster only through ClusterClient,
which speaks in SealedKeySecret and PodRef rather than SDK objects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sealrotate.models import PodRef, SealedKeySecret


class ClusterClient(ABC):
    """
    Abstract base class for cluster access.

    All methods raise TransportError on API, network or auth failure.
    Listing methods return an empty list when nothing matches; deciding
    whether that is fatal is up to the caller.
    """

    @abstractmethod
    def list_secrets(self, namespace: str, label_selector: str) -> list[SealedKeySecret]:
        """
        List secrets matching a label selector, in API return order.

        Args:
            namespace: Namespace to list in
            label_selector: Kubernetes label selector

        Returns:
            Matching secrets
        """
        pass

    @abstractmethod
    def list_pods(self, namespace: str, label_selector: str) -> list[PodRef]:
        """
        List pods matching a label selector.

        Args:
            namespace: Namespace to list in
            label_selector: Kubernetes label selector

        Returns:
            Matching pods
        """
        pass

    @abstractmethod
    def update_secret(self, secret: SealedKeySecret) -> None:
        """
        Write a secret's labels back to the cluster.

        Args:
            secret: Secret carrying the desired labels
        """
        pass

    @abstractmethod
    def delete_pod(self, namespace: str, name: str) -> None:
        """
        Delete a pod.

        Args:
            namespace: Pod namespace
            name: Pod name
        """
        pass
