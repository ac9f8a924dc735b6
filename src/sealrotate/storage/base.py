"""
Abstract base class for backup sinks.

This module defines the BackupSink interface that all storage
implementations must follow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

YAML_CONTENT_TYPE = "application/x-yaml"


class BackupSink(ABC):
    """
    Abstract base class for backup storage.

    A sink stores a complete byte stream under a key. Implementations must
    never leave a partially written object behind: upload either stores the
    full body or raises.
    """

    @abstractmethod
    def upload(
        self,
        key: str,
        body: bytes,
        content_type: str = YAML_CONTENT_TYPE,
    ) -> str:
        """
        Store a byte stream.

        Args:
            key: Destination key, e.g. "kubeseal/kubeseal-controller-key.yaml"
            body: Full content to store
            content_type: MIME type of the content

        Returns:
            Location of the stored object (e.g. s3://bucket/key)

        Raises:
            TransportError: If the content could not be stored
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """
        Describe the sink for log messages.

        Returns:
            Short description, e.g. the bucket URL
        """
        pass
