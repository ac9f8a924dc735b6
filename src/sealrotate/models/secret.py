"""
Key secret data model for sealrotate.

This module defines SealedKeySecret, the narrow internal representation of
one generation of the sealing controller's key, and PodRef for controller
pods. Neither depends on any Kubernetes client library; the adapter in
sealrotate.kube maps SDK objects to and from these types.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

# Label carried by every key secret the sealing controller generates
SEALING_KEY_LABEL = "sealedsecrets.bitnami.com/sealed-secrets-key"

# Label value the controller uses for its current key
SEALING_KEY_ACTIVE = "active"

# Label value marking a retired key
SEALING_KEY_COMPROMISED = "compromised"

SECRET_API_VERSION = "v1"
SECRET_KIND = "Secret"
DEFAULT_SECRET_TYPE = "kubernetes.io/tls"


@dataclass(frozen=True)
class SealedKeySecret:
    """
    One generation of the sealing controller's signing/encryption key.

    Instances are immutable snapshots; relabeling produces a new instance
    via with_label().

    Attributes:
        name: Secret name, unique within the namespace
        namespace: Namespace the secret lives in
        creation_timestamp: When the cluster created it (None is the zero instant)
        labels: Secret labels
        data: Opaque key material, raw bytes per data key
        annotations: Secret annotations
        secret_type: Kubernetes secret type
        api_version: API version of the type descriptor ("" when unset)
        kind: Kind of the type descriptor ("" when unset)
        resource_version: Cluster-assigned resource version
        uid: Cluster-assigned UID
        self_link: Cluster-assigned self link
    """

    name: str
    namespace: str
    creation_timestamp: datetime | None = None
    labels: dict[str, str] = field(default_factory=dict)
    data: dict[str, bytes] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    secret_type: str = DEFAULT_SECRET_TYPE
    api_version: str = ""
    kind: str = ""
    resource_version: str = ""
    uid: str = ""
    self_link: str = ""

    @property
    def creation_seconds(self) -> int:
        """Creation time at seconds resolution; the zero instant is 0."""
        if self.creation_timestamp is None:
            return 0
        return int(self.creation_timestamp.timestamp())

    def with_label(self, key: str, value: str) -> SealedKeySecret:
        """
        Return a copy with one label set.

        Args:
            key: Label key
            value: Label value

        Returns:
            New SealedKeySecret with the updated labels
        """
        labels = dict(self.labels)
        labels[key] = value
        return replace(self, labels=labels)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to a dictionary suitable for logging.

        Key material is reduced to data key names and sizes.
        """
        return {
            "name": self.name,
            "namespace": self.namespace,
            "creation_timestamp": (
                self.creation_timestamp.isoformat() if self.creation_timestamp else None
            ),
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "type": self.secret_type,
            "data_keys": {key: len(value) for key, value in self.data.items()},
        }

    def encoded_data(self) -> dict[str, str]:
        """Return data base64 encoded, as the Kubernetes API represents it."""
        return {
            key: base64.b64encode(value).decode("ascii")
            for key, value in self.data.items()
        }


@dataclass(frozen=True)
class PodRef:
    """
    Reference to a pod of the sealing controller.

    Attributes:
        name: Pod name
        namespace: Pod namespace
        labels: Pod labels
    """

    name: str
    namespace: str
    labels: dict[str, str] = field(default_factory=dict)
