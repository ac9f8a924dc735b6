"""
Backup writer for sealrotate.

Serializes a sanitized key secret and hands it to a backup sink under a
deterministic key derived from the controller namespace and name.
"""

from __future__ import annotations

import logging

from sealrotate.backup.serializer import serialize_to_yaml
from sealrotate.errors import TransportError
from sealrotate.models import BackupArtifact, SealedKeySecret
from sealrotate.storage import YAML_CONTENT_TYPE, BackupSink

logger = logging.getLogger(__name__)


def build_destination_key(namespace: str, controller_name: str) -> str:
    """
    Build the storage key for a controller's key backup.

    Args:
        namespace: Controller namespace
        controller_name: Controller name

    Returns:
        Key of the form <namespace>/<controller_name>-key.yaml
    """
    return f"{namespace}/{controller_name}-key.yaml"


class BackupWriter:
    """
    Writes key secret backups to a sink.

    Attributes:
        sink: Storage the backups go to
    """

    def __init__(self, sink: BackupSink) -> None:
        self.sink = sink

    def write(
        self,
        artifact: bytes,
        destination_key: str,
        secret_name: str = "",
    ) -> BackupArtifact:
        """
        Store serialized content under destination_key.

        Args:
            artifact: Serialized secret
            destination_key: Key inside the sink
            secret_name: Name of the serialized secret, for the record

        Returns:
            BackupArtifact describing what was written

        Raises:
            TransportError: If the sink did not store the full content
        """
        if not artifact:
            raise TransportError(
                "Refusing to write an empty backup",
                resource=destination_key,
            )

        location = self.sink.upload(destination_key, artifact, YAML_CONTENT_TYPE)
        return BackupArtifact(
            key=destination_key,
            location=location,
            size=len(artifact),
            secret_name=secret_name,
        )

    def backup(
        self,
        secret: SealedKeySecret,
        namespace: str,
        controller_name: str,
    ) -> BackupArtifact:
        """
        Serialize a secret and write it.

        Args:
            secret: Sanitized secret to back up
            namespace: Controller namespace
            controller_name: Controller name

        Returns:
            BackupArtifact describing what was written

        Raises:
            SerializationError: If the secret cannot be encoded
            TransportError: If the sink write fails
        """
        body = serialize_to_yaml(secret)
        key = build_destination_key(namespace, controller_name)
        artifact = self.write(body, key, secret_name=secret.name)
        logger.info(
            f"Backed up key secret {secret.name} to {artifact.location} "
            f"({artifact.size} bytes)"
        )
        return artifact
