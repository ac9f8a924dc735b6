"""
Key backup for sealrotate.

Serialization of key secrets to YAML and writing them to a backup sink.
"""

from sealrotate.backup.serializer import (
    deserialize_yaml,
    manifest_to_secret,
    secret_to_manifest,
    serialize_to_yaml,
)
from sealrotate.backup.writer import BackupWriter, build_destination_key
from sealrotate.models import BackupArtifact

__all__ = [
    "BackupArtifact",
    "BackupWriter",
    "build_destination_key",
    "deserialize_yaml",
    "manifest_to_secret",
    "secret_to_manifest",
    "serialize_to_yaml",
]
