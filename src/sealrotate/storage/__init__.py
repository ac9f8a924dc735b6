"""
Backup sinks for sealrotate.

This package provides storage implementations for key backups:

- S3BackupSink: S3 bucket storage for production deployments
- LocalBackupSink: Directory storage for development and air-gapped clusters

Use the get_sink() factory function to get the appropriate backend.
"""

from sealrotate.storage.base import YAML_CONTENT_TYPE, BackupSink
from sealrotate.storage.local import LocalBackupSink
from sealrotate.storage.s3 import S3BackupSink


def get_sink(backend: str = "s3", **kwargs) -> BackupSink:
    """
    Factory function to get the appropriate backup sink.

    Args:
        backend: Sink type. Supported values:
            - "s3": AWS S3 bucket
            - "local": Local directory
        **kwargs: Backend-specific configuration options

    Returns:
        Configured BackupSink instance

    Raises:
        ValueError: If backend type is unknown

    Examples:
        # AWS S3 storage
        sink = get_sink("s3", bucket="kubeseal-key-backups", region="eu-west-1")

        # Local directory
        sink = get_sink("local", directory="/var/backups/kubeseal")
    """
    backend = backend.lower()

    if backend == "s3":
        return S3BackupSink(**kwargs)

    elif backend == "local":
        return LocalBackupSink(**kwargs)

    else:
        raise ValueError(
            f"Unknown storage backend: {backend}. "
            "Supported backends: 's3', 'local'"
        )


__all__ = [
    "BackupSink",
    "YAML_CONTENT_TYPE",
    "S3BackupSink",
    "LocalBackupSink",
    "get_sink",
]
