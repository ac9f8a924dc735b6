"""
Local directory backup sink for development and air-gapped clusters.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from sealrotate.errors import TransportError
from sealrotate.storage.base import YAML_CONTENT_TYPE, BackupSink

logger = logging.getLogger(__name__)


class LocalBackupSink(BackupSink):
    """
    Stores backups as files below a directory.

    Content is written to a temporary file in the destination directory and
    renamed into place, so readers never observe a half-written backup.
    """

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory).expanduser()

    def describe(self) -> str:
        return f"file://{self.directory}"

    def _resolve(self, key: str) -> Path:
        root = self.directory.resolve()
        path = (root / key).resolve()
        if root != path and root not in path.parents:
            raise TransportError(f"Key escapes backup directory: {key}", resource=key)
        return path

    def upload(
        self,
        key: str,
        body: bytes,
        content_type: str = YAML_CONTENT_TYPE,
    ) -> str:
        """Write body to <directory>/<key> atomically."""
        path = self._resolve(key)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
            with os.fdopen(fd, "wb") as f:
                f.write(body)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise TransportError(
                f"Unable to write backup to {path}",
                resource=str(path),
                cause=e,
            ) from e

        logger.info(f"Stored {len(body)} bytes to {path}")
        return str(path)
