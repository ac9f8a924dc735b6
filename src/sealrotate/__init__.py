"""
sealrotate - Backup and rotation of the Sealed Secrets controller key

Exports the controller's active key secret to object storage, retires
every older key by relabeling it compromised, restarts the controller so
it generates a fresh key, and reports the result to Slack.

Quick Start:
    >>> from sealrotate.config import load_config_from_env
    >>> from sealrotate.rotation import RotationController, build_context
    >>>
    >>> config = load_config_from_env()
    >>> outcome = RotationController(build_context(config)).run()
    >>> print(outcome.state.value)
"""

from __future__ import annotations

__version__ = "0.1.0"

from sealrotate.errors import (
    ConfigError,
    NotFoundError,
    PartialDemotionError,
    RotationTimeoutError,
    SealRotateError,
    SerializationError,
    TransportError,
)
from sealrotate.models import (
    SEALING_KEY_COMPROMISED,
    SEALING_KEY_LABEL,
    BackupArtifact,
    PodRef,
    RotationOutcome,
    RotationState,
    SealedKeySecret,
)

__all__ = [
    "__version__",
    # Errors
    "SealRotateError",
    "ConfigError",
    "NotFoundError",
    "TransportError",
    "SerializationError",
    "PartialDemotionError",
    "RotationTimeoutError",
    # Models
    "SealedKeySecret",
    "PodRef",
    "RotationOutcome",
    "RotationState",
    "BackupArtifact",
    "SEALING_KEY_LABEL",
    "SEALING_KEY_COMPROMISED",
]
