"""
Data models for sealrotate.

This package contains the core data models:
- SealedKeySecret: One generation of the sealing controller's key
- PodRef: A sealing controller pod
- RotationOutcome, RotationState: Result and states of a run
- BackupArtifact: A written backup
"""

from sealrotate.models.secret import (
    DEFAULT_SECRET_TYPE,
    SEALING_KEY_ACTIVE,
    SEALING_KEY_COMPROMISED,
    SEALING_KEY_LABEL,
    SECRET_API_VERSION,
    SECRET_KIND,
    PodRef,
    SealedKeySecret,
)
from sealrotate.models.outcome import (
    BackupArtifact,
    RotationOutcome,
    RotationState,
)

__all__ = [
    # Secrets
    "SealedKeySecret",
    "PodRef",
    "SEALING_KEY_LABEL",
    "SEALING_KEY_ACTIVE",
    "SEALING_KEY_COMPROMISED",
    "SECRET_API_VERSION",
    "SECRET_KIND",
    "DEFAULT_SECRET_TYPE",
    # Outcome
    "RotationOutcome",
    "RotationState",
    "BackupArtifact",
]
