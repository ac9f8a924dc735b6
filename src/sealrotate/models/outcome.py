"""
Run outcome data model for sealrotate.

A RotationOutcome is the terminal record of one invocation. It is never
persisted; the CLI logs it and optionally prints it as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RotationState(Enum):
    """States of the rotation state machine."""

    FETCHING = "fetching"
    SELECTING = "selecting"
    SANITIZING = "sanitizing"
    BACKING_UP = "backing_up"
    DEMOTING = "demoting"
    RESTARTING = "restarting"
    NOTIFYING = "notifying"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition can happen."""
        return self in (RotationState.DONE, RotationState.FAILED)


@dataclass(frozen=True)
class BackupArtifact:
    """
    A written backup of exactly one key secret.

    Attributes:
        key: Destination key inside the sink
        location: Full location, e.g. s3://bucket/key
        size: Number of bytes written
        secret_name: Name of the secret the artifact holds
    """

    key: str
    location: str
    size: int
    secret_name: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "location": self.location,
            "size": self.size,
            "secret_name": self.secret_name,
        }


@dataclass
class RotationOutcome:
    """
    Result of a rotation or backup run.

    Attributes:
        state: Final (or current) state of the run
        failed_step: State the run failed in, if it failed
        error: Description of the failure cause
        active_key: Name of the secret that was backed up
        latest_key: Name of the secret kept active
        artifact: Backup artifact, once written
        demoted: Names of secrets relabeled as compromised
        demotion_failures: Secret name to error for failed relabels
        restarted_pods: Names of deleted controller pods
        restart_failures: Pod name to error for failed deletes
        notification_sent: Whether the summary notification went out
        notification_error: Error from the notifier, if any
        started_at: Run start time
        finished_at: Run end time
    """

    state: RotationState = RotationState.FETCHING
    failed_step: RotationState | None = None
    error: str = ""
    active_key: str = ""
    latest_key: str = ""
    artifact: BackupArtifact | None = None
    demoted: list[str] = field(default_factory=list)
    demotion_failures: dict[str, str] = field(default_factory=dict)
    restarted_pods: list[str] = field(default_factory=list)
    restart_failures: dict[str, str] = field(default_factory=dict)
    notification_sent: bool = False
    notification_error: str = ""
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def success(self) -> bool:
        """True when the run reached DONE."""
        return self.state == RotationState.DONE

    @property
    def demoted_count(self) -> int:
        return len(self.demoted)

    @property
    def has_warnings(self) -> bool:
        """True when a non-fatal problem was recorded."""
        return bool(
            self.demotion_failures or self.restart_failures or self.notification_error
        )

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or JSON output."""
        return {
            "success": self.success,
            "state": self.state.value,
            "failed_step": self.failed_step.value if self.failed_step else None,
            "error": self.error or None,
            "active_key": self.active_key or None,
            "latest_key": self.latest_key or None,
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "demoted": list(self.demoted),
            "demoted_count": self.demoted_count,
            "demotion_failures": dict(self.demotion_failures),
            "restarted_pods": list(self.restarted_pods),
            "restart_failures": dict(self.restart_failures),
            "notification_sent": self.notification_sent,
            "notification_error": self.notification_error or None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "duration_seconds": self.duration_seconds,
        }
