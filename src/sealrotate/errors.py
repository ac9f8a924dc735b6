"""
Error taxonomy for sealrotate.

Every fatal condition raised by a rotation step derives from
SealRotateError, which carries the step and resource it relates to so the
top-level runner can log a single line naming both.
"""

from __future__ import annotations


class SealRotateError(Exception):
    """
    Base error for all sealrotate failures.

    Attributes:
        message: Human-readable description
        step: Rotation step the error occurred in, if known
        resource: Cluster or storage resource involved, if any
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        step: str | None = None,
        resource: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.step = step
        self.resource = resource
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None and str(self.cause):
            return f"{self.message}: {self.cause}"
        return self.message


class ConfigError(SealRotateError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message, step="config")
        self.problems = problems or []

    def __str__(self) -> str:
        if self.problems:
            return f"{self.message}: " + "; ".join(self.problems)
        return self.message


class NotFoundError(SealRotateError):
    """No secret or pod matched a selector."""
    pass


class TransportError(SealRotateError):
    """Network, API or auth failure talking to the cluster, storage or notifier."""
    pass


class SerializationError(SealRotateError):
    """A secret could not be encoded to or decoded from its backup format."""
    pass


class PartialDemotionError(SealRotateError):
    """One or more key secrets could not be relabeled."""

    def __init__(
        self,
        failures: dict[str, str],
        step: str | None = None,
    ) -> None:
        names = ", ".join(sorted(failures))
        super().__init__(
            f"Failed to demote {len(failures)} key secret(s): {names}",
            step=step,
        )
        self.failures = dict(failures)


class RotationTimeoutError(SealRotateError):
    """The run exceeded its overall deadline."""
    pass
