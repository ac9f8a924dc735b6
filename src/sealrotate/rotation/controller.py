"""
Rotation controller for sealrotate.

Drives one rotation run through its states:

    fetching -> selecting -> sanitizing -> backing_up -> demoting
             -> restarting -> notifying -> done

with failed reachable from every state. The backup write must succeed
before any secret is relabeled or any pod deleted. Steps never terminate
the process; failures are recorded on the RotationOutcome and the caller
decides the exit code.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from sealrotate.backup import BackupWriter
from sealrotate.config import RotationConfig
from sealrotate.errors import (
    NotFoundError,
    PartialDemotionError,
    RotationTimeoutError,
    SealRotateError,
    TransportError,
)
from sealrotate.kube import ClusterClient, KubernetesClusterClient
from sealrotate.models import (
    SEALING_KEY_COMPROMISED,
    SEALING_KEY_LABEL,
    RotationOutcome,
    RotationState,
    SealedKeySecret,
)
from sealrotate.notifiers import BaseNotifier, create_notifier
from sealrotate.observability import get_logger
from sealrotate.rotation.sanitizer import sanitize
from sealrotate.rotation.selector import (
    partition_for_demotion,
    select_active_by_prefix,
    select_latest_by_creation_time,
)
from sealrotate.storage import get_sink

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _unexpected(error: Exception) -> SealRotateError:
    """Wrap an exception no collaborator mapped to a SealRotateError."""
    return SealRotateError(f"Unexpected {type(error).__name__}", cause=error)


@dataclass
class RotationContext:
    """
    Everything a run needs, passed explicitly into the controller.

    Attributes:
        config: Validated run configuration
        cluster: Cluster collaborator
        writer: Backup writer
        notifier: Notifier for the run summary
        clock: Monotonic clock used for the run deadline
        now: Wall clock used for outcome timestamps
    """

    config: RotationConfig
    cluster: ClusterClient
    writer: BackupWriter
    notifier: BaseNotifier
    clock: Callable[[], float] = field(default=time.monotonic)
    now: Callable[[], datetime] = field(default=_utcnow)


def build_context(config: RotationConfig) -> RotationContext:
    """
    Build a RotationContext with the real collaborators for config.

    Raises:
        ConfigError: If a collaborator cannot be configured
    """
    cluster = KubernetesClusterClient(
        mode=config.client_mode,
        kubeconfig=config.kubeconfig_path or None,
        request_timeout=config.request_timeout_seconds,
    )

    if config.storage_backend == "local":
        sink = get_sink("local", directory=config.local_backup_dir)
    else:
        sink = get_sink(
            "s3",
            bucket=config.bucket_name,
            region=config.region,
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
        )

    return RotationContext(
        config=config,
        cluster=cluster,
        writer=BackupWriter(sink),
        notifier=create_notifier(config),
    )


class RotationController:
    """
    State machine for backing up and rotating the sealing key.

    One controller instance handles one run against one namespace.
    """

    def __init__(self, context: RotationContext) -> None:
        self.context = context
        self._deadline: float | None = None

    @property
    def config(self) -> RotationConfig:
        return self.context.config

    @property
    def namespace(self) -> str:
        return self.config.controller_namespace

    # =========================================================================
    # Runs
    # =========================================================================

    def run(self) -> RotationOutcome:
        """
        Execute a full rotation.

        Returns:
            RotationOutcome in state DONE or FAILED
        """
        outcome = self._start()
        try:
            self._enter(outcome, RotationState.FETCHING)
            secrets = self.fetch()

            self._enter(outcome, RotationState.SELECTING)
            active = self.select(secrets)
            outcome.active_key = active.name

            self._enter(outcome, RotationState.SANITIZING)
            clean = sanitize(active)

            self._enter(outcome, RotationState.BACKING_UP)
            self.back_up(clean, outcome)

            self._enter(outcome, RotationState.DEMOTING)
            self.demote(outcome)

            self._enter(outcome, RotationState.RESTARTING)
            self.restart(outcome)

            self._enter(outcome, RotationState.NOTIFYING)
            self.notify(outcome)

            self._enter(outcome, RotationState.DONE)
        except SealRotateError as e:
            self._fail(outcome, e, notify=True)
        except Exception as e:
            self._fail(outcome, _unexpected(e), notify=True)

        return self._finish(outcome)

    def run_backup_only(self) -> RotationOutcome:
        """
        Back up the active key without rotating it.

        No secret is relabeled, no pod deleted and no notification sent.
        """
        outcome = self._start()
        try:
            self._enter(outcome, RotationState.FETCHING)
            secrets = self.fetch()

            self._enter(outcome, RotationState.SELECTING)
            active = self.select(secrets)
            outcome.active_key = active.name

            self._enter(outcome, RotationState.SANITIZING)
            clean = sanitize(active)

            self._enter(outcome, RotationState.BACKING_UP)
            self.back_up(clean, outcome)

            self._enter(outcome, RotationState.DONE)
        except SealRotateError as e:
            self._fail(outcome, e, notify=False)
        except Exception as e:
            self._fail(outcome, _unexpected(e), notify=False)

        return self._finish(outcome)

    # =========================================================================
    # Steps
    # =========================================================================

    def fetch(self) -> list[SealedKeySecret]:
        """
        List the sealing key secrets in the controller namespace.

        Raises:
            NotFoundError: If no secret carries the sealing key label
        """
        secrets = self.context.cluster.list_secrets(self.namespace, SEALING_KEY_LABEL)
        if not secrets:
            raise NotFoundError(
                f"no matching secrets: no secrets with label {SEALING_KEY_LABEL} "
                f"in namespace {self.namespace}",
                resource=f"{self.namespace}/secrets",
            )
        logger.debug(f"Found {len(secrets)} sealing key secrets", namespace=self.namespace)
        return secrets

    def select(self, secrets: list[SealedKeySecret]) -> SealedKeySecret:
        """Pick the active key secret by prefix."""
        active = select_active_by_prefix(
            secrets,
            self.config.key_prefix,
            mode=self.config.prefix_match_mode,
        )
        logger.info("Selected active key secret", secret=active.name)
        logger.debug("Active key secret details", details=active.to_dict())
        return active

    def back_up(self, secret: SealedKeySecret, outcome: RotationOutcome) -> None:
        """Serialize and store the sanitized active key."""
        artifact = self.context.writer.backup(
            secret,
            self.namespace,
            self.config.controller_name,
        )
        outcome.artifact = artifact
        logger.info(
            "New key file has been uploaded",
            key=artifact.key,
            location=artifact.location,
        )

    def demote(self, outcome: RotationOutcome) -> None:
        """
        Relabel every key secret except the latest as compromised.

        Uses a fresh listing. A failed relabel is logged and recorded, and
        the remaining secrets are still processed. With the "abort" demotion
        policy, PartialDemotionError is raised once all secrets were tried.
        """
        secrets = self.context.cluster.list_secrets(self.namespace, SEALING_KEY_LABEL)
        if not secrets:
            raise NotFoundError(
                f"no matching secrets: no secrets with label {SEALING_KEY_LABEL} "
                f"in namespace {self.namespace}",
                resource=f"{self.namespace}/secrets",
            )

        latest = select_latest_by_creation_time(secrets)
        outcome.latest_key = latest.name
        logger.info("Latest sealed secret", latest=latest.name)

        for secret in partition_for_demotion(secrets, latest):
            logger.info("Disable secret key", key=secret.name)
            demoted = secret.with_label(SEALING_KEY_LABEL, SEALING_KEY_COMPROMISED)
            try:
                self.context.cluster.update_secret(demoted)
            except TransportError as e:
                logger.warning(
                    "Unable to demote secret key",
                    key=secret.name,
                    error=str(e),
                )
                outcome.demotion_failures[secret.name] = str(e)
                continue
            outcome.demoted.append(secret.name)

        if outcome.demotion_failures:
            error = PartialDemotionError(
                outcome.demotion_failures,
                step=RotationState.DEMOTING.value,
            )
            if self.config.demotion_failure_policy == "abort":
                raise error
            logger.warning(str(error), failed=len(outcome.demotion_failures))

    def restart(self, outcome: RotationOutcome) -> None:
        """
        Restart the sealing controller by deleting its pods.

        Raises:
            NotFoundError: If no controller pod matches the selector
            TransportError: On the first failed delete with the "abort"
                restart policy, or when no pod could be deleted
        """
        selector = self.config.pod_label_selector
        logger.warning("Restarting kubeseal controller with labels", labels=selector)

        pods = self.context.cluster.list_pods(self.namespace, selector)
        if not pods:
            raise NotFoundError(
                f"No pods with labels {selector} in namespace {self.namespace} were found",
                resource=f"{self.namespace}/pods?{selector}",
            )

        for pod in pods:
            logger.warning("Trying to delete pod", pod=pod.name)
            try:
                self.context.cluster.delete_pod(pod.namespace or self.namespace, pod.name)
            except TransportError as e:
                if self.config.restart_failure_policy == "abort":
                    raise
                logger.warning("Unable to delete pod", pod=pod.name, error=str(e))
                outcome.restart_failures[pod.name] = str(e)
                continue
            outcome.restarted_pods.append(pod.name)
            logger.info("Pod has been deleted", pod=pod.name)

        if not outcome.restarted_pods:
            raise TransportError(
                "Unable to delete any kubeseal pod",
                resource=f"{self.namespace}/pods?{selector}",
            )
        logger.info("Kubeseal controller has been restarted")

    def notify(self, outcome: RotationOutcome) -> None:
        """
        Send the run summary.

        With the "warn" notification policy a delivery failure is recorded
        and the run still completes.
        """
        try:
            self.context.notifier.notify(
                outcome,
                self.namespace,
                self.config.controller_name,
            )
        except TransportError as e:
            outcome.notification_error = str(e)
            if self.config.notification_failure_policy == "fatal":
                raise
            logger.warning("Unable to send notification", error=str(e))
            return
        outcome.notification_sent = True

    # =========================================================================
    # State handling
    # =========================================================================

    def _start(self) -> RotationOutcome:
        timeout = self.config.run_timeout_seconds
        self._deadline = self.context.clock() + timeout if timeout else None
        logger.set_context(namespace=self.namespace)
        return RotationOutcome(started_at=self.context.now())

    def _enter(self, outcome: RotationOutcome, state: RotationState) -> None:
        previous = outcome.state
        outcome.state = state
        if previous != state:
            logger.step_completed(previous.value)
        if state.is_terminal:
            return
        if self._deadline is not None and self.context.clock() > self._deadline:
            raise RotationTimeoutError(
                f"Run exceeded its deadline of {self.config.run_timeout_seconds:g}s "
                f"before {state.value}",
                step=state.value,
            )
        logger.step_started(state.value)

    def _fail(self, outcome: RotationOutcome, error: SealRotateError, notify: bool) -> None:
        failed_step = outcome.state
        if error.step is None:
            error.step = failed_step.value

        outcome.failed_step = failed_step
        outcome.state = RotationState.FAILED
        outcome.error = str(error)
        logger.step_failed(failed_step.value, str(error), resource=error.resource)

        if notify and failed_step != RotationState.NOTIFYING:
            self._notify_failure(outcome)

    def _notify_failure(self, outcome: RotationOutcome) -> None:
        try:
            self.context.notifier.notify(
                outcome,
                self.namespace,
                self.config.controller_name,
            )
        except TransportError as e:
            outcome.notification_error = str(e)
            logger.warning("Unable to send failure notification", error=str(e))
            return
        outcome.notification_sent = True

    def _finish(self, outcome: RotationOutcome) -> RotationOutcome:
        outcome.finished_at = self.context.now()
        logger.clear_context()
        return outcome
