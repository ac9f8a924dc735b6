"""
Pytest configuration and fixtures for sealrotate tests.

This module provides in-memory collaborators (cluster, sink, notifier) and
sample key secrets used across the unit tests.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import pytest

from sealrotate.backup import BackupWriter
from sealrotate.config import RotationConfig
from sealrotate.errors import TransportError
from sealrotate.kube import ClusterClient
from sealrotate.models import (
    SEALING_KEY_ACTIVE,
    SEALING_KEY_LABEL,
    PodRef,
    SealedKeySecret,
)
from sealrotate.notifiers import BaseNotifier
from sealrotate.rotation import RotationContext
from sealrotate.storage import BackupSink


def build_secret(
    name: str,
    created: int | None = 100,
    namespace: str = "kubeseal",
    label: str = SEALING_KEY_ACTIVE,
) -> SealedKeySecret:
    """Build a key secret created at the given epoch second."""
    return SealedKeySecret(
        name=name,
        namespace=namespace,
        creation_timestamp=(
            datetime.fromtimestamp(created, tz=timezone.utc) if created is not None else None
        ),
        labels={SEALING_KEY_LABEL: label},
        data={"tls.crt": f"cert-{name}".encode(), "tls.key": f"key-{name}".encode()},
        resource_version="12345",
        uid=f"uid-{name}",
        self_link=f"/api/v1/namespaces/{namespace}/secrets/{name}",
    )


# In-memory collaborators


class FakeCluster(ClusterClient):
    """Cluster that keeps secrets and pods in memory and records every call."""

    def __init__(
        self,
        secrets: list[SealedKeySecret] | None = None,
        pods: list[PodRef] | None = None,
        failing_updates: tuple[str, ...] = (),
        failing_deletes: tuple[str, ...] = (),
        list_error: Exception | None = None,
    ) -> None:
        self.secrets = list(secrets or [])
        self.pods = list(pods or [])
        self.failing_updates = failing_updates
        self.failing_deletes = failing_deletes
        self.list_error = list_error
        self.calls: list[tuple[str, ...]] = []
        self.updated: list[SealedKeySecret] = []
        self.deleted: list[str] = []

    @property
    def mutation_calls(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] in ("update_secret", "delete_pod")]

    def list_secrets(self, namespace: str, label_selector: str) -> list[SealedKeySecret]:
        self.calls.append(("list_secrets", namespace, label_selector))
        if self.list_error is not None:
            raise self.list_error
        return [s for s in self.secrets if s.namespace == namespace]

    def list_pods(self, namespace: str, label_selector: str) -> list[PodRef]:
        self.calls.append(("list_pods", namespace, label_selector))
        return [p for p in self.pods if p.namespace == namespace]

    def update_secret(self, secret: SealedKeySecret) -> None:
        self.calls.append(("update_secret", secret.name))
        if secret.name in self.failing_updates:
            raise TransportError(f"Unable to update secrets: {secret.name} conflict")
        self.updated.append(secret)
        self.secrets = [secret if s.name == secret.name else s for s in self.secrets]

    def delete_pod(self, namespace: str, name: str) -> None:
        self.calls.append(("delete_pod", name))
        if name in self.failing_deletes:
            raise TransportError(f"Unable to delete pod {name}")
        self.deleted.append(name)


class MemorySink(BackupSink):
    """Sink that keeps uploads in a dict, calling on_upload before each one."""

    def __init__(
        self,
        fail: bool = False,
        on_upload: Callable[[str], None] | None = None,
    ) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail = fail
        self.on_upload = on_upload

    def describe(self) -> str:
        return "memory://backups"

    def upload(self, key: str, body: bytes, content_type: str = "application/x-yaml") -> str:
        if self.on_upload is not None:
            self.on_upload(key)
        if self.fail:
            raise TransportError("Unable to upload kubeseal key in the bucket", resource=key)
        self.objects[key] = body
        return f"memory://backups/{key}"


class RecordingNotifier(BaseNotifier):
    """Notifier that records messages instead of sending them."""

    def __init__(self, fail: bool = False) -> None:
        super().__init__("recording", "#ops")
        self.fail = fail
        self.messages: list[dict[str, str]] = []

    def send(self, channel: str, title: str, color: str, body: str) -> None:
        if self.fail:
            raise TransportError("Unable to post message to slack", resource=channel)
        self.messages.append(
            {"channel": channel, "title": title, "color": color, "body": body}
        )


# Fixtures


@pytest.fixture
def make_secret() -> Callable[..., SealedKeySecret]:
    """Return a builder for key secrets."""
    return build_secret


@pytest.fixture
def make_cluster() -> Callable[..., FakeCluster]:
    """Return a builder for in-memory clusters."""
    return FakeCluster


@pytest.fixture
def make_sink() -> Callable[..., MemorySink]:
    """Return a builder for in-memory sinks."""
    return MemorySink


@pytest.fixture
def make_notifier() -> Callable[..., RecordingNotifier]:
    """Return a builder for recording notifiers."""
    return RecordingNotifier


@pytest.fixture
def sample_secret() -> SealedKeySecret:
    """Return a single unsanitized key secret."""
    return build_secret("sealed-secrets-keyabc12", created=1_700_000_000)


@pytest.fixture
def rotation_config() -> RotationConfig:
    """Return a valid configuration for tests."""
    return RotationConfig(
        bucket_name="kubeseal-key-backups",
        region="eu-west-1",
        access_key_id="AKIAEXAMPLE",
        secret_access_key="example-secret",
        slack_api_token="xoxb-test",
        slack_channel="#ops",
    ).validate()


@pytest.fixture
def controller_pods() -> list[PodRef]:
    """Return two controller pods."""
    labels = {"app.kubernetes.io/instance": "kubeseal"}
    return [
        PodRef(name="kubeseal-controller-7d9f-abcde", namespace="kubeseal", labels=labels),
        PodRef(name="kubeseal-controller-7d9f-fghij", namespace="kubeseal", labels=labels),
    ]


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def recording_notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_context(
    rotation_config: RotationConfig,
    memory_sink: MemorySink,
    recording_notifier: RecordingNotifier,
) -> Callable[..., RotationContext]:
    """Return a factory building a RotationContext around a FakeCluster."""

    def _make(
        cluster: FakeCluster,
        config: RotationConfig | None = None,
        sink: BackupSink | None = None,
        notifier: BaseNotifier | None = None,
        clock: Callable[[], float] | None = None,
    ) -> RotationContext:
        context = RotationContext(
            config=config or rotation_config,
            cluster=cluster,
            writer=BackupWriter(sink or memory_sink),
            notifier=notifier or recording_notifier,
        )
        if clock is not None:
            context.clock = clock
        return context

    return _make
