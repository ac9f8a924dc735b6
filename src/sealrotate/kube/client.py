"""
Kubernetes cluster client for sealrotate.

Implements ClusterClient on top of the official kubernetes Python client
and maps V1Secret and V1Pod objects to the internal model.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import HTTPError

from sealrotate.errors import ConfigError, SerializationError, TransportError
from sealrotate.kube.base import ClusterClient
from sealrotate.models import DEFAULT_SECRET_TYPE, PodRef, SealedKeySecret

logger = logging.getLogger(__name__)

CLIENT_MODE_INTERNAL = "internal"
CLIENT_MODE_EXTERNAL = "external"
CLIENT_MODES = (CLIENT_MODE_INTERNAL, CLIENT_MODE_EXTERNAL)

# Per-request timeout in seconds passed to the API client
DEFAULT_REQUEST_TIMEOUT = 30


def _api_error_reason(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    return str(error)


def secret_from_api(item: Any) -> SealedKeySecret:
    """
    Convert a V1Secret to a SealedKeySecret.

    Args:
        item: kubernetes.client.V1Secret

    Returns:
        SealedKeySecret with data base64 decoded

    Raises:
        SerializationError: If a data value is not valid base64
    """
    metadata = item.metadata
    data: dict[str, bytes] = {}
    for key, value in (item.data or {}).items():
        try:
            data[key] = base64.b64decode(value or "", validate=True)
        except binascii.Error as e:
            raise SerializationError(
                f"Secret {metadata.name} data key {key!r} is not valid base64",
                resource=metadata.name,
                cause=e,
            ) from e

    return SealedKeySecret(
        name=metadata.name,
        namespace=metadata.namespace or "",
        creation_timestamp=metadata.creation_timestamp,
        labels=dict(metadata.labels or {}),
        annotations=dict(metadata.annotations or {}),
        data=data,
        secret_type=item.type or DEFAULT_SECRET_TYPE,
        api_version=item.api_version or "",
        kind=item.kind or "",
        resource_version=metadata.resource_version or "",
        uid=metadata.uid or "",
        self_link=metadata.self_link or "",
    )


def pod_from_api(item: Any) -> PodRef:
    """Convert a V1Pod to a PodRef."""
    metadata = item.metadata
    return PodRef(
        name=metadata.name,
        namespace=metadata.namespace or "",
        labels=dict(metadata.labels or {}),
    )


class KubernetesClusterClient(ClusterClient):
    """
    ClusterClient backed by the kubernetes API.

    Supports two modes:
    - internal: in-cluster service account configuration
    - external: an explicit kubeconfig file

    The API client is created lazily on first use.
    """

    def __init__(
        self,
        mode: str = CLIENT_MODE_INTERNAL,
        kubeconfig: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        core_v1: Any = None,
    ) -> None:
        """
        Initialize the cluster client.

        Args:
            mode: "internal" or "external"
            kubeconfig: Path to kubeconfig, required in external mode
            request_timeout: Per-request timeout in seconds
            core_v1: Preconfigured CoreV1Api (skips config loading)

        Raises:
            ConfigError: If the mode is invalid or external mode has no kubeconfig
        """
        if mode not in CLIENT_MODES:
            raise ConfigError(
                f"Unable to init kubernetes client: client mode {mode!r} is invalid"
            )
        if mode == CLIENT_MODE_EXTERNAL and not kubeconfig:
            raise ConfigError(
                "No kubeconfig path has been provided. Please set "
                "KUBERNETES_KUBECONFIG_PATH if you are in external mode"
            )

        self._mode = mode
        self._kubeconfig = kubeconfig
        self._request_timeout = request_timeout
        self._core_v1 = core_v1

    @property
    def mode(self) -> str:
        return self._mode

    def _init_client(self) -> Any:
        """Initialize the Kubernetes client."""
        if self._core_v1 is not None:
            return self._core_v1

        logger.info(f"Setting up {self._mode} kubernetes client")
        try:
            if self._mode == CLIENT_MODE_INTERNAL:
                config.load_incluster_config()
            else:
                config.load_kube_config(config_file=self._kubeconfig)
        except (ConfigException, OSError, yaml.YAMLError, ValueError, TypeError) as e:
            raise ConfigError(
                f"Unable to init {self._mode} kubernetes client: {e}"
            ) from e

        self._core_v1 = client.CoreV1Api(client.ApiClient())
        return self._core_v1

    def list_secrets(self, namespace: str, label_selector: str) -> list[SealedKeySecret]:
        api = self._init_client()
        try:
            response = api.list_namespaced_secret(
                namespace,
                label_selector=label_selector,
                _request_timeout=self._request_timeout,
            )
        except (ApiException, HTTPError) as e:
            raise TransportError(
                f"Unable to list secrets in namespace {namespace}: {_api_error_reason(e)}",
                resource=f"{namespace}/secrets?{label_selector}",
                cause=e,
            ) from e

        secrets = [secret_from_api(item) for item in response.items or []]
        logger.debug(
            f"Listed {len(secrets)} secrets in {namespace} matching {label_selector}"
        )
        return secrets

    def list_pods(self, namespace: str, label_selector: str) -> list[PodRef]:
        api = self._init_client()
        try:
            response = api.list_namespaced_pod(
                namespace,
                label_selector=label_selector,
                _request_timeout=self._request_timeout,
            )
        except (ApiException, HTTPError) as e:
            raise TransportError(
                f"Unable to list pods in namespace {namespace}: {_api_error_reason(e)}",
                resource=f"{namespace}/pods?{label_selector}",
                cause=e,
            ) from e

        return [pod_from_api(item) for item in response.items or []]

    def update_secret(self, secret: SealedKeySecret) -> None:
        """
        Patch the secret's labels.

        No resourceVersion precondition is sent; a concurrent change to the
        labels is overwritten.
        """
        api = self._init_client()
        body = {"metadata": {"labels": dict(secret.labels)}}
        try:
            api.patch_namespaced_secret(
                secret.name,
                secret.namespace,
                body,
                _request_timeout=self._request_timeout,
            )
        except (ApiException, HTTPError) as e:
            raise TransportError(
                f"Unable to update secret {secret.name}: {_api_error_reason(e)}",
                resource=f"{secret.namespace}/{secret.name}",
                cause=e,
            ) from e

    def delete_pod(self, namespace: str, name: str) -> None:
        api = self._init_client()
        try:
            api.delete_namespaced_pod(
                name,
                namespace,
                _request_timeout=self._request_timeout,
            )
        except (ApiException, HTTPError) as e:
            raise TransportError(
                f"Unable to delete pod {name}: {_api_error_reason(e)}",
                resource=f"{namespace}/{name}",
                cause=e,
            ) from e
