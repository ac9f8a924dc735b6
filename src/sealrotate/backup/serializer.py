"""
YAML serialization of key secrets.

Produces the same shape `kubectl get secret -o yaml` does: keys sorted,
block style, data base64 encoded and a null creationTimestamp for a
sanitized secret. Output is re-parsed before it is returned, so a backup
that cannot be read back is never written.
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import datetime, timezone
from typing import Any

import yaml

from sealrotate.errors import SerializationError
from sealrotate.models import SECRET_API_VERSION, SECRET_KIND, SealedKeySecret

logger = logging.getLogger(__name__)


def _format_timestamp(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise SerializationError(f"Invalid creationTimestamp: {value!r}", cause=e) from e


def _check_string_map(name: str, values: dict[str, Any], what: str) -> None:
    for key, value in values.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise SerializationError(
                f"Secret {name} has a non-string {what} entry: {key!r}",
                resource=name,
            )


def secret_to_manifest(secret: SealedKeySecret) -> dict[str, Any]:
    """
    Build the Kubernetes manifest for a secret.

    Args:
        secret: Secret to convert, normally already sanitized

    Returns:
        Manifest dictionary in Kubernetes wire form

    Raises:
        SerializationError: If the secret is missing its type descriptor
            or carries values that cannot be encoded
    """
    if not secret.name:
        raise SerializationError("Cannot serialize a secret without a name")
    if not secret.api_version or not secret.kind:
        raise SerializationError(
            f"Secret {secret.name} has no type descriptor (apiVersion/kind)",
            resource=secret.name,
        )

    _check_string_map(secret.name, secret.labels, "label")
    _check_string_map(secret.name, secret.annotations, "annotation")
    for key, value in secret.data.items():
        if not isinstance(value, (bytes, bytearray)):
            raise SerializationError(
                f"Secret {secret.name} data key {key!r} is not bytes",
                resource=secret.name,
            )

    metadata: dict[str, Any] = {
        "creationTimestamp": _format_timestamp(secret.creation_timestamp),
        "name": secret.name,
        "namespace": secret.namespace,
    }
    if secret.labels:
        metadata["labels"] = dict(secret.labels)
    if secret.annotations:
        metadata["annotations"] = dict(secret.annotations)
    # Cluster-assigned fields only appear on unsanitized secrets
    if secret.resource_version:
        metadata["resourceVersion"] = secret.resource_version
    if secret.self_link:
        metadata["selfLink"] = secret.self_link
    if secret.uid:
        metadata["uid"] = secret.uid

    return {
        "apiVersion": secret.api_version,
        "kind": secret.kind,
        "metadata": metadata,
        "data": secret.encoded_data(),
        "type": secret.secret_type,
    }


def manifest_to_secret(manifest: dict[str, Any]) -> SealedKeySecret:
    """
    Build a secret from a Kubernetes Secret manifest.

    Args:
        manifest: Parsed manifest

    Returns:
        SealedKeySecret with data base64 decoded

    Raises:
        SerializationError: If the manifest is not a v1 Secret or is malformed
    """
    if not isinstance(manifest, dict):
        raise SerializationError("Manifest is not a mapping")

    api_version = manifest.get("apiVersion")
    kind = manifest.get("kind")
    if api_version != SECRET_API_VERSION or kind != SECRET_KIND:
        raise SerializationError(
            f"Expected {SECRET_API_VERSION}/{SECRET_KIND}, got {api_version}/{kind}"
        )

    metadata = manifest.get("metadata") or {}
    name = metadata.get("name")
    if not name:
        raise SerializationError("Manifest metadata has no name")

    data: dict[str, bytes] = {}
    for key, value in (manifest.get("data") or {}).items():
        try:
            data[key] = base64.b64decode(value, validate=True)
        except (binascii.Error, TypeError) as e:
            raise SerializationError(
                f"Secret {name} data key {key!r} is not valid base64",
                resource=name,
                cause=e,
            ) from e

    return SealedKeySecret(
        name=name,
        namespace=metadata.get("namespace", ""),
        creation_timestamp=_parse_timestamp(metadata.get("creationTimestamp")),
        labels=dict(metadata.get("labels") or {}),
        annotations=dict(metadata.get("annotations") or {}),
        data=data,
        secret_type=manifest.get("type") or "Opaque",
        api_version=api_version,
        kind=kind,
        resource_version=metadata.get("resourceVersion", ""),
        uid=metadata.get("uid", ""),
        self_link=metadata.get("selfLink", ""),
    )


def serialize_to_yaml(secret: SealedKeySecret) -> bytes:
    """
    Serialize a secret to pretty-printed YAML.

    Args:
        secret: Secret to serialize

    Returns:
        UTF-8 encoded YAML document

    Raises:
        SerializationError: If encoding fails or the output does not parse
            back to the same manifest
    """
    manifest = secret_to_manifest(secret)

    try:
        text = yaml.safe_dump(
            manifest,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        )
    except yaml.YAMLError as e:
        raise SerializationError(
            f"Unable to encode secret {secret.name} as YAML",
            resource=secret.name,
            cause=e,
        ) from e

    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SerializationError(
            f"Encoded secret {secret.name} is not valid YAML",
            resource=secret.name,
            cause=e,
        ) from e

    if parsed != manifest:
        raise SerializationError(
            f"Encoded secret {secret.name} does not round-trip",
            resource=secret.name,
        )

    logger.debug(f"Serialized secret {secret.name} ({len(text)} bytes)")
    return text.encode("utf-8")


def deserialize_yaml(body: bytes | str) -> SealedKeySecret:
    """
    Parse a YAML backup back into a secret.

    Raises:
        SerializationError: If the document is not valid YAML or not a Secret
    """
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError("Backup is not UTF-8 text", cause=e) from e

    try:
        manifest = yaml.safe_load(body)
    except yaml.YAMLError as e:
        raise SerializationError("Backup is not valid YAML", cause=e) from e

    return manifest_to_secret(manifest)
