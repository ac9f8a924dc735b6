"""
Tests for the YAML backup format.

Tests cover:
- Manifest shape of sanitized and unsanitized secrets
- YAML output readable by a generic parser
- Parsing backups back into secrets
- Rejection of secrets that cannot be encoded
"""

from __future__ import annotations

import base64
from dataclasses import replace

import pytest
import yaml

from sealrotate.backup import (
    deserialize_yaml,
    manifest_to_secret,
    secret_to_manifest,
    serialize_to_yaml,
)
from sealrotate.errors import SerializationError
from sealrotate.models import SEALING_KEY_LABEL
from sealrotate.rotation import sanitize


class TestSecretToManifest:
    """Tests for secret_to_manifest."""

    def test_sanitized_manifest(self, sample_secret):
        """Test a sanitized secret has no cluster-assigned metadata."""
        manifest = secret_to_manifest(sanitize(sample_secret))

        assert manifest["apiVersion"] == "v1"
        assert manifest["kind"] == "Secret"
        assert manifest["type"] == "kubernetes.io/tls"
        metadata = manifest["metadata"]
        assert metadata["name"] == sample_secret.name
        assert metadata["namespace"] == "kubeseal"
        assert metadata["creationTimestamp"] is None
        assert metadata["labels"] == {SEALING_KEY_LABEL: "active"}
        for key in ("resourceVersion", "selfLink", "uid"):
            assert key not in metadata

    def test_data_is_base64(self, sample_secret):
        """Test data values are base64 encoded."""
        manifest = secret_to_manifest(sanitize(sample_secret))

        for key, value in sample_secret.data.items():
            assert base64.b64decode(manifest["data"][key]) == value

    def test_unsanitized_keeps_metadata(self, sample_secret):
        """Test cluster metadata appears when the secret still carries it."""
        secret = replace(sample_secret, api_version="v1", kind="Secret")

        metadata = secret_to_manifest(secret)["metadata"]

        assert metadata["resourceVersion"] == "12345"
        assert metadata["uid"] == f"uid-{sample_secret.name}"
        assert metadata["creationTimestamp"] == "2023-11-14T22:13:20Z"

    def test_missing_type_descriptor_raises(self, sample_secret):
        """Test a secret without apiVersion/kind is rejected."""
        with pytest.raises(SerializationError) as exc_info:
            secret_to_manifest(sample_secret)

        assert "apiVersion/kind" in str(exc_info.value)

    def test_non_bytes_data_raises(self, sample_secret):
        """Test data values must be bytes."""
        secret = replace(sanitize(sample_secret), data={"tls.key": "not-bytes"})

        with pytest.raises(SerializationError):
            secret_to_manifest(secret)

    def test_non_string_label_raises(self, sample_secret):
        """Test label values must be strings."""
        secret = replace(sanitize(sample_secret), labels={"count": 3})

        with pytest.raises(SerializationError):
            secret_to_manifest(secret)


class TestSerializeToYaml:
    """Tests for serialize_to_yaml."""

    def test_output_parses_with_generic_yaml(self, sample_secret):
        """Test the backup is a plain Secret manifest."""
        body = serialize_to_yaml(sanitize(sample_secret))

        assert isinstance(body, bytes)
        parsed = yaml.safe_load(body)
        assert parsed["kind"] == "Secret"
        assert parsed["metadata"]["name"] == sample_secret.name
        assert base64.b64decode(parsed["data"]["tls.key"]) == sample_secret.data["tls.key"]
        assert parsed["metadata"]["labels"][SEALING_KEY_LABEL] == "active"

    def test_block_style_with_sorted_keys(self, sample_secret):
        """Test output uses block style and sorted top-level keys."""
        text = serialize_to_yaml(sanitize(sample_secret)).decode("utf-8")

        top_level = [
            line.split(":")[0]
            for line in text.splitlines()
            if line and not line.startswith(" ")
        ]
        assert top_level == ["apiVersion", "data", "kind", "metadata", "type"]
        assert "{" not in text

    def test_null_creation_timestamp(self, sample_secret):
        """Test a sanitized secret serializes creationTimestamp as null."""
        text = serialize_to_yaml(sanitize(sample_secret)).decode("utf-8")

        assert "creationTimestamp: null" in text

    def test_deterministic(self, sample_secret):
        """Test identical secrets serialize to identical bytes."""
        clean = sanitize(sample_secret)

        assert serialize_to_yaml(clean) == serialize_to_yaml(clean)

    def test_deserialize_restores_secret(self, sample_secret):
        """Test a backup parses back into an equal sanitized secret."""
        clean = sanitize(sample_secret)

        restored = deserialize_yaml(serialize_to_yaml(clean))

        assert restored == clean


class TestManifestToSecret:
    """Tests for manifest_to_secret and deserialize_yaml."""

    def test_wrong_kind_raises(self):
        """Test a non-Secret manifest is rejected."""
        with pytest.raises(SerializationError):
            manifest_to_secret({"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "x"}})

    def test_missing_name_raises(self):
        """Test a manifest without a name is rejected."""
        with pytest.raises(SerializationError):
            manifest_to_secret({"apiVersion": "v1", "kind": "Secret", "metadata": {}})

    def test_invalid_base64_raises(self):
        """Test undecodable data is rejected."""
        manifest = {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": "k"},
            "data": {"tls.key": "not base64!"},
        }

        with pytest.raises(SerializationError) as exc_info:
            manifest_to_secret(manifest)

        assert exc_info.value.resource == "k"

    def test_invalid_yaml_raises(self):
        """Test a document that is not YAML is rejected."""
        with pytest.raises(SerializationError):
            deserialize_yaml(b"key: [unclosed")

    def test_non_mapping_raises(self):
        """Test a YAML scalar is rejected."""
        with pytest.raises(SerializationError):
            deserialize_yaml("just a string")

    def test_parses_timestamp(self):
        """Test creationTimestamp strings are parsed."""
        body = (
            "apiVersion: v1\n"
            "kind: Secret\n"
            "metadata:\n"
            "  name: k\n"
            "  namespace: kubeseal\n"
            "  creationTimestamp: '2024-01-02T03:04:05Z'\n"
            "type: kubernetes.io/tls\n"
        )

        secret = deserialize_yaml(body)

        assert secret.creation_timestamp is not None
        assert secret.creation_timestamp.year == 2024
        assert secret.data == {}
