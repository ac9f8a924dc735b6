"""
Run configuration for sealrotate.

Configuration is read once at process start, from the environment or from
a YAML/JSON file, validated, and passed down as a RotationConfig value.
Nothing else in the package reads environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from sealrotate.errors import ConfigError

CLIENT_MODES = ("internal", "external")
STORAGE_BACKENDS = ("s3", "local")
NOTIFIERS = ("slack", "none")
PREFIX_MATCH_MODES = ("first", "scan")
DEMOTION_FAILURE_POLICIES = ("continue", "abort")
RESTART_FAILURE_POLICIES = ("abort", "continue")
NOTIFICATION_FAILURE_POLICIES = ("fatal", "warn")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("human", "json")

CONFIG_FILE_ENV = "SEALROTATE_CONFIG_FILE"

# Environment variable for each field
ENV_VARS: dict[str, str] = {
    "client_mode": "KUBERNETES_CLIENT_MODE",
    "kubeconfig_path": "KUBERNETES_KUBECONFIG_PATH",
    "controller_name": "KUBESEAL_CONTROLLER_NAME",
    "controller_namespace": "KUBESEAL_CONTROLLER_NAMESPACE",
    "key_prefix": "KUBESEAL_KEY_PREFIX",
    "pod_label_selector": "KUBESEAL_POD_LABEL_SELECTOR",
    "prefix_match_mode": "KUBESEAL_PREFIX_MATCH",
    "storage_backend": "STORAGE_BACKEND",
    "bucket_name": "AWS_BUCKET_NAME",
    "region": "AWS_REGION",
    "access_key_id": "AWS_ACCESS_KEY_ID",
    "secret_access_key": "AWS_SECRET_ACCESS_KEY",
    "local_backup_dir": "LOCAL_BACKUP_DIR",
    "notifier": "NOTIFIER",
    "slack_api_token": "SLACK_API_TOKEN",
    "slack_channel": "SLACK_CHANNEL_NAME",
    "demotion_failure_policy": "DEMOTION_FAILURE_POLICY",
    "restart_failure_policy": "RESTART_FAILURE_POLICY",
    "notification_failure_policy": "NOTIFICATION_FAILURE_POLICY",
    "run_timeout_seconds": "RUN_TIMEOUT_SECONDS",
    "request_timeout_seconds": "REQUEST_TIMEOUT_SECONDS",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
}

# Fields never printed in clear text
SECRET_FIELDS = ("access_key_id", "secret_access_key", "slack_api_token")


@dataclass
class RotationConfig:
    """
    Configuration for one rotation run.

    Attributes:
        client_mode: Cluster access mode ("internal" or "external")
        kubeconfig_path: Kubeconfig file, required in external mode
        controller_name: Sealing controller name, used in the backup key
        controller_namespace: Namespace holding the controller and its keys
        key_prefix: Name prefix of the active key secret
        pod_label_selector: Label selector of the controller pods
        prefix_match_mode: "scan" for a full scan, "first" to only consider
            the first listed secret
        storage_backend: "s3" or "local"
        bucket_name: S3 bucket for backups
        region: AWS region of the bucket
        access_key_id: AWS access key
        secret_access_key: AWS secret key
        local_backup_dir: Directory for the local backend
        notifier: "slack" or "none"
        slack_api_token: Slack bot token
        slack_channel: Slack channel name or ID
        demotion_failure_policy: "continue" past failed relabels, or "abort"
        restart_failure_policy: "abort" on a failed pod delete, or "continue"
        notification_failure_policy: "fatal" or "warn"
        run_timeout_seconds: Overall deadline for a run (0 disables it)
        request_timeout_seconds: Per-request timeout for cluster calls
        log_level: Log level name
        log_format: "human" or "json"
    """

    client_mode: str = "internal"
    kubeconfig_path: str = ""
    controller_name: str = "kubeseal-controller"
    controller_namespace: str = "kubeseal"
    key_prefix: str = "sealed-secrets-key"
    pod_label_selector: str = "app.kubernetes.io/instance=kubeseal"
    prefix_match_mode: str = "scan"
    storage_backend: str = "s3"
    bucket_name: str = ""
    region: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    local_backup_dir: str = ""
    notifier: str = "slack"
    slack_api_token: str = ""
    slack_channel: str = ""
    demotion_failure_policy: str = "continue"
    restart_failure_policy: str = "abort"
    notification_failure_policy: str = "fatal"
    run_timeout_seconds: float = 300.0
    request_timeout_seconds: float = 30.0
    log_level: str = "INFO"
    log_format: str = "human"

    def validate(self) -> RotationConfig:
        """
        Check the configuration.

        Returns:
            self, for chaining

        Raises:
            ConfigError: Listing every problem found
        """
        problems: list[str] = []

        def check_choice(name: str, choices: tuple[str, ...]) -> None:
            value = getattr(self, name)
            if value not in choices:
                problems.append(
                    f"{ENV_VARS[name]}={value!r} is invalid "
                    f"(expected one of: {', '.join(choices)})"
                )

        def check_required(name: str, reason: str = "") -> None:
            if not getattr(self, name):
                suffix = f" {reason}" if reason else ""
                problems.append(f"{ENV_VARS[name]} is required{suffix}")

        check_choice("client_mode", CLIENT_MODES)
        check_choice("storage_backend", STORAGE_BACKENDS)
        check_choice("notifier", NOTIFIERS)
        check_choice("prefix_match_mode", PREFIX_MATCH_MODES)
        check_choice("demotion_failure_policy", DEMOTION_FAILURE_POLICIES)
        check_choice("restart_failure_policy", RESTART_FAILURE_POLICIES)
        check_choice("notification_failure_policy", NOTIFICATION_FAILURE_POLICIES)
        check_choice("log_format", LOG_FORMATS)
        if self.log_level.upper() not in LOG_LEVELS:
            problems.append(f"LOG_LEVEL={self.log_level!r} is invalid")

        check_required("controller_name")
        check_required("controller_namespace")
        check_required("key_prefix")
        check_required("pod_label_selector")

        if self.client_mode == "external":
            check_required("kubeconfig_path", "in external mode")

        if self.storage_backend == "s3":
            check_required("bucket_name")
            check_required("region")
            check_required("access_key_id")
            check_required("secret_access_key")
        elif self.storage_backend == "local":
            check_required("local_backup_dir", "for the local storage backend")

        if self.notifier == "slack":
            check_required("slack_api_token", "when NOTIFIER is slack")
            check_required("slack_channel", "when NOTIFIER is slack")

        if self.run_timeout_seconds < 0:
            problems.append("RUN_TIMEOUT_SECONDS must not be negative")
        if self.request_timeout_seconds <= 0:
            problems.append("REQUEST_TIMEOUT_SECONDS must be positive")

        if problems:
            raise ConfigError("Config error", problems=problems)
        return self

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        """
        Convert to dictionary.

        Args:
            redact: Replace credentials with "***"
        """
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if redact:
            for name in SECRET_FIELDS:
                if data[name]:
                    data[name] = "***"
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RotationConfig:
        """
        Create from dictionary.

        Raises:
            ConfigError: If a key is unknown or a number cannot be parsed
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ConfigError("Config error", problems=[f"unknown key: {k}" for k in unknown])

        values: dict[str, Any] = {}
        for name, value in data.items():
            if value is None:
                continue
            if name in ("run_timeout_seconds", "request_timeout_seconds"):
                try:
                    values[name] = float(value)
                except (TypeError, ValueError) as e:
                    raise ConfigError(
                        "Config error",
                        problems=[f"{ENV_VARS[name]}={value!r} is not a number"],
                    ) from e
            else:
                values[name] = str(value).strip()
        return cls(**values)

    @classmethod
    def from_file(cls, path: str) -> RotationConfig:
        """
        Load configuration from a YAML or JSON file.

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        file_path = Path(path)
        try:
            with open(file_path) as f:
                if file_path.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Unable to load config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)


def load_config_from_env(environ: Mapping[str, str] | None = None) -> RotationConfig:
    """
    Load configuration from environment variables.

    When SEALROTATE_CONFIG_FILE names a file, it is loaded first and
    environment variables override its values.

    Args:
        environ: Environment mapping (default: os.environ)

    Returns:
        Validated RotationConfig

    Raises:
        ConfigError: If configuration is missing or invalid
    """
    if environ is None:
        environ = os.environ

    base: dict[str, Any] = {}
    config_file = environ.get(CONFIG_FILE_ENV)
    if config_file:
        base = RotationConfig.from_file(config_file).to_dict(redact=False)

    for name, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value is not None and value != "":
            base[name] = value

    return RotationConfig.from_dict(base).validate()
