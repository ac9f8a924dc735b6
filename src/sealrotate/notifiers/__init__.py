"""
Notifiers for sealrotate.

Sends the human-readable summary of a rotation run.
"""

from sealrotate.config import RotationConfig
from sealrotate.errors import ConfigError
from sealrotate.notifiers.base import (
    COLOR_FAILURE,
    COLOR_SUCCESS,
    COLOR_WARNING,
    BaseNotifier,
    NotificationMessage,
    NullNotifier,
)
from sealrotate.notifiers.slack import SlackNotifier

__all__ = [
    # Base
    "BaseNotifier",
    "NotificationMessage",
    "COLOR_SUCCESS",
    "COLOR_WARNING",
    "COLOR_FAILURE",
    # Notifiers
    "NullNotifier",
    "SlackNotifier",
    "create_notifier",
]


def create_notifier(config: RotationConfig) -> BaseNotifier:
    """
    Factory function to create the configured notifier.

    Args:
        config: Run configuration

    Returns:
        Configured notifier instance

    Raises:
        ConfigError: If the notifier is unknown or misconfigured
    """
    if config.notifier == "slack":
        if not config.slack_api_token:
            raise ConfigError("Config error: missing Slack API token")
        if not config.slack_channel:
            raise ConfigError("Config error: missing Slack channel")
        return SlackNotifier(token=config.slack_api_token, channel=config.slack_channel)

    if config.notifier == "none":
        return NullNotifier()

    raise ConfigError(
        f"Unknown notifier: {config.notifier}. Available: slack, none"
    )
