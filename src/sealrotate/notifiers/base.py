"""
Base notifier for sealrotate.

Provides the abstract interface for notification channels and the
formatting of rotation summaries.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sealrotate.models import RotationOutcome

logger = logging.getLogger(__name__)

COLOR_SUCCESS = "#36A64F"  # Green
COLOR_WARNING = "#FFCC00"  # Yellow
COLOR_FAILURE = "#FF0000"  # Red


@dataclass
class NotificationMessage:
    """
    A formatted notification.

    Attributes:
        title: Message title
        color: Hex color code for the message accent
        body: Plain text body
    """

    title: str
    color: str
    body: str


class BaseNotifier(ABC):
    """
    Abstract base class for notifiers.

    Implementations only need to provide send(); notify() formats a
    RotationOutcome and sends it to the configured channel.
    """

    def __init__(self, name: str, channel: str = "") -> None:
        """
        Initialize the notifier.

        Args:
            name: Notifier name
            channel: Destination channel
        """
        self._name = name
        self._channel = channel

    @property
    def name(self) -> str:
        """Get notifier name."""
        return self._name

    @property
    def channel(self) -> str:
        """Get destination channel."""
        return self._channel

    @abstractmethod
    def send(self, channel: str, title: str, color: str, body: str) -> None:
        """
        Send a message.

        Args:
            channel: Destination channel
            title: Message title
            color: Hex color code
            body: Message body

        Raises:
            TransportError: If the message could not be delivered
        """
        ...

    def notify(
        self,
        outcome: RotationOutcome,
        namespace: str = "",
        controller_name: str = "",
    ) -> NotificationMessage:
        """
        Format and send a rotation summary.

        Returns:
            The message that was sent
        """
        message = self.format_summary(outcome, namespace, controller_name)
        self.send(self._channel, message.title, message.color, message.body)
        return message

    def format_summary(
        self,
        outcome: RotationOutcome,
        namespace: str = "",
        controller_name: str = "",
    ) -> NotificationMessage:
        """
        Format a rotation outcome as a human-readable message.

        Args:
            outcome: Outcome to summarize
            namespace: Controller namespace
            controller_name: Controller name

        Returns:
            NotificationMessage with title, color and body
        """
        target = "/".join(part for part in (namespace, controller_name) if part)

        failed = outcome.failed_step is not None
        if failed:
            title = f"Kubeseal key rotation failed during {outcome.failed_step.value}"
            color = COLOR_FAILURE
        elif outcome.has_warnings:
            title = "Kubeseal key rotated with warnings"
            color = COLOR_WARNING
        else:
            title = "Kubeseal key rotated"
            color = COLOR_SUCCESS
        if target:
            title = f"{title} ({target})"

        lines = []
        if outcome.active_key:
            lines.append(f"Backed up key: {outcome.active_key}")
        if outcome.artifact:
            lines.append(f"Backup: {outcome.artifact.location}")
        if outcome.latest_key:
            lines.append(f"Latest key: {outcome.latest_key}")
        if outcome.demoted:
            lines.append(
                f"Demoted keys ({outcome.demoted_count}): {', '.join(outcome.demoted)}"
            )
        for name, error in sorted(outcome.demotion_failures.items()):
            lines.append(f"Failed to demote {name}: {error}")
        if outcome.restarted_pods:
            lines.append(f"Restarted pods: {', '.join(outcome.restarted_pods)}")
        for name, error in sorted(outcome.restart_failures.items()):
            lines.append(f"Failed to delete pod {name}: {error}")
        if failed:
            lines.append(f"Error: {outcome.error}")

        return NotificationMessage(title=title, color=color, body="\n".join(lines))


class NullNotifier(BaseNotifier):
    """Notifier that only logs; used when notifications are disabled."""

    def __init__(self, name: str = "none", channel: str = "") -> None:
        super().__init__(name, channel)

    def send(self, channel: str, title: str, color: str, body: str) -> None:
        logger.info(f"Notification (not sent): {title}")
