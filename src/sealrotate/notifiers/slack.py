"""
Slack notifier for sealrotate.

Posts rotation summaries to a Slack channel through the Web API
chat.postMessage method using a bot token.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from sealrotate.errors import TransportError
from sealrotate.notifiers.base import BaseNotifier

logger = logging.getLogger(__name__)

SLACK_POST_MESSAGE_URL = "https://slack.com/api/chat.postMessage"


class SlackNotifier(BaseNotifier):
    """
    Slack Web API notifier.

    Sends a text title with one colored attachment holding the body.

    Example config:
        SlackNotifier(token="xoxb-...", channel="#platform-alerts")
    """

    def __init__(
        self,
        token: str,
        channel: str,
        name: str = "slack",
        api_url: str = SLACK_POST_MESSAGE_URL,
        timeout: float = 30,
    ) -> None:
        """
        Initialize Slack notifier.

        Args:
            token: Slack bot token
            channel: Channel name or ID
            name: Notifier name
            api_url: chat.postMessage endpoint
            timeout: Request timeout in seconds
        """
        super().__init__(name, channel)
        self._token = token
        self._api_url = api_url
        self._timeout = timeout

    def send(self, channel: str, title: str, color: str, body: str) -> None:
        """Post a message to Slack."""
        payload = self._build_slack_payload(channel, title, color, body)
        self._post(payload)
        logger.info(f"Posted message to slack channel {channel}")

    def _build_slack_payload(
        self, channel: str, title: str, color: str, body: str
    ) -> dict[str, Any]:
        """Build chat.postMessage payload."""
        return {
            "channel": channel,
            "text": title,
            "mrkdwn": True,
            "attachments": [
                {
                    "color": color,
                    "title": title,
                    "text": body,
                    "fallback": title,
                }
            ],
        }

    def _post(self, payload: dict[str, Any]) -> None:
        """Send payload to the Slack Web API."""
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            self._api_url,
            data=data,
            headers={
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": f"Bearer {self._token}",
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                if response.status != 200:
                    raise TransportError(
                        f"Slack returned status {response.status}",
                        resource=payload["channel"],
                    )
                result = json.loads(response.read().decode("utf-8") or "{}")
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(
                "Unable to post message to slack",
                resource=payload["channel"],
                cause=e,
            ) from e
        except ValueError as e:
            raise TransportError(
                "Slack returned an invalid response",
                resource=payload["channel"],
                cause=e,
            ) from e

        if not result.get("ok", False):
            raise TransportError(
                f"Unable to post message to slack: {result.get('error', 'unknown error')}",
                resource=payload["channel"],
            )
