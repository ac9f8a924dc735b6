"""
Tests for sealrotate notifiers.

Tests cover:
- Summary formatting for success, warnings and failures
- Slack Web API posting (mocked)
- Notifier factory
"""

from __future__ import annotations

import json
import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from sealrotate.config import RotationConfig
from sealrotate.errors import ConfigError, TransportError
from sealrotate.models import BackupArtifact, RotationOutcome, RotationState
from sealrotate.notifiers import (
    COLOR_FAILURE,
    COLOR_SUCCESS,
    COLOR_WARNING,
    NullNotifier,
    SlackNotifier,
    create_notifier,
)


def _mock_response(status: int = 200, body: dict | None = None) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status = status
    mock_response.read.return_value = json.dumps(
        body if body is not None else {"ok": True}
    ).encode("utf-8")
    mock_response.__enter__ = MagicMock(return_value=mock_response)
    mock_response.__exit__ = MagicMock(return_value=False)
    return mock_response


@pytest.fixture
def done_outcome() -> RotationOutcome:
    return RotationOutcome(
        state=RotationState.NOTIFYING,
        active_key="sealed-secrets-keyabc",
        latest_key="sealed-secrets-keydef",
        artifact=BackupArtifact(
            key="kubeseal/kubeseal-controller-key.yaml",
            location="s3://backups/kubeseal/kubeseal-controller-key.yaml",
            size=512,
            secret_name="sealed-secrets-keyabc",
        ),
        demoted=["sealed-secrets-keyabc"],
        restarted_pods=["kubeseal-0"],
    )


class TestFormatSummary:
    """Tests for BaseNotifier.format_summary."""

    def test_success(self, done_outcome):
        """Test a clean run is reported in green."""
        message = NullNotifier().format_summary(done_outcome, "kubeseal", "kubeseal-controller")

        assert message.title == "Kubeseal key rotated (kubeseal/kubeseal-controller)"
        assert message.color == COLOR_SUCCESS
        assert "Backed up key: sealed-secrets-keyabc" in message.body
        assert "Backup: s3://backups/kubeseal/kubeseal-controller-key.yaml" in message.body
        assert "Latest key: sealed-secrets-keydef" in message.body
        assert "Demoted keys (1): sealed-secrets-keyabc" in message.body
        assert "Restarted pods: kubeseal-0" in message.body
        assert "Error" not in message.body

    def test_warnings(self, done_outcome):
        """Test recorded demotion failures are reported in yellow."""
        done_outcome.demotion_failures["sealed-secrets-keyold"] = "409 Conflict"

        message = NullNotifier().format_summary(done_outcome)

        assert message.title == "Kubeseal key rotated with warnings"
        assert message.color == COLOR_WARNING
        assert "Failed to demote sealed-secrets-keyold: 409 Conflict" in message.body

    def test_failure(self):
        """Test a failed run names the step and the error."""
        outcome = RotationOutcome(
            state=RotationState.FAILED,
            failed_step=RotationState.BACKING_UP,
            error="Access denied when writing to s3://backups/k",
            active_key="sealed-secrets-keyabc",
        )

        message = NullNotifier().format_summary(outcome, "kubeseal")

        assert message.title == "Kubeseal key rotation failed during backing_up (kubeseal)"
        assert message.color == COLOR_FAILURE
        assert "Error: Access denied when writing to s3://backups/k" in message.body
        assert "Demoted" not in message.body

    def test_body_never_contains_key_material(self, done_outcome):
        """Test the summary only names secrets."""
        message = NullNotifier().format_summary(done_outcome)

        assert "tls.key" not in message.body


class TestNullNotifier:
    """Tests for NullNotifier."""

    def test_notify_returns_message(self, done_outcome):
        """Test notify formats and logs without sending."""
        message = NullNotifier().notify(done_outcome)

        assert message.color == COLOR_SUCCESS


class TestSlackNotifier:
    """Tests for SlackNotifier with mocked urllib."""

    @patch("urllib.request.urlopen")
    def test_send_success(self, mock_urlopen, done_outcome):
        """Test notify posts to chat.postMessage with the bot token."""
        mock_urlopen.return_value = _mock_response()

        notifier = SlackNotifier(token="xoxb-test", channel="#ops")
        notifier.notify(done_outcome, "kubeseal", "kubeseal-controller")

        mock_urlopen.assert_called_once()
        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "https://slack.com/api/chat.postMessage"
        assert request.get_header("Authorization") == "Bearer xoxb-test"
        payload = json.loads(request.data.decode("utf-8"))
        assert payload["channel"] == "#ops"
        assert payload["text"].startswith("Kubeseal key rotated")
        attachment = payload["attachments"][0]
        assert attachment["color"] == COLOR_SUCCESS
        assert "Demoted keys (1)" in attachment["text"]

    @patch("urllib.request.urlopen")
    def test_slack_error_response(self, mock_urlopen):
        """Test an ok=false response raises TransportError."""
        mock_urlopen.return_value = _mock_response(body={"ok": False, "error": "channel_not_found"})

        notifier = SlackNotifier(token="xoxb-test", channel="#missing")

        with pytest.raises(TransportError) as exc_info:
            notifier.send("#missing", "title", COLOR_SUCCESS, "body")

        assert "channel_not_found" in str(exc_info.value)

    @patch("urllib.request.urlopen")
    def test_http_status_error(self, mock_urlopen):
        """Test a non-200 status raises TransportError."""
        mock_urlopen.return_value = _mock_response(status=500)

        notifier = SlackNotifier(token="xoxb-test", channel="#ops")

        with pytest.raises(TransportError):
            notifier.send("#ops", "title", COLOR_SUCCESS, "body")

    @patch("urllib.request.urlopen")
    def test_network_error(self, mock_urlopen):
        """Test a connection failure raises TransportError."""
        mock_urlopen.side_effect = urllib.error.URLError("Connection refused")

        notifier = SlackNotifier(token="xoxb-test", channel="#ops")

        with pytest.raises(TransportError) as exc_info:
            notifier.send("#ops", "title", COLOR_SUCCESS, "body")

        assert exc_info.value.resource == "#ops"

    @patch("urllib.request.urlopen")
    def test_invalid_json(self, mock_urlopen):
        """Test an unparseable response raises TransportError."""
        response = _mock_response()
        response.read.return_value = b"<html>"
        mock_urlopen.return_value = response

        notifier = SlackNotifier(token="xoxb-test", channel="#ops")

        with pytest.raises(TransportError):
            notifier.send("#ops", "title", COLOR_SUCCESS, "body")


class TestCreateNotifier:
    """Tests for create_notifier."""

    def test_slack(self):
        """Test slack notifier creation."""
        config = RotationConfig(slack_api_token="xoxb-test", slack_channel="#ops")

        notifier = create_notifier(config)

        assert isinstance(notifier, SlackNotifier)
        assert notifier.channel == "#ops"

    def test_slack_missing_token(self):
        """Test a missing token raises ConfigError."""
        with pytest.raises(ConfigError):
            create_notifier(RotationConfig(slack_channel="#ops"))

    def test_slack_missing_channel(self):
        """Test a missing channel raises ConfigError."""
        with pytest.raises(ConfigError):
            create_notifier(RotationConfig(slack_api_token="xoxb-test"))

    def test_none(self):
        """Test notifications can be disabled."""
        assert isinstance(create_notifier(RotationConfig(notifier="none")), NullNotifier)

    def test_unknown(self):
        """Test an unknown notifier raises ConfigError."""
        with pytest.raises(ConfigError):
            create_notifier(RotationConfig(notifier="email"))
