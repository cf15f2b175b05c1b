"""
Unit tests for machine_notify.notification.http_push.

These tests validate HTTP push delivery using mocked HTTP calls:
- correct request parameters passed to requests.post
- Authorization header handling
- HTTP and network errors surfaced as PushDeliveryError

No real network requests are made.
"""

from __future__ import annotations

from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
import requests

from machine_notify.domain.errors import PushDeliveryError
from machine_notify.domain.models import PushMessage
from machine_notify.notification.http_push import (
    HttpPushConfig,
    HttpPushTransport,
    LoggingPushTransport,
    build_push_payload,
)


def _mk_message() -> PushMessage:
    """
    Create a minimal PushMessage for transport tests.
    """
    return PushMessage(token="device-1", title="Press 1 | x", body="ERR:\nA1 | Door open\n")


def test_build_push_payload_layout() -> None:
    payload = build_push_payload(_mk_message())
    assert payload == {
        "message": {
            "token": "device-1",
            "notification": {"title": "Press 1 | x", "body": "ERR:\nA1 | Door open\n"},
        }
    }


def test_send_posts_payload_without_auth(monkeypatch) -> None:
    """
    send() should POST the message with correct headers and options
    when no auth header is configured.
    """
    mock_response = MagicMock()
    mock_response.raise_for_status.return_value = None

    def fake_post(
        url: str,
        json: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
        verify: bool,
    ):
        assert url == "https://push.example.com/send"
        assert json["message"]["token"] == "device-1"
        assert headers == {"Content-Type": "application/json"}
        assert timeout == 3.0
        assert verify is False
        return mock_response

    monkeypatch.setattr("requests.post", fake_post)

    transport = HttpPushTransport(HttpPushConfig(url="https://push.example.com/send", timeout_s=3.0, verify_tls=False))
    transport.send(_mk_message())

    mock_response.raise_for_status.assert_called_once()


def test_send_includes_auth_header(monkeypatch) -> None:
    """
    send() should include the Authorization header when configured.
    """
    mock_response = MagicMock()
    mock_response.raise_for_status.return_value = None

    def fake_post(url, json, headers, timeout, verify):
        assert headers["Authorization"] == "Bearer TOKEN"
        return mock_response

    monkeypatch.setattr("requests.post", fake_post)

    transport = HttpPushTransport(HttpPushConfig(url="https://push.example.com/send", auth_header="Bearer TOKEN"))
    transport.send(_mk_message())

    mock_response.raise_for_status.assert_called_once()


def test_http_error_becomes_push_delivery_error(monkeypatch) -> None:
    """
    A non-2xx response should be raised as PushDeliveryError with the status code.
    """
    mock_response = MagicMock()
    mock_response.status_code = 404
    mock_response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

    monkeypatch.setattr("requests.post", lambda *args, **kwargs: mock_response)

    transport = HttpPushTransport(HttpPushConfig(url="https://push.example.com/send"))

    with pytest.raises(PushDeliveryError) as exc_info:
        transport.send(_mk_message())

    assert exc_info.value.token == "device-1"
    assert exc_info.value.status_code == 404


def test_network_error_becomes_push_delivery_error(monkeypatch) -> None:
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr("requests.post", fake_post)

    transport = HttpPushTransport(HttpPushConfig(url="https://push.example.com/send"))

    with pytest.raises(PushDeliveryError) as exc_info:
        transport.send(_mk_message())

    assert exc_info.value.status_code is None


def test_logging_transport_never_raises(caplog) -> None:
    with caplog.at_level("INFO"):
        LoggingPushTransport().send(_mk_message())
    assert "device-1" in caplog.text
