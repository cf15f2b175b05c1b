from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from machine_notify.domain.errors import PushDeliveryError
from machine_notify.domain.models import PushMessage

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpPushConfig:
    """
    Configuration for HTTP-based push delivery.

    Parameters
    ----------
    url
        Push provider endpoint (e.g., the FCM v1 ``messages:send`` URL).
    timeout_s
        HTTP request timeout in seconds.
    verify_tls
        Whether to verify TLS certificates.
    auth_header
        Optional Authorization header value (e.g., Bearer token).
    """

    url: str
    timeout_s: float = 5.0
    verify_tls: bool = True
    auth_header: Optional[str] = None


def build_push_payload(message: PushMessage) -> Dict[str, Any]:
    """
    Build the provider request body for one message.

    The document follows the FCM v1 message layout: a device token plus a
    notification block carrying title and body.
    """
    return {
        "message": {
            "token": message.token,
            "notification": {
                "title": message.title,
                "body": message.body,
            },
        }
    }


class HttpPushTransport:
    """
    Push transport that delivers messages via HTTP POST.

    Notes
    -----
    - This class performs side effects (network I/O).
    - Every failure (network error, non-2xx status) is raised as
      :class:`PushDeliveryError` so callers can tell it apart from success.
    """

    def __init__(self, cfg: HttpPushConfig):
        """
        Initialize the push transport.

        Parameters
        ----------
        cfg
            Push endpoint configuration.
        """
        self._cfg = cfg

    def send(self, message: PushMessage) -> None:
        """
        Send a push message to the configured provider endpoint.

        Parameters
        ----------
        message
            Message addressed to one device token.

        Raises
        ------
        PushDeliveryError
            If the request fails or the provider rejects the message.
        """
        headers = {"Content-Type": "application/json"}
        if self._cfg.auth_header:
            headers["Authorization"] = self._cfg.auth_header

        try:
            r = requests.post(
                self._cfg.url,
                json=build_push_payload(message),
                headers=headers,
                timeout=self._cfg.timeout_s,
                verify=self._cfg.verify_tls,
            )
        except requests.RequestException as e:
            raise PushDeliveryError(message.token, repr(e)) from e

        try:
            r.raise_for_status()
        except requests.HTTPError as e:
            raise PushDeliveryError(message.token, str(e), status_code=r.status_code) from e


class LoggingPushTransport:
    """
    Dry-run transport that only logs messages.

    Used when no push endpoint is configured, so the pipeline can run end to
    end in development.
    """

    def send(self, message: PushMessage) -> None:
        log.info("Dry-run push to %s: %s / %r", message.token, message.title, message.body)
