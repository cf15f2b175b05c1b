"""
Domain error types.

Two classes of failure exist in the notification pipeline:

- client errors (:class:`MachineMonitoringError`), raised synchronously to the
  ingestion caller and mapped to an HTTP status by the server layer
- delivery errors (:class:`PushDeliveryError`), raised by a push transport for
  one device and handled inside the dispatch engine
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional


class MachineMonitoringError(Exception):
    """
    Error caused by an invalid incoming machine status.

    Parameters
    ----------
    message
        Human-readable reason.
    status_code
        HTTP status the server layer should answer with.
    """

    def __init__(self, message: str, status_code: HTTPStatus = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidStatusPayloadError(MachineMonitoringError):
    """Incoming status payload could not be decoded."""


class PushDeliveryError(Exception):
    """
    A push message could not be delivered to one device token.

    Parameters
    ----------
    token
        Device token the send was addressed to.
    reason
        Short description of the failure.
    status_code
        Optional HTTP status returned by the push provider.
    """

    def __init__(self, token: str, reason: str, status_code: Optional[int] = None):
        super().__init__(f"push to {token} failed: {reason}")
        self.token = token
        self.reason = reason
        self.status_code = status_code
