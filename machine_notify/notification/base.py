from __future__ import annotations

from typing import Protocol

from machine_notify.domain.models import PushMessage


class PushTransport(Protocol):
    """
    Protocol interface for push delivery.

    Any transport can be used if it provides a 'send(message)' method with the
    correct signature. This enables dependency inversion and makes dispatch
    easy to test with fakes.

    Methods
    -------
    send(message)
        Deliver one push message to the device named by ``message.token``.
    """

    def send(self, message: PushMessage) -> None:
        """
        Deliver a push message.

        Parameters
        ----------
        message
            The rendered message to deliver.

        Raises
        ------
        PushDeliveryError
            If the provider did not accept the message.
        """
        ...
