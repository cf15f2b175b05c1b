"""
Concurrent fan-out of push messages.

The dispatch engine turns a resolved audience into one send per
(user, device token) pair. Sends run concurrently on an injected worker pool and
are fully independent: a slow or failing send never delays or fails another
one. Only sends the transport confirmed are recorded.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, wait
from dataclasses import dataclass, field
from typing import List, Sequence

from machine_notify.core.state.repositories import SentNotificationStore
from machine_notify.domain.errors import PushDeliveryError
from machine_notify.domain.models import AlarmDetail, AudienceEntry, SentNotification, User
from machine_notify.notification.base import PushTransport
from machine_notify.notification.composer import compose
from machine_notify.runtime.worker_pool import WorkerPool

log = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """
    Outcome counters of one dispatch call.

    Attributes
    ----------
    attempted
        Number of (user, token) sends issued.
    delivered
        Sends confirmed by the transport and recorded.
    failed
        Sends that failed or whose record could not be saved.
    """

    attempted: int = 0
    delivered: int = 0
    failed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def _count(self, ok: bool) -> None:
        with self._lock:
            if ok:
                self.delivered += 1
            else:
                self.failed += 1


class DispatchEngine:
    """
    Fan out rendered messages to every device of every recipient.

    Parameters
    ----------
    transport
        Push transport used for each send.
    sent_store
        Store receiving a :class:`SentNotification` per confirmed send.
    pool
        Worker pool running the individual sends. It must not be the pool the
        calling pipeline runs on, since :meth:`dispatch` waits for the sends.
        The pool is resolved on every submit, so a restarted pool is picked up.
    """

    def __init__(self, transport: PushTransport, sent_store: SentNotificationStore, pool: WorkerPool):
        self._transport = transport
        self._sent_store = sent_store
        self._pool = pool

    def dispatch(
        self,
        title: str,
        audience: Sequence[AudienceEntry],
        status_alarms: Sequence[AlarmDetail],
    ) -> DispatchReport:
        """
        Send the notification to the whole audience and wait for completion.

        Parameters
        ----------
        title
            Notification title shared by all recipients.
        audience
            Resolved recipients with their private alarm lists.
        status_alarms
            Delta-filtered alarm list of the status, used for the empty-body rule.

        Returns
        -------
        DispatchReport
            Counters of attempted, delivered and failed sends. Failures are
            never raised to the caller.
        """
        report = DispatchReport()
        futures: List[Future] = []

        for entry in audience:
            for token in entry.user.tokens:
                report.attempted += 1
                try:
                    fut = self._pool.submit(
                        self._send_one, report, entry.user, token, title, entry.alarms, status_alarms
                    )
                except RuntimeError as e:
                    log.error("Could not schedule message to user: %s (%s)", entry.user.email, e)
                    report._count(False)
                    continue
                futures.append(fut)

        wait(futures)
        return report

    def _send_one(
        self,
        report: DispatchReport,
        user: User,
        token: str,
        title: str,
        alarms: Sequence[AlarmDetail],
        status_alarms: Sequence[AlarmDetail],
    ) -> None:
        message = compose(token, title, alarms, status_alarms)
        try:
            log.info("Sending message to user: %s", user.email)
            log.debug("Message: %r", message)
            self._transport.send(message)
        except PushDeliveryError as e:
            log.warning("Error sending message to user: %s (%s)", user.email, e.reason)
            report._count(False)
            return
        except Exception:
            log.exception("Unexpected error sending message to user: %s", user.email)
            report._count(False)
            return

        try:
            self._sent_store.save(SentNotification(message=message, user=user))
        except Exception:
            log.exception("Message to %s was sent but could not be recorded", user.email)
            report._count(False)
            return

        log.info("Sending message was successful. Saved sent notification for %s", user.email)
        report._count(True)
