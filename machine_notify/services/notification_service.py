from __future__ import annotations

import logging
from concurrent.futures import Future
from typing import Optional

from machine_notify.core.audience import AudienceResolver
from machine_notify.core.state.repositories import MachineStore, StatusStore, UserStore
from machine_notify.domain.errors import MachineMonitoringError
from machine_notify.domain.models import Machine, MachineStatus
from machine_notify.notification.dispatch import DispatchEngine
from machine_notify.runtime.task_scheduler import TaskScheduler
from machine_notify.services.notification_run import NotificationRun

log = logging.getLogger(__name__)


class NotificationService:
    """
    Entry point used by the status ingestion path.

    The service validates the event synchronously and hands the rest of the
    pipeline to the scheduler, so the caller never waits on push delivery.

    Parameters
    ----------
    scheduler
        Scheduler offloading pipeline runs to the worker pool.
    machine_store, user_store
        Read-side stores.
    status_store
        Status history; written by :meth:`ingest`, read by both entry points.
    dispatcher
        Dispatch engine shared by all runs.
    resolver
        Audience resolver shared by all runs.
    """

    def __init__(
        self,
        scheduler: TaskScheduler,
        machine_store: MachineStore,
        status_store: StatusStore,
        user_store: UserStore,
        dispatcher: DispatchEngine,
        resolver: AudienceResolver | None = None,
    ):
        self._scheduler = scheduler
        self._machines = machine_store
        self._statuses = status_store
        self._users = user_store
        self._dispatcher = dispatcher
        self._resolver = resolver or AudienceResolver()

    def send_notifications(self, status: MachineStatus) -> Future:
        """
        Queue push notifications for a status persisted by the caller.

        The status must already be the latest record of its machine; the
        preceding one is read with ``find_penultimate_status``.

        Parameters
        ----------
        status
            Current machine status.

        Returns
        -------
        Future
            Future of the queued run (resolves to a DispatchReport or None).

        Raises
        ------
        MachineMonitoringError
            If the status references an unknown machine. Nothing is queued
            in that case.
        """
        machine = self._find_machine(status.machine_id)
        penultimate = self._statuses.find_penultimate_status(status.machine_id)
        return self._submit(status, penultimate, machine)

    def ingest(self, status: MachineStatus) -> Future:
        """
        Validate, record and queue notifications for a new status.

        Recording and reading the preceding status happen in one store call,
        so concurrent statuses of the same machine never see themselves as
        their own predecessor. Statuses of unknown machines are not recorded.

        Parameters
        ----------
        status
            Newly observed machine status.

        Returns
        -------
        Future
            Future of the queued run.

        Raises
        ------
        MachineMonitoringError
            If the status references an unknown machine.
        """
        machine = self._find_machine(status.machine_id)
        previous = self._statuses.record(status)
        return self._submit(status, previous, machine)

    def _find_machine(self, machine_id: str) -> Machine:
        machine = self._machines.find_machine(machine_id)
        if machine is None:
            log.warning("Machine ID in received machine status is invalid: %s", machine_id)
            raise MachineMonitoringError("Machine ID in received machine status is invalid.")
        return machine

    def _submit(self, status: MachineStatus, previous: Optional[MachineStatus], machine: Machine) -> Future:
        run = NotificationRun(
            status=status,
            penultimate=previous,
            machine=machine,
            user_store=self._users,
            dispatcher=self._dispatcher,
            resolver=self._resolver,
        )
        return self._scheduler.submit(run.run)
