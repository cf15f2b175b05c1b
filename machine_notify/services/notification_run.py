from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from machine_notify.core.alarm.alarm_delta import filter_already_notified
from machine_notify.core.audience import AudienceResolver
from machine_notify.core.state.repositories import UserStore
from machine_notify.domain.models import Machine, MachineStatus
from machine_notify.notification.composer import build_title
from machine_notify.notification.dispatch import DispatchEngine, DispatchReport

log = logging.getLogger(__name__)


@dataclass
class NotificationRun:
    """
    One end-to-end pipeline run for a single machine status.

    Steps
    -----
    1. Alarm delta against the penultimate status. Any carried-over alarm,
       or an empty remainder, ends the run without sending anything.
    2. Load the users of the machine's organization and resolve the audience.
    3. Build the title once and dispatch per-user bodies to every device.

    The run holds no state shared with other runs.

    Parameters
    ----------
    status
        Current machine status.
    penultimate
        Status preceding the current one, or None for the first status.
    machine
        Machine the status belongs to.
    user_store
        Source of candidate users.
    dispatcher
        Engine performing the concurrent sends.
    resolver
        Audience resolver.
    """

    status: MachineStatus
    penultimate: Optional[MachineStatus]
    machine: Machine
    user_store: UserStore
    dispatcher: DispatchEngine
    resolver: AudienceResolver = field(default_factory=AudienceResolver)

    def run(self) -> Optional[DispatchReport]:
        """
        Execute the pipeline.

        Returns
        -------
        DispatchReport or None
            Dispatch counters, or None if the delta gate skipped the event.
        """
        previous = self.penultimate.alarms if self.penultimate is not None else None
        delta = filter_already_notified(self.status.alarms, previous)

        if delta.suppressed_any:
            log.info(
                "Users already received a message for those alarm details: %s",
                [a.alarm_id for a in previous or ()],
            )
            return None
        if not delta.should_notify:
            log.debug("Machine %s reported no alarms; nothing to notify", self.machine.machine_id)
            return None

        current = self.status.with_alarms(delta.remaining)
        title = build_title(current, self.machine.name)

        users = self.user_store.find_users_by_organization(self.machine.organization_id)
        audience = self.resolver.resolve(self.machine.machine_id, current.alarms, users)

        report = self.dispatcher.dispatch(title, audience, current.alarms)
        log.info(
            "Machine %s: %d recipients, %d/%d sends delivered",
            self.machine.machine_id,
            len(audience),
            report.delivered,
            report.attempted,
        )
        return report
