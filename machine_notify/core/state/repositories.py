"""
Store contracts consumed by the notification pipeline.

Persistence is owned by other parts of the system. The pipeline only needs
the narrow read/write operations declared here; any object providing them
(database repository, in-memory store, test fake) can be injected.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from machine_notify.domain.models import Machine, MachineStatus, SentNotification, User


class StatusStore(Protocol):
    def record(self, status: MachineStatus) -> Optional[MachineStatus]:
        """Persist a status and atomically return the one that preceded it."""
        ...

    def find_penultimate_status(self, machine_id: str) -> Optional[MachineStatus]:
        """Return the status recorded just before the latest one, if any."""
        ...


class MachineStore(Protocol):
    def find_machine(self, machine_id: str) -> Optional[Machine]:
        """Return the machine with the given id, or None if unknown."""
        ...


class UserStore(Protocol):
    def find_users_by_organization(self, organization_id: str) -> List[User]:
        """Return all users belonging to an organization."""
        ...


class SentNotificationStore(Protocol):
    def save(self, notification: SentNotification) -> None:
        """Persist the record of a confirmed send."""
        ...
