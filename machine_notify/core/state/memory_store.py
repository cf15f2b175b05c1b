"""
In-memory store implementations.

These stores back the HTTP server when no external persistence is wired in,
and serve as realistic collaborators in tests.

Concurrency Model
-----------------
Every store guards its data with a re-entrant lock (`threading.RLock`), since
ingestion and worker threads access them at the same time. Read methods return
copies to avoid iteration hazards.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, Optional

from machine_notify.domain.models import Machine, MachineStatus, SentNotification, User


@dataclass
class InMemoryStatusStore:
    """
    Bounded status history per machine, in insertion order.

    Only the most recent ``max_history`` statuses of each machine are kept,
    since the pipeline never looks further back than the preceding status.

    Parameters
    ----------
    max_history
        Statuses kept per machine. Must be at least 2.
    """

    max_history: int = 2
    _history: Dict[str, Deque[MachineStatus]] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_history < 2:
            raise ValueError("max_history must be >= 2")

    def record(self, status: MachineStatus) -> Optional[MachineStatus]:
        """
        Append a status to its machine's history.

        Parameters
        ----------
        status
            Newly observed machine status.

        Returns
        -------
        MachineStatus or None
            The status that was the latest one before this write, read under
            the same lock. None for the first status of a machine.
        """
        with self._lock:
            history = self._history.get(status.machine_id)
            if history is None:
                history = self._history[status.machine_id] = deque(maxlen=self.max_history)
            previous = history[-1] if history else None
            history.append(status)
            return previous

    def find_latest_status(self, machine_id: str) -> Optional[MachineStatus]:
        with self._lock:
            history = self._history.get(machine_id)
            return history[-1] if history else None

    def find_penultimate_status(self, machine_id: str) -> Optional[MachineStatus]:
        """
        Return the second most recent status of a machine.

        Returns
        -------
        MachineStatus or None
            None when fewer than two statuses were recorded.
        """
        with self._lock:
            history = self._history.get(machine_id)
            return history[-2] if history and len(history) >= 2 else None

    def history(self, machine_id: str) -> List[MachineStatus]:
        with self._lock:
            return list(self._history.get(machine_id, ()))

    def machine_ids(self) -> List[str]:
        """Machines with at least one recorded status."""
        with self._lock:
            return list(self._history)


@dataclass
class InMemoryMachineStore:
    """Machines keyed by machine id. Adding an existing id overwrites it."""

    _machines: Dict[str, Machine] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def add(self, machines: Iterable[Machine]) -> None:
        with self._lock:
            for m in machines:
                self._machines[m.machine_id] = m

    def find_machine(self, machine_id: str) -> Optional[Machine]:
        with self._lock:
            return self._machines.get(machine_id)


@dataclass
class InMemoryUserStore:
    """Users keyed by user id. Adding an existing id overwrites it."""

    _users: Dict[str, User] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def add(self, users: Iterable[User]) -> None:
        with self._lock:
            for u in users:
                self._users[u.user_id] = u

    def find_users_by_organization(self, organization_id: str) -> List[User]:
        """
        Return users of an organization.

        Parameters
        ----------
        organization_id
            Organization to look up.

        Returns
        -------
        list of User
            Matching users in insertion order.
        """
        with self._lock:
            return [u for u in self._users.values() if u.organization_id == organization_id]


@dataclass
class InMemorySentNotificationStore:
    """Append-only log of confirmed sends."""

    _records: List[SentNotification] = field(default_factory=list)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def save(self, notification: SentNotification) -> None:
        with self._lock:
            self._records.append(notification)

    def all(self) -> List[SentNotification]:
        """Snapshot copy of all records."""
        with self._lock:
            return list(self._records)
