"""
Unit tests for machine_notify.services.notification_service.NotificationService.

These tests validate the ingestion entry point:
- unknown machine ids raise MachineMonitoringError (400) before anything is queued
- known machines queue one run that looks up the penultimate status
- ingest records the status and binds its predecessor in one step
- submit returns without waiting for slow sends

Real WorkerPool instances are used; stores and transport are fakes.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Iterator, List, Optional

import pytest

from machine_notify.core.state.memory_store import (
    InMemoryMachineStore,
    InMemorySentNotificationStore,
    InMemoryStatusStore,
    InMemoryUserStore,
)
from machine_notify.domain.errors import MachineMonitoringError
from machine_notify.domain.models import AlarmDetail, Machine, MachineStatus, PushMessage, User, UserConfig
from machine_notify.notification.dispatch import DispatchEngine
from machine_notify.runtime.task_scheduler import TaskScheduler
from machine_notify.runtime.worker_pool import WorkerPool, WorkerPoolConfig
from machine_notify.services.notification_service import NotificationService


@dataclass
class GatedTransport:
    """
    Transport that blocks every send until the test opens the gate.
    """

    gate: threading.Event = field(default_factory=threading.Event)
    sent: List[PushMessage] = field(default_factory=list)

    def send(self, message: PushMessage) -> None:
        self.gate.wait(timeout=5.0)
        self.sent.append(message)


@dataclass
class CountingPool:
    """
    Fake pool recording submissions without running them.
    """

    submitted: int = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        raise AssertionError("nothing should be submitted")


@pytest.fixture
def pools() -> Iterator[tuple]:
    pipeline = WorkerPool(WorkerPoolConfig(max_workers=2, thread_name_prefix="test-run"))
    dispatch = WorkerPool(WorkerPoolConfig(max_workers=2, thread_name_prefix="test-send"))
    pipeline.start()
    dispatch.start()
    yield pipeline, dispatch
    pipeline.stop()
    dispatch.stop()


def _mk_service(pipeline: WorkerPool, dispatch: WorkerPool, transport, statuses: Optional[InMemoryStatusStore] = None):
    machines = InMemoryMachineStore()
    machines.add([Machine(machine_id="M-1", name="Press 1", organization_id="org-1")])
    users = InMemoryUserStore()
    users.add([
        User(
            user_id="u1",
            email="u1@example.com",
            organization_id="org-1",
            config=UserConfig(notification_tokens=frozenset({"t1"})),
        )
    ])
    sent = InMemorySentNotificationStore()
    service = NotificationService(
        scheduler=TaskScheduler(pipeline),
        machine_store=machines,
        status_store=statuses or InMemoryStatusStore(),
        user_store=users,
        dispatcher=DispatchEngine(transport, sent, dispatch),
    )
    return service, sent


def test_unknown_machine_raises_bad_request_and_queues_nothing() -> None:
    """
    An unknown machine id is rejected synchronously; no run is submitted.
    """
    pool = CountingPool()
    service = NotificationService(
        scheduler=TaskScheduler(pool),  # type: ignore[arg-type]
        machine_store=InMemoryMachineStore(),
        status_store=InMemoryStatusStore(),
        user_store=InMemoryUserStore(),
        dispatcher=None,  # type: ignore[arg-type]
    )

    with pytest.raises(MachineMonitoringError) as exc_info:
        service.send_notifications(MachineStatus(machine_id="missing", alarms=(AlarmDetail("A1", "x"),)))

    assert exc_info.value.status_code == HTTPStatus.BAD_REQUEST
    assert pool.submitted == 0


def test_send_notifications_returns_before_delivery(pools) -> None:
    """
    submit must not block the caller on slow sends.
    """
    pipeline, dispatch = pools
    transport = GatedTransport()
    service, sent = _mk_service(pipeline, dispatch, transport)

    fut = service.send_notifications(MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A1", "Door open"),)))

    assert not fut.done()
    assert transport.sent == []

    transport.gate.set()
    report = fut.result(timeout=5.0)

    assert report is not None and report.delivered == 1
    assert len(sent.all()) == 1


def test_penultimate_status_is_used_for_delta(pools) -> None:
    """
    The previously recorded status suppresses repeated alarms.
    """
    pipeline, dispatch = pools
    transport = GatedTransport()
    transport.gate.set()
    statuses = InMemoryStatusStore()
    service, sent = _mk_service(pipeline, dispatch, transport, statuses)

    first = MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A1", "Door open"),))
    statuses.record(first)
    assert service.send_notifications(first).result(timeout=5.0) is not None

    second = MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A1", "Door open"),))
    statuses.record(second)
    assert service.send_notifications(second).result(timeout=5.0) is None

    assert len(transport.sent) == 1
    assert len(sent.all()) == 1


def test_ingest_binds_previous_status_at_record_time(pools) -> None:
    """
    Two statuses recorded before either run executes each see their own predecessor.
    """
    pipeline, dispatch = pools
    block = threading.Event()
    for _ in range(2):
        pipeline.submit(block.wait, 5.0)

    transport = GatedTransport()
    transport.gate.set()
    statuses = InMemoryStatusStore()
    service, sent = _mk_service(pipeline, dispatch, transport, statuses)

    first = MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A1", "Door open"),))
    second = MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A2", "Overheat"),))
    f1 = service.ingest(first)
    f2 = service.ingest(second)
    assert statuses.history("M-1") == [first, second]

    block.set()

    assert f1.result(timeout=5.0) is not None
    assert f2.result(timeout=5.0) is not None
    assert len(sent.all()) == 2


def test_ingest_repeated_alarm_is_suppressed(pools) -> None:
    pipeline, dispatch = pools
    transport = GatedTransport()
    transport.gate.set()
    service, sent = _mk_service(pipeline, dispatch, transport)

    status = MachineStatus(machine_id="M-1", alarms=(AlarmDetail("A1", "Door open"),))
    assert service.ingest(status).result(timeout=5.0) is not None
    assert service.ingest(status).result(timeout=5.0) is None

    assert len(sent.all()) == 1


def test_ingest_unknown_machine_records_nothing() -> None:
    pool = CountingPool()
    statuses = InMemoryStatusStore()
    service = NotificationService(
        scheduler=TaskScheduler(pool),  # type: ignore[arg-type]
        machine_store=InMemoryMachineStore(),
        status_store=statuses,
        user_store=InMemoryUserStore(),
        dispatcher=None,  # type: ignore[arg-type]
    )

    with pytest.raises(MachineMonitoringError):
        service.ingest(MachineStatus(machine_id="missing"))

    assert statuses.machine_ids() == []
    assert pool.submitted == 0
