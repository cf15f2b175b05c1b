from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from machine_notify.core.config.yaml_config import AppConfig, load_app_config
from machine_notify.core.state.memory_store import (
    InMemoryMachineStore,
    InMemorySentNotificationStore,
    InMemoryStatusStore,
    InMemoryUserStore,
)
from machine_notify.notification.base import PushTransport
from machine_notify.notification.dispatch import DispatchEngine
from machine_notify.notification.http_push import HttpPushConfig, HttpPushTransport, LoggingPushTransport
from machine_notify.runtime.task_scheduler import TaskScheduler
from machine_notify.runtime.worker_pool import WorkerPool, WorkerPoolConfig
from machine_notify.services.notification_service import NotificationService


@dataclass(frozen=True)
class AppWiring:
    """Everything the server layer needs to run the system."""
    config: AppConfig
    status_store: InMemoryStatusStore
    machine_store: InMemoryMachineStore
    user_store: InMemoryUserStore
    sent_store: InMemorySentNotificationStore
    pipeline_pool: WorkerPool
    dispatch_pool: WorkerPool
    service: NotificationService

    def stop(self, wait: bool = True) -> None:
        """Shut down both pools. Pipeline runs finish before their sends' pool closes."""
        self.pipeline_pool.stop(wait=wait)
        self.dispatch_pool.stop(wait=wait)


def build_transport(cfg: AppConfig) -> PushTransport:
    if not cfg.push.url:
        return LoggingPushTransport()

    auth_header = cfg.push.auth_header
    if auth_header and not auth_header.startswith("Bearer "):
        auth_header = f"Bearer {auth_header}"

    return HttpPushTransport(
        HttpPushConfig(
            url=cfg.push.url,
            auth_header=auth_header,
            timeout_s=cfg.push.timeout_s,
            verify_tls=cfg.push.verify_tls,
        )
    )


def build_app_system(config_path: Optional[str] = None, transport: Optional[PushTransport] = None) -> AppWiring:
    cfg = load_app_config(config_path)

    # --- STORES ---
    status_store = InMemoryStatusStore()
    machine_store = InMemoryMachineStore()
    machine_store.add(cfg.seed.machines)
    user_store = InMemoryUserStore()
    user_store.add(cfg.seed.users)
    sent_store = InMemorySentNotificationStore()

    # --- POOLS ---
    pipeline_pool = WorkerPool(WorkerPoolConfig(max_workers=cfg.workers.pipeline_workers, thread_name_prefix="notification-run"))
    dispatch_pool = WorkerPool(WorkerPoolConfig(max_workers=cfg.workers.dispatch_workers, thread_name_prefix="push-send"))
    pipeline_pool.start()
    dispatch_pool.start()

    # --- DISPATCH ---
    dispatcher = DispatchEngine(
        transport=transport or build_transport(cfg),
        sent_store=sent_store,
        pool=dispatch_pool,
    )

    # --- SERVICE ---
    service = NotificationService(
        scheduler=TaskScheduler(pipeline_pool),
        machine_store=machine_store,
        status_store=status_store,
        user_store=user_store,
        dispatcher=dispatcher,
    )

    return AppWiring(
        config=cfg,
        status_store=status_store,
        machine_store=machine_store,
        user_store=user_store,
        sent_store=sent_store,
        pipeline_pool=pipeline_pool,
        dispatch_pool=dispatch_pool,
        service=service,
    )
