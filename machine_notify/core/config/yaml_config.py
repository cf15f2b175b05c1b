from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from machine_notify.domain.models import Machine, User, UserConfig


@dataclass(frozen=True)
class PushConfigData:
    """Push provider settings. Without a URL, messages are only logged."""
    url: Optional[str] = None
    auth_header: Optional[str] = None
    timeout_s: float = 5.0
    verify_tls: bool = True


@dataclass(frozen=True)
class WorkersConfig:
    """Pool sizes for pipeline runs and for individual sends."""
    pipeline_workers: int = 8
    dispatch_workers: int = 16


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None
    console: bool = True


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass(frozen=True)
class SeedData:
    """Machines and users preloaded into the in-memory stores."""
    machines: List[Machine] = field(default_factory=list)
    users: List[User] = field(default_factory=list)


@dataclass(frozen=True)
class AppConfig:
    """
    Root application configuration loaded from YAML.

    This is the single source of truth for runtime-tunable values so the
    service can be configured without code changes.
    """
    push: PushConfigData
    workers: WorkersConfig
    logging: LoggingConfig
    server: ServerConfig
    seed: SeedData


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("config.yaml must contain a YAML mapping at the root")
    return data


def _resolve_default_config_path() -> Path:
    """
    Resolve config.yaml location.

    Priority:
    1) APP_CONFIG env var if provided
    2) config.yaml next to the executable
    3) ./config.yaml in current working directory
    """
    env = os.getenv("APP_CONFIG")
    if env:
        return Path(env).expanduser().resolve()

    exe_dir = Path(sys.executable).resolve().parent
    candidate = exe_dir / "config.yaml"
    if candidate.exists():
        return candidate

    return Path("config.yaml").resolve()


def _str_set(items: Any) -> frozenset:
    return frozenset(str(x) for x in (items or []))


def _parse_user(item: Dict[str, Any]) -> User:
    c = item.get("config")
    config = None
    if c is not None:
        config = UserConfig(
            notification_tokens=_str_set(c.get("notification_tokens")),
            blacklisted_machine_ids=_str_set(c.get("blacklisted_machines")),
            blacklisted_alarm_ids=_str_set(c.get("blacklisted_alarms")),
        )
    return User(
        user_id=str(item["id"]),
        email=str(item["email"]),
        organization_id=str(item["organization_id"]),
        config=config,
    )


def _parse_seed(raw: Dict[str, Any]) -> SeedData:
    machines = [
        Machine(
            machine_id=str(m["id"]),
            name=str(m["name"]),
            organization_id=str(m["organization_id"]),
        )
        for m in raw.get("machines", []) or []
    ]
    users = [_parse_user(u) for u in raw.get("users", []) or []]
    return SeedData(machines=machines, users=users)


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Load application configuration from YAML and convert into typed config objects.

    Parameters
    ----------
    path
        Explicit path to config.yaml. If None, uses default resolution.

    Returns
    -------
    AppConfig
        Parsed and validated configuration.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If required fields are missing or invalid.
    """
    cfg_path = Path(path).expanduser().resolve() if path else _resolve_default_config_path()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config not found: {cfg_path}")

    raw = _read_yaml(cfg_path)

    try:
        # ---- push ----
        p = raw.get("push", {}) or {}
        push = PushConfigData(
            url=p.get("url") or None,
            auth_header=os.getenv("PUSH_AUTH_HEADER") or p.get("auth_header"),
            timeout_s=float(p.get("timeout_s", 5.0)),
            verify_tls=bool(p.get("verify_tls", True)),
        )

        # ---- workers ----
        w = raw.get("workers", {}) or {}
        workers = WorkersConfig(
            pipeline_workers=int(w.get("pipeline_workers", 8)),
            dispatch_workers=int(w.get("dispatch_workers", 16)),
        )
        if workers.pipeline_workers < 1 or workers.dispatch_workers < 1:
            raise ValueError("worker pool sizes must be at least 1")

        # ---- logging ----
        lg = raw.get("logging", {}) or {}
        logging_cfg = LoggingConfig(
            level=str(lg.get("level", "INFO")).upper(),
            file=lg.get("file") or None,
            console=bool(lg.get("console", True)),
        )

        # ---- server ----
        s = raw.get("server", {}) or {}
        server = ServerConfig(
            host=str(s.get("host", "0.0.0.0")),
            port=int(s.get("port", 8000)),
        )

        # ---- seed ----
        seed = _parse_seed(raw.get("seed", {}) or {})
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid config {cfg_path}: {e!r}") from e

    return AppConfig(
        push=push,
        workers=workers,
        logging=logging_cfg,
        server=server,
        seed=seed,
    )
