"""
Domain models and enums.

This module defines the core domain-level types used across the system:
- Signal-light states of a machine's stack light
- Alarm details and machine status snapshots
- Machines, users and their notification preferences
- Rendered push messages and the record of a confirmed send

These are designed as immutable (frozen) dataclasses so they can be shared
safely between the ingestion caller and the worker threads that run the
notification pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple


class SignalLight(str, Enum):
    """
    State of one channel of a machine's signal tower.

    Members
    -------
    OFF : str
        The lamp is off.
    ON : str
        The lamp is lit continuously.
    BLINKING : str
        The lamp is flashing.
    """

    OFF = "OFF"
    ON = "ON"
    BLINKING = "BLINKING"


@dataclass(frozen=True)
class AlarmDetail:
    """
    One alarm reported by a machine.

    Parameters
    ----------
    alarm_id
        Stable alarm identifier (e.g., "A1042"). Deduplication and blacklists
        compare on this field only.
    description
        Human-readable alarm text.
    """

    alarm_id: str
    description: str


@dataclass(frozen=True)
class MachineStatus:
    """
    Snapshot of a machine's signal lights and active alarms.

    Parameters
    ----------
    machine_id
        Identifier of the machine that produced the status.
    green_light, yellow_light, red_light, blue_light
        Signal tower channel states.
    alarms
        Ordered alarm list reported with this status.
    timestamp
        Optional time the status was observed.
    """

    machine_id: str
    green_light: SignalLight = SignalLight.OFF
    yellow_light: SignalLight = SignalLight.OFF
    red_light: SignalLight = SignalLight.OFF
    blue_light: SignalLight = SignalLight.OFF
    alarms: Tuple[AlarmDetail, ...] = ()
    timestamp: Optional[datetime] = None

    def with_alarms(self, alarms: Iterable[AlarmDetail]) -> "MachineStatus":
        """Return a copy of this status carrying a different alarm list."""
        return replace(self, alarms=tuple(alarms))


@dataclass(frozen=True)
class Machine:
    """
    A monitored machine.

    Parameters
    ----------
    machine_id
        Machine identifier referenced by incoming statuses.
    name
        Display name used in notification titles.
    organization_id
        Owning organization; its users are the notification candidates.
    """

    machine_id: str
    name: str
    organization_id: str


@dataclass(frozen=True)
class UserConfig:
    """
    Per-user notification preferences.

    Parameters
    ----------
    notification_tokens
        Push delivery tokens, one per registered device.
    blacklisted_machine_ids
        Machines the user never wants to hear about.
    blacklisted_alarm_ids
        Alarm ids hidden from the user on every machine.
    """

    notification_tokens: FrozenSet[str] = field(default_factory=frozenset)
    blacklisted_machine_ids: FrozenSet[str] = field(default_factory=frozenset)
    blacklisted_alarm_ids: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class User:
    """
    A notification recipient.

    Parameters
    ----------
    user_id
        User identifier.
    email
        E-mail address, used in logs.
    organization_id
        Organization the user belongs to.
    config
        Notification preferences. A user without config is never notified.
    """

    user_id: str
    email: str
    organization_id: str
    config: Optional[UserConfig] = None

    @property
    def tokens(self) -> FrozenSet[str]:
        """Delivery tokens of the user (empty when no config is set)."""
        if self.config is None:
            return frozenset()
        return self.config.notification_tokens


@dataclass(frozen=True)
class AudienceEntry:
    """
    A resolved recipient and the alarms that should be shown to them.

    Parameters
    ----------
    user
        Eligible user.
    alarms
        Private alarm list after the user's alarm blacklist was applied.
    """

    user: User
    alarms: Tuple[AlarmDetail, ...]


@dataclass(frozen=True)
class PushMessage:
    """
    Rendered push notification addressed to one device.

    Parameters
    ----------
    token
        Device delivery token.
    title
        Notification title (machine name and signal lights).
    body
        Notification body (alarm list).
    """

    token: str
    title: str
    body: str


@dataclass(frozen=True)
class SentNotification:
    """
    Record of a push message the transport confirmed as delivered.

    Parameters
    ----------
    message
        The message that was sent.
    user
        Recipient of the message.
    sent_at
        Time the transport confirmed the send.
    """

    message: PushMessage
    user: User
    sent_at: datetime = field(default_factory=datetime.now)
