from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from machine_notify.domain.models import AlarmDetail, AudienceEntry, User


def _is_eligible(user: User, machine_id: str) -> bool:
    """A user needs at least one token and must not blacklist the machine."""
    if user.config is None or not user.config.notification_tokens:
        return False
    return machine_id not in user.config.blacklisted_machine_ids


@dataclass(frozen=True)
class AudienceResolver:
    """
    Decide who receives a notification and which alarms each user sees.

    Resolution happens in two steps:

    1. Machine-level eligibility. Users without config, without delivery
       tokens, or blacklisting the machine are dropped.
    2. Alarm-level filtering. Each surviving user gets a private copy of the
       alarm list without the alarm ids they blacklist.

    Users are kept even if their private list ends up empty. User records are
    read-only, so resolution needs no locking.
    """

    def resolve(
        self,
        machine_id: str,
        alarms: Sequence[AlarmDetail],
        candidate_users: Iterable[User],
    ) -> List[AudienceEntry]:
        """
        Resolve the audience for one machine status.

        Parameters
        ----------
        machine_id
            Machine the alarms belong to.
        alarms
            Delta-filtered alarm list of the current status.
        candidate_users
            Users of the machine's organization.

        Returns
        -------
        list of AudienceEntry
            One entry per eligible user, in candidate order. Duplicate user
            ids are collapsed to their first occurrence.
        """
        audience: List[AudienceEntry] = []
        seen: set[str] = set()

        for user in candidate_users:
            if user.user_id in seen:
                continue
            seen.add(user.user_id)
            if not _is_eligible(user, machine_id):
                continue

            hidden = user.config.blacklisted_alarm_ids  # type: ignore[union-attr]
            private = tuple(a for a in alarms if a.alarm_id not in hidden)
            audience.append(AudienceEntry(user=user, alarms=private))

        return audience
