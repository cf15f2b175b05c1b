"""
Alarm delta against the previous machine status.

A machine repeats its alarm list in every status it reports. To avoid telling
users about the same alarms over and over, the current alarm list is compared
with the immediately preceding status of the same machine. If any alarm is
carried over, the whole notification cycle for the event is skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from machine_notify.domain.models import AlarmDetail


@dataclass(frozen=True)
class AlarmDelta:
    """
    Result of comparing the current alarms with the previous ones.

    Parameters
    ----------
    remaining
        Current alarms whose id did not appear in the previous status,
        in their original order.
    suppressed_any
        True if at least one current alarm was already present before.
    """

    remaining: Tuple[AlarmDetail, ...]
    suppressed_any: bool

    @property
    def should_notify(self) -> bool:
        """
        Whether the event passes the notification gate.

        Any carried-over alarm blocks the cycle, even when new alarms are
        present alongside it. An empty remainder has nothing to report.
        """
        return not self.suppressed_any and len(self.remaining) > 0


def filter_already_notified(
    current: Sequence[AlarmDetail],
    previous: Optional[Sequence[AlarmDetail]],
) -> AlarmDelta:
    """
    Remove alarms that were already present in the previous status.

    Parameters
    ----------
    current
        Alarm list of the status being processed.
    previous
        Alarm list of the penultimate status, or None if the machine has no
        earlier status.

    Returns
    -------
    AlarmDelta
        Remaining alarms and whether anything was removed. Alarms are matched
        by id only; descriptions are ignored.
    """
    if previous is None:
        return AlarmDelta(remaining=tuple(current), suppressed_any=False)

    previous_ids = {a.alarm_id for a in previous}
    remaining = tuple(a for a in current if a.alarm_id not in previous_ids)
    return AlarmDelta(remaining=remaining, suppressed_any=len(remaining) != len(current))
