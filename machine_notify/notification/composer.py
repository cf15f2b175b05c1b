"""
Push message composition.

Titles summarize the machine's signal tower, bodies list the alarms a user
should see. Bodies are bounded so they fit in a mobile notification.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from machine_notify.domain.models import AlarmDetail, MachineStatus, PushMessage, SignalLight

# Channel order is fixed: green, yellow, red, blue.
_GREEN = "\U0001F7E2"
_YELLOW = "\U0001F7E1"
_RED = "\U0001F534"
_BLUE = "\U0001F535"
ALL_OFF = "\u26AB"
BLINKING_SUFFIX = "(blinking)"

ERROR_HEADER = "ERR:\n"
MAX_LISTED_ALARMS = 3


def _channels(status: MachineStatus) -> List[Tuple[str, SignalLight]]:
    return [
        (_GREEN, status.green_light),
        (_YELLOW, status.yellow_light),
        (_RED, status.red_light),
        (_BLUE, status.blue_light),
    ]


def build_title(status: MachineStatus, machine_name: str) -> str:
    """
    Build the notification title from the machine name and signal lights.

    Parameters
    ----------
    status
        Current machine status.
    machine_name
        Display name of the machine.

    Returns
    -------
    str
        ``"<name> | "`` followed by one glyph per lit channel (with a
        ``"(blinking)"`` suffix for flashing ones), or the all-off glyph when
        every channel is OFF.
    """
    title = f"{machine_name} | "
    lit = [(glyph, state) for glyph, state in _channels(status) if state is not SignalLight.OFF]

    if not lit:
        return title + ALL_OFF

    for glyph, state in lit:
        title += glyph
        if state is SignalLight.BLINKING:
            title += BLINKING_SUFFIX
    return title


def build_body(alarms: Sequence[AlarmDetail], status_alarms: Sequence[AlarmDetail]) -> str:
    """
    Build the notification body for one user.

    Parameters
    ----------
    alarms
        The user's private alarm list.
    status_alarms
        Delta-filtered alarm list of the status (before per-user filtering).
        An empty list yields an empty body.

    Returns
    -------
    str
        ``"ERR:"`` header, up to three ``"<id> | <description>"`` lines and,
        when more alarms exist, a ``"+ <omitted>"`` marker after the third
        line. The omitted count is based on the user's own list.
    """
    if not status_alarms:
        return ""

    parts = [ERROR_HEADER]
    for alarm in alarms[:MAX_LISTED_ALARMS]:
        parts.append(f"{alarm.alarm_id} | {alarm.description}\n")

    if len(alarms) > MAX_LISTED_ALARMS:
        parts.append(f"+ {len(alarms) - MAX_LISTED_ALARMS}")

    return "".join(parts)


def compose(
    token: str,
    title: str,
    alarms: Sequence[AlarmDetail],
    status_alarms: Sequence[AlarmDetail],
) -> PushMessage:
    """Render the push message for one device token."""
    return PushMessage(token=token, title=title, body=build_body(alarms, status_alarms))
