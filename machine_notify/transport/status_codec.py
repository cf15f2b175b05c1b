from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from machine_notify.domain.errors import InvalidStatusPayloadError
from machine_notify.domain.models import AlarmDetail, MachineStatus, SignalLight

_LIGHT_KEYS = {
    "green_light": ("greenLight", "green_light"),
    "yellow_light": ("yellowLight", "yellow_light"),
    "red_light": ("redLight", "red_light"),
    "blue_light": ("blueLight", "blue_light"),
}


def _first(obj: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in obj:
            return obj[k]
    return None


def _str_to_dt(s: str) -> datetime:
    """
    Convert an ISO-8601 datetime string to a datetime object.

    A trailing ``"Z"`` is accepted as UTC.
    """
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def _decode_light(value: Any) -> SignalLight:
    if value is None:
        return SignalLight.OFF
    return SignalLight(str(value).upper())


def _decode_alarm(obj: Mapping[str, Any]) -> AlarmDetail:
    alarm_id = _first(obj, "alarmId", "alarm_id", "id")
    if alarm_id is None:
        raise KeyError("alarmId")
    description = _first(obj, "alarmDescription", "description") or ""
    return AlarmDetail(alarm_id=str(alarm_id), description=str(description))


def decode_machine_status(obj: Dict[str, Any]) -> MachineStatus:
    """
    Decode an ingestion payload into a :class:`MachineStatus`.

    Supported layouts
    -----------------
    - nested: ``{"machineId": ..., "status": {"greenLight": "ON", ...,
      "alarmDetails": [{"alarmId": ..., "alarmDescription": ...}]}}``
    - flat: ``{"machine_id": ..., "green_light": "ON", ...,
      "alarms": [{"alarm_id": ..., "description": ...}]}``

    Missing lights default to OFF, a missing alarm list to no alarms.

    Parameters
    ----------
    obj
        JSON-decoded request body.

    Returns
    -------
    MachineStatus
        Decoded domain object.

    Raises
    ------
    InvalidStatusPayloadError
        If the machine id is missing or a field cannot be converted.
    """
    if not isinstance(obj, dict):
        raise InvalidStatusPayloadError("Machine status payload must be a JSON object.")

    try:
        machine_id = _first(obj, "machineId", "machine_id")
        if machine_id in (None, ""):
            raise KeyError("machineId")

        body = obj.get("status")
        if not isinstance(body, dict):
            body = obj

        lights = {name: _decode_light(_first(body, *keys)) for name, keys in _LIGHT_KEYS.items()}

        alarms_raw: List[Any] = _first(body, "alarmDetails", "alarms") or []
        alarms = tuple(_decode_alarm(a) for a in alarms_raw)

        ts_raw: Optional[str] = _first(obj, "timestamp", "createdAt")
        timestamp = _str_to_dt(str(ts_raw)) if ts_raw else None
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidStatusPayloadError(f"Invalid machine status payload: {e!r}") from e

    return MachineStatus(
        machine_id=str(machine_id),
        alarms=alarms,
        timestamp=timestamp,
        **lights,
    )
