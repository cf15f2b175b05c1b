"""
Unit tests for machine_notify.core.alarm.alarm_delta.

These tests validate the alarm delta gate:
- no previous status leaves the current alarms untouched
- removal is by alarm id only and preserves order
- any carried-over alarm blocks notification (all-or-nothing)
- an empty remainder blocks notification

Pure functions; no I/O.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from machine_notify.core.alarm.alarm_delta import AlarmDelta, filter_already_notified
from machine_notify.domain.models import AlarmDetail


def _a(alarm_id: str, description: str = "desc") -> AlarmDetail:
    return AlarmDetail(alarm_id=alarm_id, description=description)


def test_no_previous_status_returns_current_unchanged() -> None:
    """
    Without a previous status nothing is suppressed.
    """
    current = [_a("A1", "Door open"), _a("A2", "Overheat")]

    delta = filter_already_notified(current, None)

    assert delta.remaining == tuple(current)
    assert delta.suppressed_any is False
    assert delta.should_notify is True


def test_empty_previous_list_suppresses_nothing() -> None:
    """
    A previous status without alarms suppresses nothing.
    """
    current = [_a("A1"), _a("A2")]

    delta = filter_already_notified(current, [])

    assert delta.remaining == tuple(current)
    assert delta.suppressed_any is False


def test_repeated_alarm_is_suppressed_and_blocks_notification() -> None:
    """
    Same alarm in current and previous status -> suppressed, no notification.
    """
    delta = filter_already_notified([_a("A1", "Door open")], [_a("A1", "Door open")])

    assert delta.remaining == ()
    assert delta.suppressed_any is True
    assert delta.should_notify is False


def test_match_is_by_id_only() -> None:
    """
    Descriptions are ignored when matching alarms.
    """
    delta = filter_already_notified([_a("A1", "new text")], [_a("A1", "old text")])

    assert delta.suppressed_any is True
    assert delta.remaining == ()


def test_intersection_removed_and_order_preserved() -> None:
    """
    Exactly the intersection by id is removed; the rest keeps its order.
    """
    current = [_a("A5"), _a("A1"), _a("A3"), _a("A2"), _a("A4")]
    previous = [_a("A2"), _a("A9"), _a("A5")]

    delta = filter_already_notified(current, previous)

    assert [a.alarm_id for a in delta.remaining] == ["A1", "A3", "A4"]
    assert delta.suppressed_any is True


def test_new_alarms_next_to_repeated_ones_still_block_notification() -> None:
    """
    Any suppression skips the whole cycle, even with new alarms present.
    """
    delta = filter_already_notified([_a("A1"), _a("A2")], [_a("A1")])

    assert delta.remaining == (_a("A2"),)
    assert delta.should_notify is False


def test_empty_current_list_does_not_notify() -> None:
    """
    Nothing to report -> no notification, even with no suppression.
    """
    delta = filter_already_notified([], None)

    assert delta.suppressed_any is False
    assert delta.should_notify is False


def test_input_sequences_are_not_mutated() -> None:
    """
    The filter builds a new tuple instead of mutating its inputs.
    """
    current = [_a("A1"), _a("A2")]
    previous = [_a("A1")]

    filter_already_notified(current, previous)

    assert current == [_a("A1"), _a("A2")]
    assert previous == [_a("A1")]


def test_alarm_delta_is_frozen() -> None:
    delta = AlarmDelta(remaining=(), suppressed_any=False)
    with pytest.raises(FrozenInstanceError):
        delta.suppressed_any = True  # type: ignore[misc]
