"""
Unit tests for alarm_service.domain.events.

These tests validate the alarm event domain contracts:
- Enum stability for AlarmTransition
- Immutability of AlarmEvent
- Convenience accessors delegating to the config
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.domain.models import LimitClass


def test_alarm_transition_enum_values() -> None:
    """
    These string values appear in logs and cycle reports.
    """
    assert AlarmTransition.RAISED.value == "RAISED"
    assert AlarmTransition.CLEARED.value == "CLEARED"
    assert len(AlarmTransition) == 2


def test_alarm_event_fields_and_accessors(make_config) -> None:
    ts = datetime(2026, 1, 1, 10, 0, 0)
    cfg = make_config(monitor_hh=True)

    ev = AlarmEvent(
        config=cfg,
        limit=LimitClass.HH,
        transition=AlarmTransition.RAISED,
        timestamp=ts,
        event_address="Line1.Temp.HH_EVT",
    )

    assert ev.config_id == "cfg-1"
    assert ev.tag_base == "Line1.Temp"
    assert ev.pv_value is None
    assert ev.timestamp == ts


def test_alarm_event_is_frozen(make_config) -> None:
    ev = AlarmEvent(
        config=make_config(),
        limit=LimitClass.L,
        transition=AlarmTransition.CLEARED,
        timestamp=datetime(2026, 1, 1, 11, 0, 0),
        event_address="Line1.Temp.L_EVT",
    )

    with pytest.raises(FrozenInstanceError):
        ev.pv_value = 3  # type: ignore[misc]
