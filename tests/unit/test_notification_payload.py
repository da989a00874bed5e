"""
Unit tests for alarm message formatting.
"""

from __future__ import annotations

from datetime import datetime

from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.domain.models import LimitClass
from alarm_service.notification.payload import (
    build_alarm_message,
    build_alarm_notification,
    format_pv,
)


def _event(config, pv=87.5, limit=LimitClass.H) -> AlarmEvent:
    return AlarmEvent(
        config=config,
        limit=limit,
        transition=AlarmTransition.RAISED,
        timestamp=datetime(2026, 1, 1, 10, 0, 0, 123456),
        event_address="Line1.Temp.H_EVT",
        pv_value=pv,
    )


def test_format_pv_placeholder() -> None:
    assert format_pv(None) == "Unknown"
    assert format_pv(0) == "0"
    assert format_pv(12.5) == "12.5"


def test_message_uses_tag_base_when_unnamed(make_config) -> None:
    msg = build_alarm_message(_event(make_config(monitor_h=True)))

    assert msg == (
        "ALARM: Line1.Temp! Triggered: High (H). "
        "Current PV: 87.5. Please check the system!"
    )


def test_message_names_config_and_keeps_tag(make_config) -> None:
    cfg = make_config(name="Reactor temp", monitor_ll=True)

    msg = build_alarm_message(_event(cfg, pv=None, limit=LimitClass.LL))

    assert msg.startswith("ALARM: Reactor temp (Line1.Temp)! Triggered: Low Low (LL).")
    assert "Current PV: Unknown." in msg


def test_notification_carries_recipients_and_metadata(make_config) -> None:
    n = build_alarm_notification(_event(make_config(monitor_h=True)), ["+1", "+2"])

    assert n.type == "alarm_raised"
    assert n.recipients == ("+1", "+2")
    assert n.source == "Line1.Temp"
    assert n.ts == "2026-01-01T10:00:00"
    assert "High (H)" in n.message
