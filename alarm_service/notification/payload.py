from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from alarm_service.domain.events import AlarmEvent
from alarm_service.notification.base import NotificationEvent

PV_PLACEHOLDER = "Unknown"


def _iso(ts: datetime) -> str:
    """
    Convert datetime to ISO-8601 string with second precision.
    """
    return ts.isoformat(timespec="seconds")


def format_pv(value: Optional[Any]) -> str:
    """Render a process value for a message; None becomes the placeholder."""
    return PV_PLACEHOLDER if value is None else str(value)


def build_alarm_message(ev: AlarmEvent) -> str:
    """
    Build the SMS text for a raised alarm.

    The config's display name is followed by its tag base in parentheses when
    the two differ, so the tag is always present in the message.

    Parameters
    ----------
    ev
        RAISED alarm event.

    Returns
    -------
    str
        Message body.
    """
    config = ev.config
    subject = config.display_name
    if subject != config.tag_base:
        subject = f"{subject} ({config.tag_base})"
    return (
        f"ALARM: {subject}! Triggered: {ev.limit.label}. "
        f"Current PV: {format_pv(ev.pv_value)}. Please check the system!"
    )


def build_alarm_notification(ev: AlarmEvent, recipients: Sequence[str]) -> NotificationEvent:
    """
    Wrap a raised alarm into a `NotificationEvent` for the given recipients.
    """
    return NotificationEvent(
        type="alarm_raised",
        recipients=tuple(recipients),
        message=build_alarm_message(ev),
        source=ev.tag_base,
        ts=_iso(ev.timestamp),
    )
