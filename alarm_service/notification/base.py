from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple


class NotificationError(RuntimeError):
    """A notification could not be handed to its transport."""


@dataclass(frozen=True)
class NotificationEvent:
    """
    Notification contract used by the notification layer.

    A 'NotificationEvent' represents *what should be communicated and to
    whom*, not *how* it is delivered.

    Parameters
    ----------
    type
        Event type identifier (e.g., "alarm_raised").
    recipients
        Notification endpoints (phone numbers for SMS).
    message
        Message body.
    source
        Optional source identifier (tag base of the alarm).
    ts
        Optional timestamp string describing when the event occurred.

    Notes
    -----
    The class is frozen (immutable) so events remain stable once queued.
    """

    type: str
    recipients: Tuple[str, ...]
    message: str
    source: Optional[str] = None
    ts: Optional[str] = None


class Notifier(Protocol):
    """
    Protocol interface for notification delivery.

    Any notifier implementation can be used if it provides a 'notify(event)'
    method with the correct signature. This makes dispatch easy to test with
    fakes.

    Methods
    -------
    notify(event)
        Deliver a notification event. Failures are raised.
    """

    def notify(self, event: NotificationEvent) -> None:
        ...
