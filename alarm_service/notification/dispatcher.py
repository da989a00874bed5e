from __future__ import annotations

import logging
from typing import Protocol

from alarm_service.core.config.config_store import ConfigStore
from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.notification.base import NotificationEvent
from alarm_service.notification.payload import build_alarm_notification

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Non-blocking submission point, e.g. `NotificationWorkerThread`."""

    def emit(self, event: NotificationEvent) -> bool:
        ...


class NotificationDispatcher:
    """
    Hand raised alarms to the notification thread.

    Responsibilities
    ----------------
    - Resolve the config's distribution list to phone numbers.
    - Skip dispatch when no non-empty endpoint remains.
    - Submit the message without waiting for delivery.

    Any failure here is logged and contained: it never reaches the evaluator
    or the scheduler, and the recorded transition stays as it is.

    Parameters
    ----------
    store
        Configuration store used to look up distribution lists.
    sink
        Queue-backed notification worker.
    """

    def __init__(self, store: ConfigStore, sink: NotificationSink):
        self._store = store
        self._sink = sink

    def dispatch(self, ev: AlarmEvent) -> bool:
        """
        Submit a notification for a RAISED event.

        Returns
        -------
        bool
            True if a notification was queued.
        """
        if ev.transition is not AlarmTransition.RAISED:
            return False

        try:
            dist = self._store.get_distribution_list(ev.config.alert_list_id)
            if dist is None:
                logger.warning(
                    "Distribution list %r not found for alert config %r",
                    ev.config.alert_list_id, ev.config_id,
                )
                return False

            phones = dist.phone_numbers()
            if not phones:
                logger.warning("Distribution list %r has no phone numbers; nothing sent", dist.id)
                return False

            return self._sink.emit(build_alarm_notification(ev, phones))
        except Exception:
            logger.exception("Dispatch failed for %s %s", ev.tag_base, ev.limit.label)
            return False
