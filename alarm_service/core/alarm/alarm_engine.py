"""
Alarm edge detection engine.

This module turns one cycle's batch-read values into discrete `AlarmEvent`
transitions (RAISED / CLEARED) by comparing each monitored event flag with the
state observed on the previous cycle.

The engine does not read process data or send notifications; the cycle
controller feeds it values and routes the events it returns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence

from alarm_service.core.state.transition_store import TransitionStateStore
from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.domain.models import ResolvedNodeSet

logger = logging.getLogger(__name__)


def is_alarmed(raw: Any) -> bool:
    """
    Interpret a raw event-flag value.

    Event flags arrive as booleans or 0/1 numbers. Missing (None) and falsy
    values are "normal"; there is no uncertain state.
    """
    return bool(raw)


@dataclass
class AlarmEngine:
    """
    Edge detector over (config, limit) pairs.

    Lifecycle Model
    ---------------
    For each monitored (config id, limit class) pair, with ``prev`` taken from
    the transition store (default False) and ``curr`` the flag just read:

    - prev=False, curr=True  -> RAISED
    - prev=True,  curr=False -> CLEARED
    - unchanged              -> no event

    The store is then set to ``curr`` regardless of the edge type.

    Notes
    -----
    - Only monitored limit classes are read from or written to the store.
    - The process value never takes part in edge detection; it is attached to
      events to enrich notifications.

    Parameters
    ----------
    transitions
        Store holding the last observed state per pair.
    """

    transitions: TransitionStateStore = field(default_factory=TransitionStateStore)

    def evaluate(
        self,
        node_sets: Sequence[ResolvedNodeSet],
        values: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> List[AlarmEvent]:
        """
        Evaluate all node sets against one batch-read result.

        Parameters
        ----------
        node_sets
            Resolved addresses of the configs in this cycle.
        values
            Address -> raw value from the batch read.
        now
            Timestamp for this evaluation. If None, uses `datetime.now()`.

        Returns
        -------
        list of AlarmEvent
            RAISED and CLEARED events, in config then limit order.
        """
        ts = now or datetime.now()
        events: List[AlarmEvent] = []

        for ns in node_sets:
            pv_value = values.get(ns.pv_address)
            for limit, address in ns.event_addresses.items():
                ev = self._apply(ns, limit, address, values.get(address), pv_value, ts)
                if ev is not None:
                    events.append(ev)

        return events

    def _apply(self, ns, limit, address, raw, pv_value, ts) -> Optional[AlarmEvent]:
        config = ns.config
        curr = is_alarmed(raw)
        prev = self.transitions.get(config.id, limit)
        self.transitions.set(config.id, limit, curr)

        if curr and not prev:
            logger.info("ALARM TRIGGERED: %s %s (PV=%r)", config.tag_base, limit.label, pv_value)
            transition = AlarmTransition.RAISED
        elif prev and not curr:
            logger.info("ALARM CLEARED: %s %s", config.tag_base, limit.label)
            transition = AlarmTransition.CLEARED
        else:
            return None

        return AlarmEvent(
            config=config,
            limit=limit,
            transition=transition,
            timestamp=ts,
            event_address=address,
            pv_value=pv_value,
        )
