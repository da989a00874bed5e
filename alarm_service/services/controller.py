from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from alarm_service.core.alarm.alarm_engine import AlarmEngine
from alarm_service.core.alarm.node_resolver import DEFAULT_SEPARATOR, unique_read_addresses
from alarm_service.core.config.config_store import ConfigStore
from alarm_service.core.config.snapshot import load_snapshot
from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.notification.dispatcher import NotificationDispatcher
from alarm_service.transport.process_data import DataSourceError, ProcessDataSource

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """
    Outcome of one evaluation cycle.

    Attributes
    ----------
    configs
        Number of active configs loaded.
    skipped_configs
        Ids of configs skipped for a missing pattern.
    addresses
        Number of addresses in the batch read.
    events
        RAISED and CLEARED events detected.
    dispatched
        Number of notifications queued.
    aborted
        True if the batch read failed and nothing was evaluated.
    """

    configs: int = 0
    skipped_configs: List[str] = field(default_factory=list)
    addresses: int = 0
    events: List[AlarmEvent] = field(default_factory=list)
    dispatched: int = 0
    aborted: bool = False

    @property
    def raised(self) -> List[AlarmEvent]:
        return [e for e in self.events if e.transition is AlarmTransition.RAISED]

    @property
    def cleared(self) -> List[AlarmEvent]:
        return [e for e in self.events if e.transition is AlarmTransition.CLEARED]


@dataclass
class AlarmCycle:
    """
    One read-evaluate-notify pass.

    Responsibilities
    ----------------
    - Load the active configuration snapshot and resolve addresses.
    - Read all deduplicated addresses in a single batch.
    - Run edge detection via `AlarmEngine`.
    - Hand RAISED events to the dispatcher.

    Notes
    -----
    This class contains orchestration logic only. Edge detection lives in the
    engine, delivery in the notification layer. It is not re-entrant; the
    scheduler guarantees one cycle at a time.

    Parameters
    ----------
    store
        Configuration store.
    source
        Process-data source.
    engine
        Edge detection engine (owns the transition store).
    dispatcher
        Notification dispatcher for RAISED events.
    separator
        Address separator used by the resolver.
    prime_on_first_cycle
        If True, edges found by the first successful cycle are recorded
        without notifying, so alarms already active at startup do not re-fire.
    """

    store: ConfigStore
    source: ProcessDataSource
    engine: AlarmEngine
    dispatcher: NotificationDispatcher
    separator: str = DEFAULT_SEPARATOR
    prime_on_first_cycle: bool = False

    _primed: bool = field(default=False, init=False, repr=False)

    def run_once(self, now: Optional[datetime] = None) -> CycleResult:
        """
        Execute one cycle.

        Parameters
        ----------
        now
            Timestamp for this cycle. If None, uses local current time.

        Returns
        -------
        CycleResult
            Summary of the cycle.

        Notes
        -----
        A `DataSourceError` aborts the cycle before any state mutation.
        Other exceptions (e.g., the config store being unreachable) propagate
        to the caller.
        """
        ts = now or datetime.now()
        result = CycleResult()

        snapshot = load_snapshot(self.store, self.separator)
        if snapshot.is_empty:
            return result

        result.configs = len(snapshot.configs)
        result.skipped_configs = [c.id for c in snapshot.skipped]

        addresses = unique_read_addresses(snapshot.node_sets)
        result.addresses = len(addresses)
        if not addresses:
            return result

        try:
            raw_values = list(self.source.read_values(addresses))
            if len(raw_values) != len(addresses):
                raise DataSourceError(f"expected {len(addresses)} values, got {len(raw_values)}")
        except DataSourceError as e:
            logger.warning("Process data read failed; skipping evaluation this cycle: %s", e)
            result.aborted = True
            return result

        values = dict(zip(addresses, raw_values))
        result.events = self.engine.evaluate(snapshot.node_sets, values, now=ts)

        suppress = self.prime_on_first_cycle and not self._primed
        self._primed = True

        for ev in result.raised:
            if suppress:
                logger.info("Startup priming: %s %s already active, not notified", ev.tag_base, ev.limit.label)
                continue
            if self.dispatcher.dispatch(ev):
                result.dispatched += 1

        return result
