"""
Alarm event domain models.

An `AlarmEvent` represents *what happened* to one (config, limit) pair during
an evaluation cycle: the event flag rose (RAISED) or fell (CLEARED).
The last observed boolean per pair lives in the transition store.

Events are used for:
- notification dispatch (RAISED only)
- logging ("cleared" lines)
- cycle reporting
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from alarm_service.domain.models import AlertConfig, LimitClass


class AlarmTransition(str, Enum):
    """
    Edge of an event flag between two cycles.

    Members
    -------
    RAISED : str
        false -> true. The only transition that is notified.
    CLEARED : str
        true -> false. Logged, never notified.
    """

    RAISED = "RAISED"
    CLEARED = "CLEARED"


@dataclass(frozen=True)
class AlarmEvent:
    """
    Alarm edge detected during one cycle.

    Parameters
    ----------
    config
        Config whose limit changed state.
    limit
        Limit class that changed state.
    transition
        RAISED or CLEARED.
    timestamp
        Cycle timestamp.
    event_address
        Address of the event flag that was read.
    pv_value
        Process value read in the same batch, or None if unavailable.
    """

    config: AlertConfig
    limit: LimitClass
    transition: AlarmTransition
    timestamp: datetime
    event_address: str
    pv_value: Optional[Any] = None

    @property
    def config_id(self) -> str:
        return self.config.id

    @property
    def tag_base(self) -> str:
        return self.config.tag_base
