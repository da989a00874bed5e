"""
Shared fixtures for the alarm engine test suite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

import pytest

from alarm_service.core.config.config_store import InMemoryConfigStore
from alarm_service.domain.models import (
    AlertConfig,
    AlertPattern,
    DistributionList,
    DistributionListMember,
)
from alarm_service.notification.base import NotificationEvent


@dataclass
class RecordingSink:
    """Notification sink that records emitted events instead of sending them."""

    emitted: List[NotificationEvent] = field(default_factory=list)
    accept: bool = True

    def emit(self, event: NotificationEvent) -> bool:
        self.emitted.append(event)
        return self.accept


@pytest.fixture
def pattern() -> AlertPattern:
    return AlertPattern(
        id="pat-1",
        name="Line pattern",
        pv_suffix="PV",
        hh_limit_suffix="HH_LIM",
        h_limit_suffix="H_LIM",
        l_limit_suffix="L_LIM",
        ll_limit_suffix="LL_LIM",
        hh_event_suffix="HH_EVT",
        h_event_suffix="H_EVT",
        l_event_suffix="L_EVT",
        ll_event_suffix="LL_EVT",
    )


@pytest.fixture
def dist_list() -> DistributionList:
    return DistributionList(
        id="list-1",
        name="Operators",
        members=(
            DistributionListMember(name="Control room", phone="+15550100"),
            DistributionListMember(name="No phone", phone="   "),
            DistributionListMember(name="Email only", email="x@example.com"),
            DistributionListMember(name="Shift lead", phone=" +15550101 "),
        ),
    )


@pytest.fixture
def make_config() -> Callable[..., AlertConfig]:
    def _make(**overrides) -> AlertConfig:
        values = dict(
            id="cfg-1",
            tag_base="Line1.Temp",
            pattern_id="pat-1",
            alert_list_id="list-1",
        )
        values.update(overrides)
        return AlertConfig(**values)

    return _make


@pytest.fixture
def config_store(pattern: AlertPattern, dist_list: DistributionList) -> InMemoryConfigStore:
    store = InMemoryConfigStore()
    store.put_pattern(pattern)
    store.put_distribution_list(dist_list)
    return store


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
