"""
Unit tests for alarm_service.notification.dispatcher.NotificationDispatcher.
"""

from __future__ import annotations

from datetime import datetime

from alarm_service.domain.events import AlarmEvent, AlarmTransition
from alarm_service.domain.models import DistributionList, DistributionListMember, LimitClass
from alarm_service.notification.dispatcher import NotificationDispatcher


def _event(config, transition=AlarmTransition.RAISED) -> AlarmEvent:
    return AlarmEvent(
        config=config,
        limit=LimitClass.H,
        transition=transition,
        timestamp=datetime(2026, 1, 1, 10, 0, 0),
        event_address="Line1.Temp.H_EVT",
        pv_value=90,
    )


def test_raised_event_is_emitted_to_non_empty_phones(config_store, sink, make_config) -> None:
    d = NotificationDispatcher(config_store, sink)

    assert d.dispatch(_event(make_config(monitor_h=True))) is True
    assert len(sink.emitted) == 1
    assert sink.emitted[0].recipients == ("+15550100", "+15550101")


def test_cleared_event_is_not_dispatched(config_store, sink, make_config) -> None:
    d = NotificationDispatcher(config_store, sink)

    assert d.dispatch(_event(make_config(), AlarmTransition.CLEARED)) is False
    assert sink.emitted == []


def test_missing_list_skips_with_warning(config_store, sink, make_config, caplog) -> None:
    d = NotificationDispatcher(config_store, sink)

    with caplog.at_level("WARNING"):
        assert d.dispatch(_event(make_config(alert_list_id="nope"))) is False
    assert sink.emitted == []
    assert "nope" in caplog.text


def test_list_without_phones_skips(config_store, sink, make_config) -> None:
    config_store.put_distribution_list(DistributionList(
        id="emails",
        name="Email only",
        members=(DistributionListMember(name="A", email="a@example.com"),),
    ))
    d = NotificationDispatcher(config_store, sink)

    assert d.dispatch(_event(make_config(alert_list_id="emails"))) is False
    assert sink.emitted == []


def test_sink_rejection_is_reported(config_store, sink, make_config) -> None:
    sink.accept = False
    d = NotificationDispatcher(config_store, sink)

    assert d.dispatch(_event(make_config())) is False
    assert len(sink.emitted) == 1


def test_store_failure_is_contained(sink, make_config, caplog) -> None:
    class BrokenStore:
        def get_distribution_list(self, list_id):
            raise RuntimeError("database locked")

    d = NotificationDispatcher(BrokenStore(), sink)

    with caplog.at_level("ERROR"):
        assert d.dispatch(_event(make_config())) is False
    assert "Dispatch failed" in caplog.text
