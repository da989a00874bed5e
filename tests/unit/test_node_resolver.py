"""
Unit tests for alarm_service.core.alarm.node_resolver.

Validates:
- separator handling when joining base tags and suffixes
- per-config expansion (PV + monitored event flags only)
- deduplication across configs sharing tags and patterns
"""

from __future__ import annotations

from alarm_service.core.alarm.node_resolver import full_address, resolve_nodes, unique_read_addresses
from alarm_service.domain.models import LimitClass


def test_full_address_inserts_separator() -> None:
    assert full_address("Line1.Temp", "PV") == "Line1.Temp.PV"


def test_full_address_does_not_double_separator() -> None:
    assert full_address("Line1.Temp", ".PV") == "Line1.Temp.PV"


def test_full_address_custom_separator() -> None:
    assert full_address("ns=2;s=T1", "PV", separator="_") == "ns=2;s=T1_PV"
    assert full_address("ns=2;s=T1", "_PV", separator="_") == "ns=2;s=T1_PV"


def test_resolve_nodes_end_to_end_example(make_config, pattern) -> None:
    cfg = make_config(monitor_h=True)

    ns = resolve_nodes(cfg, pattern)

    assert ns.pv_address == "Line1.Temp.PV"
    assert ns.event_addresses == {LimitClass.H: "Line1.Temp.H_EVT"}
    assert ns.read_addresses() == ["Line1.Temp.H_EVT", "Line1.Temp.PV"]


def test_resolve_nodes_all_limits(make_config, pattern) -> None:
    cfg = make_config(monitor_hh=True, monitor_h=True, monitor_l=True, monitor_ll=True)

    ns = resolve_nodes(cfg, pattern)

    assert len(ns.read_addresses()) == 5
    assert ns.event_addresses[LimitClass.LL] == "Line1.Temp.LL_EVT"


def test_resolve_nodes_without_monitors_reads_nothing(make_config, pattern) -> None:
    ns = resolve_nodes(make_config(), pattern)

    assert ns.pv_address == "Line1.Temp.PV"
    assert ns.read_addresses() == []


def test_unique_read_addresses_dedups_shared_tags(make_config, pattern) -> None:
    a = resolve_nodes(make_config(id="a", monitor_h=True), pattern)
    b = resolve_nodes(make_config(id="b", monitor_h=True, monitor_l=True), pattern)

    addresses = unique_read_addresses([a, b])

    assert addresses == ["Line1.Temp.H_EVT", "Line1.Temp.PV", "Line1.Temp.L_EVT"]
    assert len(addresses) == len(set(addresses))
