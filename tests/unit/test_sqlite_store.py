"""
Unit tests for alarm_service.core.config.sqlite_store.SqliteConfigStore.

A throwaway database per test is created under pytest's tmp_path; rows are
inserted with plain SQL the way the operations console writes them.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from alarm_service.core.config.config_store import PatternInUseError
from alarm_service.core.config.sqlite_store import SqliteConfigStore
from alarm_service.domain.models import DEFAULT_PATTERN_ID


def _exec(db: Path, sql: str, params: tuple = ()) -> None:
    with closing(sqlite3.connect(str(db))) as conn, conn:
        conn.execute(sql, params)


def _insert_config(db: Path, cid: str, pattern_id: str, active: int = 1, monitor_h: int = 1) -> None:
    _exec(
        db,
        """
        INSERT INTO alert_configs (id, name, description, tag_base, monitor_hh, monitor_h,
                                   monitor_l, monitor_ll, alert_list_id, pattern_id, is_active)
        VALUES (?, ?, '', ?, 0, ?, 0, 0, 'list-1', ?, ?)
        """,
        (cid, f"name-{cid}", f"Tag.{cid}", monitor_h, pattern_id, active),
    )


@pytest.fixture
def store(tmp_path: Path) -> SqliteConfigStore:
    s = SqliteConfigStore(tmp_path / "alerts.db")
    s.ensure_schema()
    return s


def test_ensure_schema_seeds_default_pattern(store: SqliteConfigStore) -> None:
    p = store.get_pattern(DEFAULT_PATTERN_ID)

    assert p is not None
    assert p.name == "Analog Alarms"
    assert p.h_event_suffix == "H"
    assert p.hh_limit_suffix == "HighHigh"


def test_ensure_schema_is_idempotent(store: SqliteConfigStore) -> None:
    store.ensure_schema()

    with closing(sqlite3.connect(str(store.path))) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM alert_patterns").fetchone()
    assert count == 1


def test_list_active_configs_maps_columns(store: SqliteConfigStore) -> None:
    _insert_config(store.path, "c1", DEFAULT_PATTERN_ID)
    _insert_config(store.path, "c2", DEFAULT_PATTERN_ID, active=0)

    configs = store.list_active_configs()

    assert [c.id for c in configs] == ["c1"]
    cfg = configs[0]
    assert cfg.tag_base == "Tag.c1"
    assert cfg.monitor_h is True and cfg.monitor_hh is False
    assert cfg.alert_list_id == "list-1"
    assert cfg.is_active is True


def test_get_distribution_list_parses_members_json(store: SqliteConfigStore) -> None:
    members = [{"name": "A", "phone": "+1555"}, {"name": "B", "email": "b@example.com"}]
    _exec(
        store.path,
        "INSERT INTO alert_lists (id, name, description, members) VALUES (?, ?, '', ?)",
        ("list-1", "Ops", json.dumps(members)),
    )

    dist = store.get_distribution_list("list-1")

    assert dist is not None
    assert dist.name == "Ops"
    assert dist.phone_numbers() == ["+1555"]
    assert store.get_distribution_list("missing") is None


def test_delete_pattern_guard(store: SqliteConfigStore) -> None:
    _insert_config(store.path, "c1", DEFAULT_PATTERN_ID, active=0)

    with pytest.raises(PatternInUseError):
        store.delete_pattern(DEFAULT_PATTERN_ID)

    _exec(store.path, "DELETE FROM alert_configs WHERE id = 'c1'")
    assert store.delete_pattern(DEFAULT_PATTERN_ID) is True
    assert store.get_pattern(DEFAULT_PATTERN_ID) is None
