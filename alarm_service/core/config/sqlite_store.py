"""
SQLite-backed configuration store.

Reads the operations console's ``alerts.db`` (tables ``alert_lists``,
``alert_patterns`` and ``alert_configs``). A fresh connection is opened per
call so the store can be used from the scheduler's cycle threads.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from alarm_service.core.config.config_store import (
    PatternInUseError,
    config_from_mapping,
    distribution_list_from_mapping,
    pattern_from_mapping,
)
from alarm_service.domain.models import DEFAULT_PATTERN, AlertConfig, AlertPattern, DistributionList

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS alert_lists (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        members JSON NOT NULL,
        created_by TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alert_patterns (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        pv_suffix TEXT NOT NULL,
        hh_limit_suffix TEXT NOT NULL,
        h_limit_suffix TEXT NOT NULL,
        l_limit_suffix TEXT NOT NULL,
        ll_limit_suffix TEXT NOT NULL,
        hh_event_suffix TEXT NOT NULL,
        h_event_suffix TEXT NOT NULL,
        l_event_suffix TEXT NOT NULL,
        ll_event_suffix TEXT NOT NULL,
        created_by TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS alert_configs (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT,
        tag_base TEXT NOT NULL,
        monitor_hh BOOLEAN DEFAULT 0,
        monitor_h BOOLEAN DEFAULT 0,
        monitor_l BOOLEAN DEFAULT 0,
        monitor_ll BOOLEAN DEFAULT 0,
        alert_list_id TEXT NOT NULL,
        pattern_id TEXT NOT NULL,
        is_active BOOLEAN DEFAULT 1,
        created_by TEXT,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY(alert_list_id) REFERENCES alert_lists(id),
        FOREIGN KEY(pattern_id) REFERENCES alert_patterns(id)
    )
    """,
)


class SqliteConfigStore:
    """
    Configuration store reading the console's SQLite database.

    Parameters
    ----------
    path
        Database file path.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser().resolve()

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._path))
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_schema(self) -> None:
        """
        Create missing tables and seed the default pattern into an empty
        pattern table. Configs without a pattern are pointed at it.
        """
        with closing(self._connect()) as conn, conn:
            for stmt in _SCHEMA:
                conn.execute(stmt)

            (count,) = conn.execute("SELECT COUNT(*) FROM alert_patterns").fetchone()
            if count == 0:
                logger.info("Seeding default alert pattern: %s", DEFAULT_PATTERN.name)
                self._insert_pattern(conn, DEFAULT_PATTERN, created_by="system")
                conn.execute(
                    "UPDATE alert_configs SET pattern_id = ? WHERE pattern_id = '' OR pattern_id IS NULL",
                    (DEFAULT_PATTERN.id,),
                )

    @staticmethod
    def _insert_pattern(conn: sqlite3.Connection, p: AlertPattern, created_by: str) -> None:
        now = datetime.now().isoformat()
        conn.execute(
            """
            INSERT INTO alert_patterns (
                id, name, description, pv_suffix, hh_limit_suffix, h_limit_suffix,
                l_limit_suffix, ll_limit_suffix, hh_event_suffix, h_event_suffix,
                l_event_suffix, ll_event_suffix, created_by, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                p.id, p.name, p.description, p.pv_suffix,
                p.hh_limit_suffix, p.h_limit_suffix, p.l_limit_suffix, p.ll_limit_suffix,
                p.hh_event_suffix, p.h_event_suffix, p.l_event_suffix, p.ll_event_suffix,
                created_by, now, now,
            ),
        )

    # --- Read API (engine) ---
    def list_active_configs(self) -> List[AlertConfig]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT * FROM alert_configs WHERE is_active = 1").fetchall()
        return [config_from_mapping(dict(r)) for r in rows]

    def get_pattern(self, pattern_id: str) -> Optional[AlertPattern]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM alert_patterns WHERE id = ?", (pattern_id,)).fetchone()
        return pattern_from_mapping(dict(row)) if row else None

    def get_distribution_list(self, list_id: str) -> Optional[DistributionList]:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT * FROM alert_lists WHERE id = ?", (list_id,)).fetchone()
        if not row:
            return None
        raw = dict(row)
        raw["members"] = json.loads(raw.get("members") or "[]")
        return distribution_list_from_mapping(raw)

    # --- Guarded delete ---
    def delete_pattern(self, pattern_id: str) -> bool:
        """
        Delete a pattern unless an alert config references it.

        Raises
        ------
        PatternInUseError
            If the pattern is referenced.
        """
        with closing(self._connect()) as conn, conn:
            (count,) = conn.execute(
                "SELECT COUNT(*) FROM alert_configs WHERE pattern_id = ?", (pattern_id,)
            ).fetchone()
            if count > 0:
                raise PatternInUseError(pattern_id)
            cur = conn.execute("DELETE FROM alert_patterns WHERE id = ?", (pattern_id,))
            return cur.rowcount > 0
